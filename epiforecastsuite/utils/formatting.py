"""Formatting utilities for human-readable output.

This module provides utilities for formatting durations, file sizes and
posterior intervals into human-readable strings.
"""


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string.

    Parameters
    ----------
    seconds : float
        Duration in seconds

    Returns
    -------
    str
        Formatted duration string

    Examples
    --------
    >>> format_duration(3.5)
    '3.5s'
    >>> format_duration(125)
    '2m 5s'
    >>> format_duration(3665)
    '1h 1m 5s'
    """
    if seconds < 60:  # noqa: PLR2004
        return f"{seconds:.1f}s"

    minutes, remaining_seconds = divmod(int(seconds), 60)
    if minutes < 60:  # noqa: PLR2004
        return f"{minutes}m {remaining_seconds}s"

    hours, remaining_minutes = divmod(minutes, 60)
    return f"{hours}h {remaining_minutes}m {remaining_seconds}s"


def format_file_size(size_bytes: int) -> str:
    """Format a byte count with the largest binary unit that keeps it >= 1.

    Examples
    --------
    >>> format_file_size(512)
    '512 B'
    >>> format_file_size(1536)
    '1.5 KB'
    """
    value = float(size_bytes)
    for unit in ("B", "KB", "MB"):
        if value < 1024:  # noqa: PLR2004
            return f"{int(value)} B" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def format_interval(center: float, lower: float, upper: float, precision: int = 4) -> str:
    """Format a point estimate with its interval.

    Examples
    --------
    >>> format_interval(0.1234567, 0.1, 0.15)
    '0.1235 [0.1000, 0.1500]'
    >>> format_interval(10, 8, 12.5, precision=1)
    '10.0 [8.0, 12.5]'
    """
    return f"{center:.{precision}f} [{lower:.{precision}f}, {upper:.{precision}f}]"
