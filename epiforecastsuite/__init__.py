__version__ = "0.1.0"

from .calibration import calibrate, gaussian_kernel, propose_parameters, summary_statistics
from .config_loader import load_forecast_config_from_file
from .forecast import forecast, make_forecast_factory, quantile_bands, sample_posterior, summarize
from .lfmcmc import LFMCMC, LFMCMCResults
from .parameters import PARAMETER_NAMES, SUMMARY_STAT_NAMES, ModelParameters
from .seasons import Season, SeasonStarts, classify_season, locate_season_starts
from .simulator import ParameterSchedule, SimulationHistory, SIRConnSimulator

__all__ = [
    "LFMCMC",
    "LFMCMCResults",
    "ModelParameters",
    "PARAMETER_NAMES",
    "ParameterSchedule",
    "SIRConnSimulator",
    "SUMMARY_STAT_NAMES",
    "Season",
    "SeasonStarts",
    "SimulationHistory",
    "calibrate",
    "classify_season",
    "forecast",
    "gaussian_kernel",
    "load_forecast_config_from_file",
    "locate_season_starts",
    "make_forecast_factory",
    "propose_parameters",
    "quantile_bands",
    "sample_posterior",
    "summarize",
    "summary_statistics",
]
