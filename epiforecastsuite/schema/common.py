"""Shared configuration sections."""

import datetime

from pydantic import BaseModel, Field


class Meta(BaseModel):
    """General metadata section."""

    description: str | None = Field(None, description="Description of the experiment / configurations.")
    author: str | None = Field(None, description="Author of the experiment / configurations.")
    version: str | float | None = Field(None, description="Version of the experiment / configurations.")
    date: datetime.date | datetime.datetime | None = Field(
        default_factory=lambda: datetime.datetime.now(tz=datetime.timezone.utc), description="Date of work"
    )
