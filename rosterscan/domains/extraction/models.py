"""
Extraction Models - Data types for extraction domain.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator
from typing_extensions import TypedDict


class RosterRow(TypedDict):
    """
    Output contract sent to the extraction service.

    All three keys are required strings; key names are the wire format.
    """

    unitTitle: str
    name: str
    supervisorRating: str


# The service must answer with an array of RosterRow objects
ROSTER_SCHEMA = list[RosterRow]


class ExtractedRecord(BaseModel):
    """One extracted roster row."""

    id: str
    source_file: str
    page_number: int = Field(default=1, ge=1)
    unit_title: str = ""  # organizational unit and job title, merged
    name: str = ""
    supervisor_rating: str = ""  # numeric score or letter grade

    @field_validator("unit_title", "name", "supervisor_rating", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        """Missing values become empty strings; scores become text."""
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return str(value)
