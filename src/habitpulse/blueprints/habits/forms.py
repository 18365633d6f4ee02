"""Request payload schemas for the habits API."""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ...constants.categories import normalize_category
from ...errors import InvalidHabitDataError
from ...services.habits import FREQUENCY_TARGETS

_PAYLOAD_CONFIG = ConfigDict(
    str_strip_whitespace=True,
    populate_by_name=True,
    extra="ignore",
)


def _validate_frequency(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    key = value.strip().lower()
    if key not in FREQUENCY_TARGETS:
        allowed = ", ".join(FREQUENCY_TARGETS)
        raise ValueError(f"Frequency must be one of: {allowed}.")
    return key


class HabitPayload(BaseModel):
    """Body of ``POST /api/habits``."""

    model_config = _PAYLOAD_CONFIG

    title: str = Field(max_length=100, description="Short label for the habit")
    description: str = Field(default="", max_length=400)
    category: str = Field(default="physical", max_length=32)
    frequency: str = Field(default="daily")
    is_absolute: bool = Field(default=True, alias="isAbsolute")
    impact: int = Field(default=5, ge=1, le=10)
    effort: int = Field(default=5, ge=1, le=10)

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        """Ensure the habit title is present."""

        if not value:
            raise ValueError("Please provide a habit title.")
        return value

    @field_validator("category")
    @classmethod
    def canonical_category(cls, value: str) -> str:
        return normalize_category(value)

    @field_validator("frequency")
    @classmethod
    def validate_frequency(cls, value: str) -> str:
        return _validate_frequency(value)

    @model_validator(mode="after")
    def daily_is_absolute(self) -> "HabitPayload":
        """A daily habit is always absolute."""

        if self.frequency == "daily":
            self.is_absolute = True
        return self


class HabitUpdatePayload(BaseModel):
    """Body of ``PATCH /api/habits/<id>``; only provided fields change."""

    model_config = _PAYLOAD_CONFIG

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=400)
    category: Optional[str] = Field(default=None, max_length=32)
    frequency: Optional[str] = None
    is_absolute: Optional[bool] = Field(default=None, alias="isAbsolute")
    impact: Optional[int] = Field(default=None, ge=1, le=10)
    effort: Optional[int] = Field(default=None, ge=1, le=10)

    @field_validator("category")
    @classmethod
    def canonical_category(cls, value: Optional[str]) -> Optional[str]:
        return normalize_category(value) if value is not None else None

    @field_validator("frequency")
    @classmethod
    def validate_frequency(cls, value: Optional[str]) -> Optional[str]:
        return _validate_frequency(value)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class TogglePayload(BaseModel):
    """Body of ``POST /api/habits/<id>/toggle``."""

    model_config = _PAYLOAD_CONFIG

    date: dt.date

    @field_validator("date", mode="before")
    @classmethod
    def calendar_day(cls, value: Any) -> Any:
        """Accept full ISO timestamps and keep only the calendar day."""

        if isinstance(value, str) and len(value) > 10 and value[10] in ("T", " "):
            return value[:10]
        return value


def validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Flatten pydantic errors into ``{field: [messages]}``."""

    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = str(loc[0]) if loc else "__root__"
        structured.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return structured


def parse_payload(schema: type[BaseModel], data: Any) -> Any:
    """Validate ``data`` against ``schema`` or raise ``InvalidHabitDataError``."""

    if not isinstance(data, dict):
        raise InvalidHabitDataError("Request body must be a JSON object.")
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise InvalidHabitDataError(
            "Request body failed validation.", fields=validation_errors(exc)
        ) from exc


__all__ = ["HabitPayload", "HabitUpdatePayload", "TogglePayload", "parse_payload"]
