"""Time windows used to slice the prediction ledger."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError, model_validator

from ..errors import ValidationError
from ..utils.timeutils import to_storage


class TimeRange(BaseModel):
    """Inclusive ``[start, end]`` window. Accepts ISO-8601 strings."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self) -> "TimeRange":
        if to_storage(self.start) > to_storage(self.end):
            raise ValueError("start must not be after end")
        return self

    def bounds(self) -> tuple[datetime, datetime]:
        """Window bounds in the store's native form (naive UTC)."""
        return to_storage(self.start), to_storage(self.end)


def parse_window(value: Any, operation: str) -> Optional[TimeRange]:
    """Coerce a dict, TimeRange or None into a TimeRange."""
    if value is None or isinstance(value, TimeRange):
        return value
    try:
        return TimeRange.model_validate(value)
    except PydanticValidationError as exc:
        err = exc.errors()[0]
        raise ValidationError(operation, f"invalid time window: {err.get('msg')}") from exc


def require_window(value: Any, operation: str, name: str) -> TimeRange:
    window = parse_window(value, operation)
    if window is None:
        raise ValidationError(operation, f"{name} is required")
    return window
