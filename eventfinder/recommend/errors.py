from __future__ import annotations


class RecommendationError(RuntimeError):
    """Base class for failures surfaced by the recommendation pipeline."""


class FilterValidationError(RecommendationError, ValueError):
    """Raised when an extracted or caller-supplied filter value is unusable."""

    field: str = ""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        if field is not None:
            self.field = field


class InvalidMode(FilterValidationError):
    field = "mode"


class InvalidCategory(FilterValidationError):
    field = "tag"


class InvalidDate(FilterValidationError):
    field = "date"


class StoreUnavailable(RecommendationError):
    """Raised when the event store cannot be reached or fails mid-query."""


__all__ = [
    "FilterValidationError",
    "InvalidCategory",
    "InvalidDate",
    "InvalidMode",
    "RecommendationError",
    "StoreUnavailable",
]
