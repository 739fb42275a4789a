"""Error taxonomy for the analytics engine.

Hard errors always reach the caller. Soft insufficiency (too little history
for cross-validation or seasonality) is not an error and returns a
conservative default instead.
"""


class AnalyticsError(Exception):
    """Base exception for analytics errors."""


class InsufficientDataError(AnalyticsError):
    """A hard minimum sample count was not met."""

    def __init__(self, message: str, required: int = 0, actual: int = 0):
        super().__init__(message)
        self.required = required
        self.actual = actual


class DegenerateInputError(AnalyticsError):
    """Input is numerically unfit for fitting (e.g. zero variance in x)."""


class InvalidParameterError(AnalyticsError, ValueError):
    """A parameter is outside its domain."""
