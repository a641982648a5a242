"""Error kinds raised by the chart engine and its loader."""


class ClimbChartError(Exception):
    """Base class for all climb chart errors."""


class ClimbDataError(ClimbChartError, ValueError):
    """A climb document is malformed (missing or mismatched sample arrays)."""


class FetchFailure(ClimbChartError):
    """A single climb could not be retrieved; fails the whole load."""

    def __init__(self, source_ref: str, cause: Exception):
        self.source_ref = source_ref
        self.cause = cause
        super().__init__(f"Failed to load climb data from {source_ref}: {cause}")


class EmptyVisibleSetError(ClimbChartError):
    """Scales were requested over a record set with nothing visible."""


class InvariantViolation(ClimbChartError):
    """A visibility change would leave no climb visible."""

    def __init__(self, climb_id: int):
        self.climb_id = climb_id
        super().__init__(f"Climb {climb_id} is the last visible climb and cannot be hidden")


class ConfigError(ClimbChartError, ValueError):
    """A configuration value has the wrong type."""
