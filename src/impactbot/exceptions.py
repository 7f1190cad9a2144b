"""Custom exceptions for impactbot."""


class ImpactBotError(Exception):
    """Base exception for all impactbot errors."""


class ConfigError(ImpactBotError):
    """Configuration-related errors."""


class LineageAPIError(ImpactBotError):
    """A call to the lineage service failed or returned an unusable body."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotifierError(ImpactBotError):
    """Publishing the report (comment, summary, outputs) failed."""
