"""Exception types raised by Depwatch components."""

from typing import Optional


class DepwatchError(Exception):
    """Base class for all Depwatch failures."""


class ConfigurationError(DepwatchError):
    """A required configuration value is missing or invalid."""


class CredentialError(DepwatchError):
    """The repository-host access token could not be verified."""


class SummarizationError(DepwatchError):
    """The AI service did not return a usable analysis."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmailDeliveryError(DepwatchError):
    """The report could not be handed to the mail relay."""
