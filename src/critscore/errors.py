"""Exceptions raised while resolving, measuring and scoring a repository."""

from datetime import datetime


class CriticalityScoreError(Exception):
    """Base class for every error surfaced by critscore."""


class InvalidIdentifierError(CriticalityScoreError):
    """Raised when a repository URL cannot be parsed into owner and name."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"invalid github url: {identifier!r}")


class RepositoryNotFoundError(CriticalityScoreError):
    """Raised when the repository does not exist or is not visible."""

    def __init__(self, owner: str, name: str) -> None:
        self.owner = owner
        self.name = name
        super().__init__(f"repo not found: {owner}/{name}")


class APIResponseError(CriticalityScoreError):
    """Raised for any other failed call against the GitHub API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RateLimitExceededError(CriticalityScoreError):
    """Raised internally when remaining quota is below the safety floor."""

    def __init__(self, remaining: int, reset_time: datetime | None = None) -> None:
        self.remaining = remaining
        self.reset_time = reset_time
        super().__init__(f"rate limit low ({remaining} remaining), resets at {reset_time}")


class MetricComputationPendingError(CriticalityScoreError):
    """Raised when GitHub is still computing a statistic.

    The whole run should be retried later.
    """

    def __init__(self, metric: str) -> None:
        self.metric = metric
        super().__init__(f"{metric} is being calculated by github, please try again")


class InvalidAdditionalParamError(CriticalityScoreError):
    """Raised for a malformed ``value:weight:max_threshold`` string."""

    def __init__(self, param: str, reason: str) -> None:
        self.param = param
        self.reason = reason
        super().__init__(f"invalid param format {param!r}: {reason}")


class ConfigurationError(CriticalityScoreError):
    """Raised when a ``CRITSCORE_*`` override is not a valid setting."""
