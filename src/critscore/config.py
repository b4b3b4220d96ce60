"""Runtime settings for criticality scoring.

Every tunable has a default matching the reference scoring tables and can
be overridden through ``CRITSCORE_*`` environment variables.
"""

import logging
import os

from pydantic import BaseModel, Field, ValidationError

from critscore.errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CRITSCORE_"


class Settings(BaseModel):
    """Tunables for metric collection and quota handling."""

    api_base_url: str = "https://api.github.com"
    search_url: str = "https://github.com/search"
    http_timeout: float = 30.0

    # Metric collection
    top_contributor_count: int = Field(default=15, gt=0)
    issue_lookback_days: int = Field(default=90, gt=0)
    release_lookback_days: int = Field(default=365, gt=0)
    large_contributor_cap: int = 5000
    large_contributor_org_placeholder: int = 10

    # Dependents scrape
    dependents_retries: int = Field(default=3, gt=0)
    dependents_retry_delay: float = Field(default=10.0, ge=0)

    # Quota
    quota_floor: int = Field(default=50, ge=0)
    quota_fallback_sleep: float = Field(default=3600.0, ge=0)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings, applying any ``CRITSCORE_<FIELD>`` overrides."""
        environ = os.environ if environ is None else environ
        overrides = {}
        for name in cls.model_fields:
            value = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if value is not None:
                overrides[name] = value
        if overrides:
            logger.debug(f"Settings overridden from environment: {sorted(overrides)}")
        try:
            return cls(**overrides)
        except ValidationError as e:
            fields = ", ".join(f"{ENV_PREFIX}{str(err['loc'][0]).upper()}" for err in e.errors())
            raise ConfigurationError(f"invalid setting {fields}: {e.errors()[0]['msg']}") from e


def get_github_token(environ: dict[str, str] | None = None) -> str | None:
    """Return the GitHub token from GITHUB_AUTH_TOKEN or GITHUB_TOKEN."""
    environ = os.environ if environ is None else environ
    return environ.get("GITHUB_AUTH_TOKEN") or environ.get("GITHUB_TOKEN") or None
