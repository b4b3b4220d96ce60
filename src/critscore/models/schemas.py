"""Pydantic models for repository handles, metrics and scores."""

from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RepoRef(BaseModel):
    """Owner/name pair parsed from a repository URL."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def url(self) -> str:
        """Get the full repository URL."""
        return f"https://github.com/{self.owner}/{self.name}"


class RepositoryHandle(BaseModel):
    """A resolved GitHub repository. Read-only once resolved."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    language: str | None = None
    created_at: datetime
    html_url: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class QuotaStatus(BaseModel):
    """Remaining core API quota and when it resets."""

    remaining: int
    limit: int | None = None
    reset_at: datetime | None = None


class PagedResult(BaseModel):
    """One page of a list endpoint plus its pagination links."""

    items: list[Any] = Field(default_factory=list)
    next_url: str | None = None
    last_url: str | None = None

    @property
    def has_next_page(self) -> bool:
        return self.next_url is not None


class MetricSet(BaseModel):
    """The nine raw measurements for one repository."""

    model_config = ConfigDict(frozen=True)

    created_since: int = 0
    updated_since: int = 0
    contributor_count: int = 0
    org_count: int = 0
    commit_frequency: float = 0.0
    recent_releases_count: int = 0
    closed_issues_count: int = 0
    updated_issues_count: int = 0
    comment_frequency: float = 0.0
    dependents_count: int = 0


class AdditionalParam(BaseModel):
    """A caller-supplied signal added to the weighted sum."""

    model_config = ConfigDict(frozen=True)

    value: float
    weight: float
    max_threshold: float


class ScoreRecord(BaseModel):
    """Final output of a scoring run."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    language: str | None = None
    metrics: MetricSet
    criticality_score: float
    scored_on: datetime

    def rows(self) -> list[tuple[str, Any]]:
        """Return (field name, value) pairs in output order."""
        return [(name, accessor(self)) for name, accessor in SCORE_FIELDS]


SCORE_FIELDS: list[tuple[str, Callable[[ScoreRecord], Any]]] = [
    ("name", lambda s: s.name),
    ("url", lambda s: s.url),
    ("language", lambda s: s.language or ""),
    ("created_since", lambda s: s.metrics.created_since),
    ("updated_since", lambda s: s.metrics.updated_since),
    ("contributor_count", lambda s: s.metrics.contributor_count),
    ("org_count", lambda s: s.metrics.org_count),
    ("commit_frequency", lambda s: s.metrics.commit_frequency),
    ("recent_releases_count", lambda s: s.metrics.recent_releases_count),
    ("closed_issues_count", lambda s: s.metrics.closed_issues_count),
    ("updated_issues_count", lambda s: s.metrics.updated_issues_count),
    ("comment_frequency", lambda s: s.metrics.comment_frequency),
    ("dependents_count", lambda s: s.metrics.dependents_count),
    ("criticality_score", lambda s: s.criticality_score),
    ("scored_on", lambda s: s.scored_on.isoformat()),
]
