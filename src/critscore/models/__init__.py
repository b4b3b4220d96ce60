"""Data models and schemas."""

from critscore.models.schemas import (
    AdditionalParam,
    MetricSet,
    PagedResult,
    QuotaStatus,
    RepoRef,
    RepositoryHandle,
    ScoreRecord,
)

__all__ = [
    "AdditionalParam",
    "MetricSet",
    "PagedResult",
    "QuotaStatus",
    "RepoRef",
    "RepositoryHandle",
    "ScoreRecord",
]
