"""Concurrent collection of all metrics for one repository."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable

import httpx

from critscore.analyzers.providers import MetricProviders
from critscore.errors import APIResponseError, CriticalityScoreError
from critscore.models.schemas import MetricSet

logger = logging.getLogger(__name__)


class ErrorSlot:
    """Thread-safe, set-once holder for the first provider failure."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._error: CriticalityScoreError | None = None

    def record(self, error: CriticalityScoreError) -> bool:
        """Store ``error`` unless one is already stored.

        Returns:
            True if this call set the slot.
        """
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> CriticalityScoreError | None:
        with self._lock:
            return self._error

    def raise_if_set(self) -> None:
        error = self.error
        if error is not None:
            raise error


class MetricsAggregator:
    """Runs every provider concurrently and waits for all of them.

    A failing provider does not cancel its peers. Once all have finished,
    the first recorded failure is raised and every partial result is
    discarded.
    """

    def __init__(self, providers: MetricProviders) -> None:
        self.providers = providers

    async def _guarded(self, metric: str, work: Awaitable, slot: ErrorSlot):
        try:
            return await work
        except CriticalityScoreError as e:
            error = e
        except (httpx.HTTPError, AttributeError, KeyError, TypeError, ValueError) as e:
            error = APIResponseError(f"{metric}: {e}")
            error.__cause__ = e

        logger.warning(f"Failed to compute {metric} for {self.providers.repo.full_name}: {error}")
        slot.record(error)
        return None

    async def _issue_activity(self) -> tuple[int, float]:
        updated_issues = await self.providers.updated_issues_count()
        comment_frequency = await self.providers.comment_frequency(updated_issues)
        return updated_issues, comment_frequency

    async def collect(self) -> MetricSet:
        """Collect all metrics.

        Raises:
            CriticalityScoreError: The first failure recorded by any provider.
        """
        p = self.providers
        slot = ErrorSlot()

        (
            created_since,
            updated_since,
            contributor_count,
            org_count,
            commit_frequency,
            recent_releases,
            closed_issues,
            issue_activity,
            dependents,
        ) = await asyncio.gather(
            self._guarded("created_since", p.created_since(), slot),
            self._guarded("updated_since", p.updated_since(), slot),
            self._guarded("contributor_count", p.contributor_count(), slot),
            self._guarded("org_count", p.contributor_org_count(), slot),
            self._guarded("commit_frequency", p.commit_frequency(), slot),
            self._guarded("recent_releases_count", p.recent_releases_count(), slot),
            self._guarded("closed_issues_count", p.closed_issues_count(), slot),
            self._guarded("updated_issues_count", self._issue_activity(), slot),
            self._guarded("dependents_count", p.dependents_count(), slot),
        )

        slot.raise_if_set()

        updated_issues, comment_frequency = issue_activity
        return MetricSet(
            created_since=created_since,
            updated_since=updated_since,
            contributor_count=contributor_count,
            org_count=org_count,
            commit_frequency=commit_frequency,
            recent_releases_count=recent_releases,
            closed_issues_count=closed_issues,
            updated_issues_count=updated_issues,
            comment_frequency=comment_frequency,
            dependents_count=dependents,
        )
