"""End-to-end criticality scoring for a single repository."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

import httpx

from critscore.adapters.base import BaseHostClient, parse_repo_url
from critscore.adapters.github import GitHubClient
from critscore.analyzers.aggregator import MetricsAggregator
from critscore.analyzers.providers import MetricProviders
from critscore.analyzers.quota import QuotaGuard
from critscore.analyzers.scorer import Scorer, parse_additional_params
from critscore.config import Settings
from critscore.models.schemas import RepositoryHandle, ScoreRecord

logger = logging.getLogger(__name__)


class CriticalityPipeline:
    """Orchestrates a scoring run.

    Pipeline stages:
    1. Parse and validate additional params (no network)
    2. Wait out an exhausted API quota
    3. Collect all metrics concurrently
    4. Calculate the score
    """

    def __init__(
        self,
        github_token: str | None = None,
        settings: Settings | None = None,
        client: BaseHostClient | None = None,
        scorer: Scorer | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the pipeline.

        Args:
            github_token: GitHub personal access token.
            settings: Collection and quota tunables.
            client: Host client to use instead of a GitHubClient.
            scorer: Scorer to use instead of the default weight tables.
            clock: Source of "now" for age metrics and timestamps.
            sleep: Coroutine used for quota and retry pauses.
        """
        self.settings = settings or Settings()
        self._github_token = github_token
        self._http_client: httpx.AsyncClient | None = None
        self.client = client
        self.scorer = scorer or Scorer()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep

    async def __aenter__(self) -> "CriticalityPipeline":
        """Set up a shared HTTP client."""
        if self.client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.http_timeout)
            self.client = GitHubClient(
                token=self._github_token,
                client=self._http_client,
                base_url=self.settings.api_base_url,
            )
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _require_client(self) -> BaseHostClient:
        if self.client is None:
            raise RuntimeError("CriticalityPipeline must be used as an async context manager")
        return self.client

    def _quota_guard(self) -> QuotaGuard:
        return QuotaGuard(
            self._require_client(),
            floor=self.settings.quota_floor,
            fallback_sleep=self.settings.quota_fallback_sleep,
            sleep=self._sleep,
            clock=self._clock,
        )

    async def load_repository(self, repo_url: str) -> RepositoryHandle:
        """Resolve a repository URL.

        Raises:
            InvalidIdentifierError: If the URL isn't a GitHub repository URL.
            RepositoryNotFoundError: If the repository doesn't exist.
        """
        ref = parse_repo_url(repo_url)
        client = self._require_client()
        await self._quota_guard().wait_if_exhausted()
        return await client.resolve_repository(ref)

    async def compute_score(
        self,
        repo: RepositoryHandle,
        params: list[str] | None = None,
    ) -> ScoreRecord:
        """Collect every metric for ``repo`` and score it.

        Args:
            repo: A resolved repository.
            params: Additional ``value:weight:max_threshold`` signals.

        Raises:
            InvalidAdditionalParamError: Before any API call, for a malformed param.
            MetricComputationPendingError: If GitHub is still computing statistics.
            APIResponseError: If any metric could not be fetched.
        """
        additional_params = parse_additional_params(params)
        self.scorer.validate(additional_params)

        client = self._require_client()
        await self._quota_guard().wait_if_exhausted()

        providers = MetricProviders(
            client,
            repo,
            settings=self.settings,
            clock=self._clock,
            sleep=self._sleep,
        )
        logger.info(f"Collecting metrics for {repo.full_name}")
        metrics = await MetricsAggregator(providers).collect()

        record = self.scorer.score_record(repo, metrics, additional_params, scored_on=self._clock())
        logger.info(f"Scored {repo.full_name}: {record.criticality_score}")
        return record

    async def score_url(self, repo_url: str, params: list[str] | None = None) -> ScoreRecord:
        """Resolve ``repo_url`` and score it.

        Params are validated before the repository is resolved.
        """
        self.scorer.validate(parse_additional_params(params))
        repo = await self.load_repository(repo_url)
        return await self.compute_score(repo, params)
