"""The nine repository metrics behind the criticality score.

Each provider is an independent read against the GitHub API. Providers
raise on failure; the aggregator decides what a failure means for the run.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

from critscore.adapters.base import BaseHostClient
from critscore.adapters.github import parse_timestamp
from critscore.analyzers.dependents import extract_commit_result_count, search_query
from critscore.analyzers.pagination import last_page_number, total_count
from critscore.analyzers.rounding import round_half_away
from critscore.config import Settings
from critscore.errors import APIResponseError, MetricComputationPendingError
from critscore.models.schemas import RepositoryHandle

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30.0
WEEKS_PER_YEAR = 52.0
CONTRIBUTOR_PAGE_SIZE = 100

_ORG_NOISE = re.compile(r"inc\.|llc|@| ")


def months_between(start: datetime, end: datetime) -> int:
    """Whole months (30-day) from start to end, rounded half away from zero."""
    days = (end - start).total_seconds() / 86400.0
    return int(round_half_away(days / DAYS_PER_MONTH))


def normalize_org_name(company: str) -> str:
    """Canonical form of a free-text company field.

    Lowercases, drops "inc." / "llc" / "@" / spaces and trailing commas, so
    "Acme Inc.", "ACME, LLC" and "@Acme" all become "acme".
    """
    name = _ORG_NOISE.sub("", company.lower())
    return name.rstrip(",")


def github_since(moment: datetime) -> str:
    """Format a timestamp for GitHub's ``since`` filters."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class MetricProviders:
    """Computes each metric for a single resolved repository."""

    def __init__(
        self,
        client: BaseHostClient,
        repo: RepositoryHandle,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.repo = repo
        self.settings = settings or Settings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.repo.owner}/{self.repo.name}"

    def _now(self) -> datetime:
        return self._clock()

    def _issues_since(self) -> str:
        return github_since(self._now() - timedelta(days=self.settings.issue_lookback_days))

    async def created_since(self) -> int:
        """Months since the repository was created."""
        return months_between(self.repo.created_at, self._now())

    async def updated_since(self) -> int:
        """Months since the most recent commit.

        A repository with no commits counts from its creation date. GitHub
        answers 409 for the commit listing of an empty repository.
        """
        try:
            page = await self.client.list_paged(f"{self._repo_path}/commits", per_page=1)
        except APIResponseError as e:
            if e.status_code != 409:
                raise
            logger.debug(f"{self.repo.full_name} has no commits, counting from creation")
            return months_between(self.repo.created_at, self._now())

        if not page.items:
            return months_between(self.repo.created_at, self._now())

        commit = page.items[0].get("commit") or {}
        date_str = (commit.get("author") or {}).get("date") or (commit.get("committer") or {}).get("date")
        last_commit = parse_timestamp(date_str)
        if last_commit is None:
            raise APIResponseError(f"latest commit of {self.repo.full_name} has no date")
        return months_between(last_commit, self._now())

    async def contributor_count(self) -> int:
        """Number of contributors, anonymous ones included."""
        page = await self.client.list_paged(
            f"{self._repo_path}/contributors",
            params={"anon": "true"},
            per_page=1,
        )
        return total_count(page)

    async def contributor_org_count(self) -> int:
        """Distinct organizations among the top contributors.

        Looks up the ``company`` of each of the top contributors (by
        contribution count, anonymous excluded). Very large projects skip
        the per-user lookups and get a fixed placeholder instead.
        """
        page = await self.client.list_paged(
            f"{self._repo_path}/contributors",
            params={"anon": "false"},
            per_page=CONTRIBUTOR_PAGE_SIZE,
        )

        estimated_total = last_page_number(page.last_url) * CONTRIBUTOR_PAGE_SIZE or len(page.items)
        if estimated_total > self.settings.large_contributor_cap:
            logger.debug(
                f"{self.repo.full_name} has ~{estimated_total} contributors, "
                f"using placeholder org count {self.settings.large_contributor_org_placeholder}"
            )
            return self.settings.large_contributor_org_placeholder

        orgs: set[str] = set()
        for contributor in page.items[: self.settings.top_contributor_count]:
            login = contributor.get("login")
            if not login:
                continue
            try:
                user = await self.client.fetch_single(f"/users/{login}")
            except APIResponseError as e:
                logger.debug(f"Skipping contributor {login}: {e}")
                continue

            company = user.get("company") if isinstance(user, dict) else None
            if not company:
                continue
            name = normalize_org_name(company)
            if name:
                orgs.add(name)

        return len(orgs)

    async def commit_frequency(self) -> float:
        """Average weekly commits over the last year, to one decimal."""
        try:
            weeks = await self.client.fetch_single(f"{self._repo_path}/stats/commit_activity")
        except MetricComputationPendingError as e:
            raise MetricComputationPendingError("commit frequency") from e

        total = sum(week.get("total", 0) for week in weeks or [])
        return round_half_away(total / WEEKS_PER_YEAR, 1)

    async def recent_releases_count(self) -> int:
        """Releases created within the release lookback window.

        Projects that tag without publishing releases get an estimate:
        total tags per day since creation, scaled to the lookback window.
        """
        lookback = self.settings.release_lookback_days
        now = self._now()
        releases = await self.client.list_all(f"{self._repo_path}/releases", per_page=100)

        total = 0
        for release in releases:
            created_at = parse_timestamp(release.get("created_at"))
            if created_at is None:
                continue
            if (now - created_at).total_seconds() / 86400.0 > lookback:
                continue
            total += 1

        if total > 0:
            return total

        days_since_creation = int((now - self.repo.created_at).total_seconds() // 86400)
        if days_since_creation <= 0:
            return 0

        page = await self.client.list_paged(f"{self._repo_path}/tags", per_page=1)
        total_tags = total_count(page)
        return int(total_tags / days_since_creation * lookback)

    async def closed_issues_count(self) -> int:
        """Issues closed within the issue lookback window."""
        return await self._issue_count("closed")

    async def updated_issues_count(self) -> int:
        """Issues of any state updated within the issue lookback window."""
        return await self._issue_count("all")

    async def _issue_count(self, state: str) -> int:
        page = await self.client.list_paged(
            f"{self._repo_path}/issues",
            params={"state": state, "since": self._issues_since()},
            per_page=1,
        )
        return total_count(page)

    async def comment_frequency(self, issue_count: int) -> float:
        """Issue comments per updated issue in the lookback window."""
        if issue_count == 0:
            return 0.0

        page = await self.client.list_paged(
            f"{self._repo_path}/issues/comments",
            params={"since": self._issues_since()},
            per_page=1,
        )
        comment_count = total_count(page)
        return round_half_away(comment_count / issue_count, 1)

    async def dependents_count(self) -> int:
        """Commit search hits mentioning ``owner/name``.

        Retries the fetch a fixed number of times; an unreachable or
        unrecognizable page counts as 0 dependents.
        """
        params = search_query(self.repo.owner, self.repo.name)
        retries = self.settings.dependents_retries
        content = ""

        for attempt in range(1, retries + 1):
            try:
                content = await self.client.fetch_text(self.settings.search_url, params=params)
                break
            except APIResponseError as e:
                logger.debug(f"Dependents search attempt {attempt}/{retries} failed: {e}")
                if attempt < retries:
                    await self._sleep(self.settings.dependents_retry_delay)

        return extract_commit_result_count(content)
