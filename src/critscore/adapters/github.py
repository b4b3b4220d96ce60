"""GitHub REST API client used by the metric providers."""

import logging
from datetime import datetime, timezone

import httpx

from critscore.adapters.base import BaseHostClient
from critscore.errors import (
    APIResponseError,
    MetricComputationPendingError,
    RepositoryNotFoundError,
)
from critscore.models.schemas import PagedResult, QuotaStatus, RepoRef, RepositoryHandle

logger = logging.getLogger(__name__)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise APIResponseError(f"invalid timestamp from github: {value!r}") from e


class GitHubClient(BaseHostClient):
    """Reads repository data from the GitHub API.

    A personal access token is strongly recommended: unauthenticated
    clients get 60 calls per hour, which one scoring run can exhaust.
    """

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the client.

        Args:
            token: GitHub personal access token.
            client: Optional shared httpx client. If not provided, a new
                client is created per request.
            base_url: Override for the API root (GitHub Enterprise, tests).
            timeout: Request timeout in seconds for self-created clients.
        """
        self._token = token
        self._client = client
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._timeout = timeout

        # Rate limit tracking
        self.rate_limit_remaining: int | None = None
        self.rate_limit_total: int | None = None
        self.rate_limit_reset: datetime | None = None

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self._timeout)

    def _update_rate_limits(self, response: httpx.Response) -> None:
        """Extract and store rate limit info from response headers."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        limit = response.headers.get("X-RateLimit-Limit")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining is not None:
            self.rate_limit_remaining = int(remaining)
        if limit is not None:
            self.rate_limit_total = int(limit)
        if reset is not None:
            self.rate_limit_reset = datetime.fromtimestamp(int(reset), tz=timezone.utc)

    async def _get(
        self,
        url: str,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Issue a GET and translate transport failures into APIResponseError.

        Status codes are left to the caller.
        """
        client = await self._get_client()
        try:
            response = await client.get(url, params=params, headers=headers)
        except httpx.RequestError as e:
            raise APIResponseError(f"github request error for {url}: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()
        self._update_rate_limits(response)
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise APIResponseError(
                f"github api response error {status} for {e.request.url}",
                status_code=status,
            ) from e

    def _json(self, response: httpx.Response) -> dict | list:
        try:
            return response.json()
        except ValueError as e:
            raise APIResponseError(f"invalid JSON from {response.request.url}") from e

    async def _fetch(self, path: str, params: dict | None = None) -> httpx.Response:
        """Fetch an API path and raise on any non-2xx status."""
        response = await self._get(f"{self._base_url}{path}", params=params, headers=self._headers())
        self._raise_for_status(response)
        return response

    def _paged_result(self, response: httpx.Response) -> PagedResult:
        data = self._json(response)
        if not isinstance(data, list):
            raise APIResponseError(f"expected a list from {response.request.url}")
        links = response.links
        return PagedResult(
            items=data,
            next_url=links.get("next", {}).get("url"),
            last_url=links.get("last", {}).get("url"),
        )

    async def resolve_repository(self, ref: RepoRef) -> RepositoryHandle:
        response = await self._get(
            f"{self._base_url}/repos/{ref.owner}/{ref.name}",
            headers=self._headers(),
        )
        if response.status_code == 404:
            raise RepositoryNotFoundError(ref.owner, ref.name)
        self._raise_for_status(response)

        data = self._json(response)
        if not isinstance(data, dict):
            raise APIResponseError(f"expected an object from {response.request.url}")
        created_at = parse_timestamp(data.get("created_at"))
        if created_at is None:
            raise APIResponseError(f"repository {ref.full_name} has no creation date")

        return RepositoryHandle(
            owner=(data.get("owner") or {}).get("login") or ref.owner,
            name=data.get("name") or ref.name,
            language=data.get("language"),
            created_at=created_at,
            html_url=data.get("html_url") or ref.url,
        )

    async def get_quota_status(self) -> QuotaStatus:
        """Remaining core quota.

        Uses the rate limit headers of the last API response when there is
        one, and only asks ``/rate_limit`` before the first call.
        """
        if self.rate_limit_remaining is not None:
            return QuotaStatus(
                remaining=self.rate_limit_remaining,
                limit=self.rate_limit_total,
                reset_at=self.rate_limit_reset,
            )

        response = await self._fetch("/rate_limit")
        core = self._json(response).get("resources", {}).get("core", {})

        reset_at = None
        if core.get("reset") is not None:
            reset_at = datetime.fromtimestamp(int(core["reset"]), tz=timezone.utc)

        return QuotaStatus(
            remaining=int(core.get("remaining", 0)),
            limit=core.get("limit"),
            reset_at=reset_at,
        )

    async def list_paged(
        self,
        path: str,
        params: dict | None = None,
        per_page: int = 100,
    ) -> PagedResult:
        params = dict(params or {})
        params["per_page"] = per_page
        response = await self._fetch(path, params=params)
        return self._paged_result(response)

    async def list_next(self, page: PagedResult) -> PagedResult:
        if page.next_url is None:
            return PagedResult()
        response = await self._get(page.next_url, headers=self._headers())
        self._raise_for_status(response)
        return self._paged_result(response)

    async def fetch_single(self, path: str, params: dict | None = None) -> dict | list:
        response = await self._fetch(path, params=params)
        if response.status_code == 202:
            raise MetricComputationPendingError(path)
        if response.status_code == 204:
            return []
        return self._json(response)

    async def fetch_text(self, url: str, params: dict | None = None) -> str:
        response = await self._get(url, params=params, headers={"Accept": "text/html"})
        self._raise_for_status(response)
        return response.text
