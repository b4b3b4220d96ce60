"""Abstract base class for code-hosting API clients."""

from abc import ABC, abstractmethod
from urllib.parse import urlparse

from critscore.errors import InvalidIdentifierError
from critscore.models.schemas import PagedResult, QuotaStatus, RepoRef, RepositoryHandle

GITHUB_HOST = "github.com"


class BaseHostClient(ABC):
    """Base class for the remote API the metric providers read from.

    Implementations own transport, authentication and rate-limit header
    tracking. Every method raises ``APIResponseError`` on remote failure.
    """

    @abstractmethod
    async def resolve_repository(self, ref: RepoRef) -> RepositoryHandle:
        """Fetch repository metadata.

        Raises:
            RepositoryNotFoundError: If the repository doesn't exist.
        """
        ...

    @abstractmethod
    async def get_quota_status(self) -> QuotaStatus:
        """Return the remaining core API quota."""
        ...

    @abstractmethod
    async def list_paged(
        self,
        path: str,
        params: dict | None = None,
        per_page: int = 100,
    ) -> PagedResult:
        """Fetch the first page of a list endpoint with its pagination links."""
        ...

    @abstractmethod
    async def list_next(self, page: PagedResult) -> PagedResult:
        """Fetch the page following ``page``."""
        ...

    @abstractmethod
    async def fetch_single(self, path: str, params: dict | None = None) -> dict | list:
        """Fetch a single JSON document.

        Raises:
            MetricComputationPendingError: If the statistic is still being computed.
        """
        ...

    @abstractmethod
    async def fetch_text(self, url: str, params: dict | None = None) -> str:
        """Fetch a raw page from an absolute URL."""
        ...

    async def list_all(
        self,
        path: str,
        params: dict | None = None,
        per_page: int = 100,
    ) -> list:
        """Fetch every page of a list endpoint by following ``next`` links."""
        page = await self.list_paged(path, params=params, per_page=per_page)
        results = list(page.items)
        while page.has_next_page:
            page = await self.list_next(page)
            results.extend(page.items)
        return results


def parse_repo_url(url: str) -> RepoRef:
    """Parse a GitHub repository URL into a RepoRef.

    Accepts ``https://github.com/owner/repo`` as well as scheme-less
    ``github.com/owner/repo``; extra path segments are ignored.

    Raises:
        InvalidIdentifierError: For empty input, another host, or a path
            without both owner and name.
    """
    if not url:
        raise InvalidIdentifierError(url)

    candidate = url if "://" in url else f"https://{url}"

    try:
        parsed = urlparse(candidate)
    except ValueError as e:
        raise InvalidIdentifierError(url) from e

    if parsed.netloc != GITHUB_HOST:
        raise InvalidIdentifierError(url)

    parts = parsed.path.split("/")
    if len(parts) < 3 or not parts[1] or not parts[2]:
        raise InvalidIdentifierError(url)

    return RepoRef(owner=parts[1], name=parts[2])
