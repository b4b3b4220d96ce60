"""
Tests for the metric providers

Tests cover:
- Organization name normalization
- Month arithmetic
- Each provider against a fake GitHub API
- Release estimation from tags
- Commit statistics still being computed
- Dependents scrape retries and best-effort parsing
"""

from datetime import timedelta

import httpx
import pytest

from critscore.analyzers.providers import MetricProviders, months_between, normalize_org_name
from critscore.errors import APIResponseError, MetricComputationPendingError
from fakes import paged

REPO = "/repos/acme/widget"


@pytest.fixture
def providers(github_client, repo_handle, settings, clock, no_sleep):
    return MetricProviders(github_client, repo_handle, settings=settings, clock=clock, sleep=no_sleep)


def iso(moment) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


class TestNormalizeOrgName:
    """Test company string normalization"""

    @pytest.mark.parametrize("company", ["Acme Inc.", "ACME, LLC", "@Acme", "Acme ", "acme,"])
    def test_variants_collapse(self, company):
        assert normalize_org_name(company) == "acme"

    def test_internal_spaces_removed(self):
        assert normalize_org_name("Big Co") == "bigco"


class TestMonthsBetween:
    """Test 30-day month rounding"""

    def test_rounds_half_away(self, now):
        assert months_between(now - timedelta(days=45), now) == 2
        assert months_between(now - timedelta(days=44), now) == 1

    def test_same_moment(self, now):
        assert months_between(now, now) == 0


class TestAgeProviders:
    """Test created_since and updated_since"""

    @pytest.mark.asyncio
    async def test_created_since(self, providers, repo_handle, now):
        assert await providers.created_since() == months_between(repo_handle.created_at, now)
        assert await providers.created_since() == 122

    @pytest.mark.asyncio
    async def test_updated_since_uses_latest_commit(self, providers, fake_github, now):
        commit = {"commit": {"author": {"date": iso(now - timedelta(days=95))}}}
        fake_github.add(f"{REPO}/commits", paged([commit]))

        assert await providers.updated_since() == 3
        assert fake_github.calls(f"{REPO}/commits")[0].url.params["per_page"] == "1"

    @pytest.mark.asyncio
    async def test_updated_since_empty_repository_counts_from_creation(self, providers, fake_github):
        fake_github.add(f"{REPO}/commits", httpx.Response(409, json={"message": "Git Repository is empty."}))

        assert await providers.updated_since() == 122

    @pytest.mark.asyncio
    async def test_updated_since_empty_listing_counts_from_creation(self, providers, fake_github):
        fake_github.add(f"{REPO}/commits", paged([]))

        assert await providers.updated_since() == 122

    @pytest.mark.asyncio
    async def test_updated_since_api_error(self, providers, fake_github):
        fake_github.add(f"{REPO}/commits", httpx.Response(500))

        with pytest.raises(APIResponseError):
            await providers.updated_since()


class TestContributorProviders:
    """Test contributor and organization counts"""

    @pytest.mark.asyncio
    async def test_contributor_count_from_last_page(self, providers, fake_github):
        fake_github.add(f"{REPO}/contributors", paged([{"login": "a"}], last_page=100, next_page=2))

        assert await providers.contributor_count() == 100
        params = fake_github.calls(f"{REPO}/contributors")[0].url.params
        assert params["anon"] == "true"
        assert params["per_page"] == "1"

    @pytest.mark.asyncio
    async def test_contributor_org_count(self, providers, fake_github):
        contributors = [{"login": name} for name in ("ann", "bob", "cat", "dan", "eve", "fay")]
        fake_github.add(f"{REPO}/contributors", paged(contributors, per_page=100))
        companies = {
            "ann": "Acme Inc.",
            "bob": "ACME, LLC",
            "cat": "@globex",
            "dan": "Initech",
            "eve": None,
        }
        for login, company in companies.items():
            fake_github.add(f"/users/{login}", httpx.Response(200, json={"login": login, "company": company}))
        # fay's lookup 404s and is skipped

        assert await providers.contributor_org_count() == 3
        assert fake_github.calls(f"{REPO}/contributors")[0].url.params["anon"] == "false"

    @pytest.mark.asyncio
    async def test_contributor_org_count_limited_to_top(self, providers, fake_github, settings):
        contributors = [{"login": f"user{i}"} for i in range(40)]
        fake_github.add(f"{REPO}/contributors", paged(contributors, per_page=100))

        def user(request):
            login = request.url.path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={"login": login, "company": f"Org {login}"})

        for i in range(40):
            fake_github.add(f"/users/user{i}", user)

        assert await providers.contributor_org_count() == settings.top_contributor_count
        user_calls = [r for r in fake_github.requests if r.url.path.startswith("/users/")]
        assert len(user_calls) == settings.top_contributor_count

    @pytest.mark.asyncio
    async def test_contributor_org_count_placeholder_for_huge_projects(self, providers, fake_github):
        contributors = [{"login": f"user{i}"} for i in range(100)]
        fake_github.add(
            f"{REPO}/contributors",
            paged(contributors, last_page=51, next_page=2, per_page=100),
        )

        assert await providers.contributor_org_count() == 10
        assert not [r for r in fake_github.requests if r.url.path.startswith("/users/")]


class TestCommitFrequency:
    """Test weekly commit average"""

    @pytest.mark.asyncio
    async def test_average_over_52_weeks(self, providers, fake_github):
        weeks = [{"total": 50, "week": i} for i in range(52)]
        fake_github.add(f"{REPO}/stats/commit_activity", httpx.Response(200, json=weeks))

        assert await providers.commit_frequency() == 50.0

    @pytest.mark.asyncio
    async def test_rounds_to_one_decimal(self, providers, fake_github):
        weeks = [{"total": 1}] * 10
        fake_github.add(f"{REPO}/stats/commit_activity", httpx.Response(200, json=weeks))

        assert await providers.commit_frequency() == 0.2

    @pytest.mark.asyncio
    async def test_still_computing(self, providers, fake_github):
        fake_github.add(f"{REPO}/stats/commit_activity", httpx.Response(202, json={}))

        with pytest.raises(MetricComputationPendingError, match="commit frequency"):
            await providers.commit_frequency()


class TestRecentReleases:
    """Test release counting and the tag-based estimate"""

    @pytest.mark.asyncio
    async def test_counts_releases_in_window_across_pages(self, providers, fake_github, now):
        recent = [{"created_at": iso(now - timedelta(days=d))} for d in (1, 30, 200)]
        old = [{"created_at": iso(now - timedelta(days=400))}]

        def releases(request):
            if request.url.params.get("page") == "2":
                return paged(old + recent[2:], path=f"{REPO}/releases", per_page=100)
            return paged(recent[:2], path=f"{REPO}/releases", next_page=2, last_page=2, per_page=100)

        fake_github.add(f"{REPO}/releases", releases)

        assert await providers.recent_releases_count() == 3
        assert len(fake_github.calls(f"{REPO}/releases")) == 2

    @pytest.mark.asyncio
    async def test_estimates_from_tags_without_recent_releases(self, providers, fake_github, repo_handle, now):
        fake_github.add(f"{REPO}/releases", paged([{"created_at": iso(now - timedelta(days=800))}]))
        fake_github.add(f"{REPO}/tags", paged([{"name": "v1"}], last_page=100))

        days = int((now - repo_handle.created_at).total_seconds() // 86400)
        assert await providers.recent_releases_count() == int(100 / days * 365)
        assert await providers.recent_releases_count() == 9

    @pytest.mark.asyncio
    async def test_no_releases_and_no_tags(self, providers, fake_github):
        fake_github.add(f"{REPO}/releases", paged([]))
        fake_github.add(f"{REPO}/tags", paged([]))

        assert await providers.recent_releases_count() == 0


class TestIssueProviders:
    """Test issue and comment counts"""

    @pytest.fixture
    def issues_route(self, fake_github):
        def issues(request):
            last = {"all": 30, "closed": 20}[request.url.params["state"]]
            return paged([{"number": 1}], last_page=last)

        fake_github.add(f"{REPO}/issues", issues)

    @pytest.mark.asyncio
    async def test_closed_and_updated_counts(self, providers, fake_github, issues_route, now):
        assert await providers.closed_issues_count() == 20
        assert await providers.updated_issues_count() == 30

        request = fake_github.calls(f"{REPO}/issues")[0]
        assert request.url.params["since"] == iso(now - timedelta(days=90))
        assert request.url.params["per_page"] == "1"

    @pytest.mark.asyncio
    async def test_comment_frequency(self, providers, fake_github):
        fake_github.add(f"{REPO}/issues/comments", paged([{"id": 1}], last_page=60))

        assert await providers.comment_frequency(30) == 2.0

    @pytest.mark.asyncio
    async def test_comment_frequency_without_issues_skips_call(self, providers, fake_github):
        assert await providers.comment_frequency(0) == 0.0
        assert not fake_github.requests


class TestDependents:
    """Test the commit search scrape"""

    @pytest.mark.asyncio
    async def test_extracts_count(self, providers, fake_github):
        html = "<div><h3>\n  Showing 12,345 available commit results\n</h3></div>"
        fake_github.add("/search", httpx.Response(200, text=html))

        assert await providers.dependents_count() == 12345
        request = fake_github.calls("/search")[0]
        assert request.url.host == "github.com"
        assert request.url.params["q"] == '"acme/widget"'
        assert request.url.params["type"] == "commits"

    @pytest.mark.asyncio
    async def test_no_match_is_zero(self, providers, fake_github):
        fake_github.add("/search", httpx.Response(200, text="<html>Sign in to search</html>"))

        assert await providers.dependents_count() == 0

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, providers, fake_github, no_sleep):
        responses = iter([httpx.Response(429), httpx.Response(200, text="<p> 7 commit results</p>")])
        fake_github.add("/search", lambda request: next(responses))

        assert await providers.dependents_count() == 7
        assert no_sleep.slept == [0.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self, providers, fake_github, no_sleep):
        fake_github.add("/search", httpx.Response(503))

        assert await providers.dependents_count() == 0
        assert len(fake_github.calls("/search")) == 3
        assert len(no_sleep.slept) == 2
