"""Item counts derived from pagination links.

Requesting a list endpoint with ``per_page=1`` makes the page number in the
``rel="last"`` link equal to the number of items, so one request is enough
to count a collection of any size.
"""

import httpx

from critscore.models.schemas import PagedResult


def last_page_number(last_url: str | None) -> int:
    """Return the ``page`` query parameter of a last-page URL.

    Returns 0 when there is no URL or it has no integer page number.
    """
    if not last_url:
        return 0
    try:
        page = httpx.URL(last_url).params.get("page")
    except httpx.InvalidURL:
        return 0
    if page is None:
        return 0
    try:
        return int(page)
    except ValueError:
        return 0


def total_count(page: PagedResult) -> int:
    """Count the items of a ``per_page=1`` listing from its last-page link.

    A single-page listing has no last link and counts as 0.
    """
    return last_page_number(page.last_url)
