"""Best-effort dependents count scraped from GitHub commit search.

The count is read out of the HTML search results page, whose structure is
undocumented. Anything that doesn't match yields 0 rather than an error.
"""

import re

DEPENDENTS_REGEX = re.compile(r".*[^0-9,]([0-9,]+).*commit results")


def search_query(owner: str, name: str) -> dict[str, str]:
    """Query parameters for a commit search on the quoted ``owner/name``."""
    return {"q": f'"{owner}/{name}"', "type": "commits"}


def extract_commit_result_count(content: str, pattern: re.Pattern[str] = DEPENDENTS_REGEX) -> int:
    """Extract the number from an ``N commit results`` phrase.

    Thousands separators are stripped. Returns 0 when nothing matches.
    """
    if not content:
        return 0
    match = pattern.search(content)
    if match is None:
        return 0
    digits = match.group(1).replace(",", "").strip()
    try:
        return int(digits)
    except ValueError:
        return 0
