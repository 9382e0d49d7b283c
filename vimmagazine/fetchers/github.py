"""GitHub API readers: tag refs for patch resolution and paginated issues."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from vimmagazine.core.http import GITHUB_API_BASE, FetchError, HttpFetcher, next_page_url
from vimmagazine.core.models import IssueRecord, IssueState

LOGGER = logging.getLogger(__name__)

TAGS_SOURCE = "tags"
ISSUES_SOURCE = "issues"
GITHUBAPI_TAG_LIST_URL = GITHUB_API_BASE + "/repos/{owner}/{repo}/git/refs/tags"
GITHUBAPI_ISSUE_LIST_URL = GITHUB_API_BASE + "/repos/{owner}/{repo}/issues"
ISSUES_PER_PAGE = 100
TAG_REF_PREFIX = "refs/tags/"


def iter_json_pages(fetcher: HttpFetcher, url: str, source: str) -> Iterator[list[Any]]:
    """Yield each JSON array page, following ``rel="next"`` links until none remain."""
    next_url: str | None = url
    while next_url:
        payload, response = fetcher.get_json(next_url, source)
        if isinstance(payload, dict):
            # A single ref lookup returns an object instead of an array.
            payload = [payload]
        if not isinstance(payload, list):
            raise FetchError(source, next_url, f"unexpected payload type {type(payload).__name__}")
        yield payload
        next_url = next_page_url(response)


def parse_tag_refs(refs: list[Any]) -> dict[str, str]:
    tags: dict[str, str] = {}
    for ref in refs:
        if not isinstance(ref, dict):
            continue
        name = str(ref.get("ref") or "")
        sha = (ref.get("object") or {}).get("sha")
        if not name.startswith(TAG_REF_PREFIX) or not sha:
            LOGGER.debug("Skipping malformed tag ref: %r", ref)
            continue
        tags[name[len(TAG_REF_PREFIX):]] = str(sha)
    return tags


def fetch_tag_map(fetcher: HttpFetcher, owner: str = "vim", repo: str = "vim") -> dict[str, str]:
    """Build the tag name -> commit sha map used for patch resolution."""
    url = GITHUBAPI_TAG_LIST_URL.format(owner=owner, repo=repo)
    tags: dict[str, str] = {}
    for page in iter_json_pages(fetcher, url, TAGS_SOURCE):
        tags.update(parse_tag_refs(page))
    LOGGER.info("Fetched %d tags for %s/%s", len(tags), owner, repo)
    return tags


def parse_issue(item: Any) -> IssueRecord | None:
    if not isinstance(item, dict):
        return None
    try:
        return IssueRecord(
            number=int(item["number"]),
            title=str(item.get("title") or ""),
            url=str(item.get("html_url") or ""),
            state=IssueState(item.get("state")),
        )
    except (KeyError, TypeError, ValueError):
        LOGGER.debug("Skipping malformed issue item: %r", item)
        return None


def issue_list_url(owner: str, repo: str, state: IssueState) -> str:
    base = GITHUBAPI_ISSUE_LIST_URL.format(owner=owner, repo=repo)
    return f"{base}?per_page={ISSUES_PER_PAGE}&state={state.value}"


def fetch_issues(fetcher: HttpFetcher, owner: str, repo: str) -> list[IssueRecord]:
    """Fetch open then closed issues and sort them by number.

    The two result sets are concatenated as returned; an issue reported under
    both states would appear twice.
    """
    issues: list[IssueRecord] = []
    for state in (IssueState.OPEN, IssueState.CLOSED):
        url = issue_list_url(owner, repo, state)
        for page in iter_json_pages(fetcher, url, ISSUES_SOURCE):
            issues.extend(issue for issue in map(parse_issue, page) if issue is not None)
    issues.sort(key=lambda issue: issue.number)
    LOGGER.info("Fetched %d issues for %s/%s", len(issues), owner, repo)
    return issues
