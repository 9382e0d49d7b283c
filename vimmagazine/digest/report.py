"""Markdown rendering of digest sections."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from vimmagazine.core.models import IssueRecord, PatchRecord, ScriptRecord
from vimmagazine.core.text import md_escape
from vimmagazine.digest.engine import IssueSummary

RELEASE_HEADING = "リリース情報"
NEW_SCRIPTS_HEADING = "新着スクリプト"
RANKING_HEADING = "月間ダウンロードランキング"
RANKING_LIMIT = 10


@dataclass(slots=True)
class Digest:
    patches: list[PatchRecord]
    scripts: list[ScriptRecord]
    ranking: list[str]
    issues_repo: str
    issue_summary: IssueSummary
    issues: list[IssueRecord]


def link_item(label: str, url: str) -> str:
    return f"- [{md_escape(label)}]({url})"


def patch_item(patch: PatchRecord) -> str:
    return link_item(f"{patch.version} : {patch.summary}", patch.commit_url)


def script_item(script: ScriptRecord) -> str:
    return link_item(f"{script.name} : {script.summary}", script.url)


def issue_item(issue: IssueRecord) -> str:
    return link_item(f"Issue #{issue.number} : {issue.title}", issue.url)


def issue_counts_line(summary: IssueSummary) -> str:
    return "Open : %d (%+d) | Closed : %d (%+d)" % (
        summary.open_count,
        summary.open_diff,
        summary.closed_count,
        summary.closed_diff,
    )


def section(heading: str, body: Iterable[str]) -> list[str]:
    return [f"## {heading}", "", *body, ""]


def render_digest(digest: Digest) -> str:
    lines: list[str] = []
    lines += section(RELEASE_HEADING, map(patch_item, digest.patches))
    lines += section(NEW_SCRIPTS_HEADING, map(script_item, digest.scripts))
    lines += section(RANKING_HEADING, digest.ranking[:RANKING_LIMIT])
    lines += section(
        f"{digest.issues_repo} issues",
        [issue_counts_line(digest.issue_summary), "", *map(issue_item, digest.issues)],
    )
    return "\n".join(lines) + "\n"
