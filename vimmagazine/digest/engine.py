"""What changed since the last checkpoint: new items, download ranking and
the next checkpoint value."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from vimmagazine.core.models import (
    IssueRecord,
    IssueState,
    PatchRecord,
    ScriptRecord,
    ScriptSnapshot,
    snapshot_scripts,
)
from vimmagazine.core.state import Checkpoint, IssueCounters
from vimmagazine.core.text import md_escape


@dataclass(slots=True)
class RankedScript:
    script: ScriptRecord
    downloads_diff: int


@dataclass(slots=True)
class IssueSummary:
    open_count: int
    closed_count: int
    open_diff: int
    closed_diff: int


def new_patches(patches: Iterable[PatchRecord], checkpoint: Checkpoint) -> list[PatchRecord]:
    return [patch for patch in patches if patch.version > checkpoint.vim_version]


def new_scripts(scripts: Iterable[ScriptRecord], checkpoint: Checkpoint) -> list[ScriptRecord]:
    return [script for script in scripts if script.script_id > checkpoint.last_script_id]


def new_issues(issues: Iterable[IssueRecord], checkpoint: Checkpoint) -> list[IssueRecord]:
    return [issue for issue in issues if issue.number > checkpoint.issues.last_number]


def rank_scripts(
    old_snapshot: Iterable[ScriptSnapshot],
    current: Iterable[ScriptRecord],
) -> list[RankedScript]:
    """Order scripts by downloads gained since ``old_snapshot``.

    Scripts absent from the snapshot count all of their downloads. Ties keep
    the higher script id first.
    """
    baseline = {entry.script_id: entry.downloads for entry in old_snapshot}
    ranking = [
        RankedScript(script, script.downloads - baseline.get(script.script_id, 0))
        for script in current
    ]
    ranking.sort(key=lambda item: -item.script.script_id)
    ranking.sort(key=lambda item: -item.downloads_diff)
    return ranking


def format_ranking(ranking: Iterable[RankedScript]) -> list[str]:
    lines: list[str] = []
    for rank, item in enumerate(ranking, start=1):
        label = md_escape(f"{item.script.name} : {item.script.summary}")
        lines.append(f"{rank}. [{label}]({item.script.url}) ({item.downloads_diff})")
    return lines


def count_issues(issues: Iterable[IssueRecord], state: IssueState) -> int:
    return sum(1 for issue in issues if issue.state is state)


def summarize_issues(issues: list[IssueRecord], checkpoint: Checkpoint) -> IssueSummary:
    open_count = count_issues(issues, IssueState.OPEN)
    closed_count = count_issues(issues, IssueState.CLOSED)
    return IssueSummary(
        open_count=open_count,
        closed_count=closed_count,
        open_diff=open_count - checkpoint.issues.open_count,
        closed_diff=closed_count - checkpoint.issues.closed_count,
    )


def next_checkpoint(
    previous: Checkpoint,
    patches: list[PatchRecord],
    scripts: list[ScriptRecord],
    issues: list[IssueRecord],
    today: date | None = None,
) -> Checkpoint:
    """Compute the checkpoint describing this run.

    A source that returned nothing keeps the previous maximum.
    """
    summary = summarize_issues(issues, previous)
    return Checkpoint(
        updated=today or date.today(),
        vim_version=patches[-1].version if patches else previous.vim_version,
        last_script_id=scripts[-1].script_id if scripts else previous.last_script_id,
        script_snapshot=(
            snapshot_scripts(scripts) if scripts else list(previous.script_snapshot)
        ),
        issues=IssueCounters(
            open_count=summary.open_count,
            closed_count=summary.closed_count,
            last_number=max(
                (issue.number for issue in issues), default=previous.issues.last_number
            ),
        ),
        issues_repo=previous.issues_repo,
    )
