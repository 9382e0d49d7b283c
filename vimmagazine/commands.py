"""Command implementations.

Every command writes its report to ``out`` only after all sources have been
fetched, so a failing source never leaves a partial report behind.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import TextIO

from vimmagazine.core.config import split_owner_repo
from vimmagazine.core.http import HttpFetcher
from vimmagazine.core.models import ScriptRecord, snapshot_scripts
from vimmagazine.core.state import Checkpoint, load_checkpoint, load_snapshot_file, save_checkpoint
from vimmagazine.digest.engine import (
    format_ranking,
    new_issues,
    new_patches,
    new_scripts,
    next_checkpoint,
    rank_scripts,
    summarize_issues,
)
from vimmagazine.digest.report import Digest, issue_item, patch_item, render_digest, script_item
from vimmagazine.fetchers.github import fetch_issues, fetch_tag_map
from vimmagazine.fetchers.vim_patches import fetch_patches
from vimmagazine.fetchers.vim_scripts import fetch_scripts

LOGGER = logging.getLogger(__name__)


def _write_lines(out: TextIO, lines: list[str]) -> None:
    out.write("".join(f"{line}\n" for line in lines))


def cmd_patchlist(fetcher: HttpFetcher, out: TextIO) -> None:
    tag_map = fetch_tag_map(fetcher)
    patches = fetch_patches(fetcher, fetcher.settings.patch_lines, tag_map)
    _write_lines(out, [patch_item(patch) for patch in patches])


def cmd_scriptlist(fetcher: HttpFetcher, out: TextIO) -> None:
    _write_lines(out, [script_item(script) for script in fetch_scripts(fetcher)])


def cmd_githubissuelist(fetcher: HttpFetcher, out: TextIO, owner: str, repo: str) -> None:
    issues = fetch_issues(fetcher, owner, repo)
    _write_lines(out, [issue_item(issue) for issue in issues])


def cmd_scriptjson(fetcher: HttpFetcher, out: TextIO) -> None:
    snapshot = snapshot_scripts(fetch_scripts(fetcher))
    out.write(json.dumps([entry.to_dict() for entry in snapshot], indent=2, ensure_ascii=False))
    out.write("\n")


def cmd_scriptranking(out: TextIO, old_file: Path, cur_file: Path) -> None:
    """Rank two `scriptjson` snapshots; names and summaries are not part of them."""
    old_snapshot = load_snapshot_file(old_file)
    current = [
        ScriptRecord(script_id=entry.script_id, rating=entry.rating, downloads=entry.downloads)
        for entry in load_snapshot_file(cur_file)
    ]
    _write_lines(out, format_ranking(rank_scripts(old_snapshot, current)))


def cmd_generate(
    fetcher: HttpFetcher,
    out: TextIO,
    state_file: Path,
    update: bool = False,
    issues_repo: str | None = None,
    today: date | None = None,
) -> Checkpoint:
    """Render the digest since the checkpoint in ``state_file``.

    The next checkpoint is always computed and returned; it replaces
    ``state_file`` only when ``update`` is set.
    """
    repo_key = issues_repo or fetcher.settings.issues_repo
    owner, repo = split_owner_repo(repo_key)
    checkpoint = load_checkpoint(state_file, issues_repo=repo_key)

    tag_map = fetch_tag_map(fetcher)
    patches = fetch_patches(fetcher, fetcher.settings.patch_lines, tag_map)
    scripts = fetch_scripts(fetcher)
    issues = fetch_issues(fetcher, owner, repo)

    digest = Digest(
        patches=new_patches(patches, checkpoint),
        scripts=new_scripts(scripts, checkpoint),
        ranking=format_ranking(rank_scripts(checkpoint.script_snapshot, scripts)),
        issues_repo=repo_key,
        issue_summary=summarize_issues(issues, checkpoint),
        issues=new_issues(issues, checkpoint),
    )
    out.write(render_digest(digest))

    updated = next_checkpoint(checkpoint, patches, scripts, issues, today=today)
    if update:
        save_checkpoint(state_file, updated)
    else:
        LOGGER.info("Checkpoint not updated (pass --update to persist it)")
    return updated
