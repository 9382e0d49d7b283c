"""Checkpoint persistence: the only state carried between digest runs."""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from vimmagazine.core.config import DEFAULT_ISSUES_REPO
from vimmagazine.core.models import ScriptSnapshot, Version

LOGGER = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


class CheckpointError(Exception):
    """Raised when a checkpoint file is missing or malformed."""


@dataclass(slots=True)
class IssueCounters:
    open_count: int = 0
    closed_count: int = 0
    last_number: int = 0


@dataclass(slots=True)
class Checkpoint:
    updated: date
    vim_version: Version
    last_script_id: int
    script_snapshot: list[ScriptSnapshot] = field(default_factory=list)
    issues: IssueCounters = field(default_factory=IssueCounters)
    issues_repo: str = DEFAULT_ISSUES_REPO


def checkpoint_to_dict(checkpoint: Checkpoint) -> dict[str, Any]:
    return {
        "updated": checkpoint.updated.strftime(DATE_FORMAT),
        "vim": {"version": str(checkpoint.vim_version)},
        "script": {
            "script_id": str(checkpoint.last_script_id),
            "state": [entry.to_dict() for entry in checkpoint.script_snapshot],
        },
        checkpoint.issues_repo: {
            "opencount": checkpoint.issues.open_count,
            "closedcount": checkpoint.issues.closed_count,
            "number": checkpoint.issues.last_number,
        },
    }


def checkpoint_from_dict(payload: Any, issues_repo: str = DEFAULT_ISSUES_REPO) -> Checkpoint:
    """Validate and convert a decoded checkpoint document."""
    if not isinstance(payload, dict):
        raise CheckpointError("checkpoint must be a JSON object")
    try:
        snapshot: dict[int, ScriptSnapshot] = {}
        for entry in payload["script"]["state"]:
            item = ScriptSnapshot.from_dict(entry)
            snapshot[item.script_id] = item
        issues = payload.get(issues_repo) or {}
        return Checkpoint(
            updated=datetime.strptime(payload["updated"], DATE_FORMAT).date(),
            vim_version=Version.parse(payload["vim"]["version"]),
            last_script_id=int(payload["script"]["script_id"]),
            script_snapshot=[snapshot[script_id] for script_id in sorted(snapshot)],
            issues=IssueCounters(
                open_count=int(issues.get("opencount", 0)),
                closed_count=int(issues.get("closedcount", 0)),
                last_number=int(issues.get("number") or 0),
            ),
            issues_repo=issues_repo,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CheckpointError(f"malformed checkpoint: {exc!r}") from exc


def load_checkpoint(path: Path, issues_repo: str = DEFAULT_ISSUES_REPO) -> Checkpoint:
    if not path.exists():
        raise CheckpointError(f"checkpoint file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CheckpointError(f"cannot read checkpoint {path}: {exc}") from exc
    checkpoint = checkpoint_from_dict(payload, issues_repo=issues_repo)
    LOGGER.info("Loaded checkpoint %s (updated %s)", path, checkpoint.updated)
    return checkpoint


def save_checkpoint(path: Path, checkpoint: Checkpoint) -> None:
    """Replace the checkpoint file atomically; on failure the old file is kept."""
    text = json.dumps(checkpoint_to_dict(checkpoint), indent=2, ensure_ascii=False)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        if path.exists():
            os.chmod(tmp_name, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    LOGGER.info("Saved checkpoint %s", path)


def load_snapshot_file(path: Path) -> list[ScriptSnapshot]:
    """Load a `scriptjson` style list of reduced script records."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return [ScriptSnapshot.from_dict(entry) for entry in payload]
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        raise CheckpointError(f"cannot read script snapshot {path}: {exc!r}") from exc
