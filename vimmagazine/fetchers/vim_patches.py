"""Vim patch README parser and fetcher."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from vimmagazine.core.http import HttpFetcher
from vimmagazine.core.models import PatchRecord, Version
from vimmagazine.core.text import split_lines

LOGGER = logging.getLogger(__name__)

SOURCE_NAME = "patches"
VIMPATCH_README_URL = "http://ftp.vim.org/pub/vim/patches/{line}/README"
VIM_GITHUB_COMMIT_URL = "https://github.com/vim/vim/commit/{sha}"

# "  1234  8.0.0001  summary text"
PATCH_LINE_RE = re.compile(r"^\s*(\d+)  (\d\.\d\.\d{3,4})  (.*)$")


def parse_patch_line(line: str) -> PatchRecord | None:
    match = PATCH_LINE_RE.match(line)
    if not match:
        return None
    return PatchRecord(
        version=Version.parse(match.group(2)),
        summary=match.group(3),
        size=int(match.group(1)),
    )


def resolve_commit(record: PatchRecord, tag_map: dict[str, str]) -> PatchRecord:
    """Fill commit sha/url from the tag map; unknown tags leave both empty."""
    sha = tag_map.get(record.tag, "")
    record.commit_sha = sha
    record.commit_url = VIM_GITHUB_COMMIT_URL.format(sha=sha) if sha else ""
    return record


def sort_patches(records: Iterable[PatchRecord]) -> list[PatchRecord]:
    return sorted(records, key=lambda record: record.version)


def parse_patch_readme(text: str, tag_map: dict[str, str] | None = None) -> list[PatchRecord]:
    """Parse one patch README into records sorted by version triple."""
    tags = tag_map or {}
    records: list[PatchRecord] = []
    skipped = 0
    for line in split_lines(text):
        record = parse_patch_line(line)
        if record is None:
            skipped += 1
            continue
        records.append(resolve_commit(record, tags))
    LOGGER.debug("Parsed %d patch lines, skipped %d", len(records), skipped)
    return sort_patches(records)


def fetch_patch_readme(fetcher: HttpFetcher, release_line: str) -> str:
    url = VIMPATCH_README_URL.format(line=release_line)
    return fetcher.get_text(url, SOURCE_NAME, encoding="utf-8")


def fetch_patches(
    fetcher: HttpFetcher,
    release_lines: Iterable[str],
    tag_map: dict[str, str],
) -> list[PatchRecord]:
    """Fetch every release line README and merge them in global version order."""
    records: list[PatchRecord] = []
    for release_line in release_lines:
        readme = fetch_patch_readme(fetcher, release_line)
        line_records = parse_patch_readme(readme, tag_map)
        LOGGER.info("Fetched %d patches for Vim %s", len(line_records), release_line)
        records.extend(line_records)
    return sort_patches(records)
