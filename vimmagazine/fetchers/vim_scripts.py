"""Parser and fetcher for the vim.org script directory listing.

The listing is one large Latin-1 HTML page. Every script occupies five table
cells marked with a ``rowodd``/``roweven`` class, one cell per line:

1. link carrying ``script_id=N`` and the script name
2. script type (overwritten by the next cell)
3. rating
4. downloads
5. summary
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from vimmagazine.core.http import HttpFetcher
from vimmagazine.core.models import ScriptRecord
from vimmagazine.core.text import html_unescape, parse_leading_int, split_lines, strip_tags

LOGGER = logging.getLogger(__name__)

SOURCE_NAME = "scripts"
SOURCE_ENCODING = "iso-8859-1"
VIMSCRIPT_LIST_URL = "https://vim.sourceforge.io/scripts/script_search_results.php?&show_me=99999"

ROW_MARKER_RE = re.compile(r"rowodd|roweven")
SCRIPT_ID_RE = re.compile(r"script_id=(\d+)")
CELLS_PER_SCRIPT = 5


def iter_row_cells(html: str) -> Iterable[str]:
    for line in split_lines(html):
        line = line.strip()
        if ROW_MARKER_RE.search(line):
            yield line


def parse_script_listing(html: str) -> list[ScriptRecord]:
    """Parse the listing into records sorted by script id.

    Cells are consumed in fixed groups of five. A group can only open on a
    cell carrying ``script_id=``; stray cells before that are dropped. A
    trailing incomplete group is discarded.
    """
    records: list[ScriptRecord] = []
    record: ScriptRecord | None = None
    position = 0
    for cell in iter_row_cells(html):
        if position == 0:
            match = SCRIPT_ID_RE.search(cell)
            if not match:
                LOGGER.debug("Skipping listing cell outside a script group: %.80s", cell)
                continue
            record = ScriptRecord(
                script_id=int(match.group(1)),
                name=html_unescape(strip_tags(cell)),
            )
        elif position == 1:
            # script type cell, superseded by the rating cell
            pass
        elif position == 2:
            record.rating = parse_leading_int(strip_tags(cell))
        elif position == 3:
            record.downloads = parse_leading_int(strip_tags(cell))
        else:
            record.summary = html_unescape(strip_tags(cell))
        position += 1
        if position == CELLS_PER_SCRIPT:
            records.append(record)
            record = None
            position = 0
    if position:
        LOGGER.debug("Discarding incomplete script group at end of listing")
    return sorted(records, key=lambda item: item.script_id)


def decode_listing(content: bytes) -> str:
    # Characters outside Latin-1 are already lost upstream.
    return content.decode(SOURCE_ENCODING)


def fetch_scripts(fetcher: HttpFetcher, url: str = VIMSCRIPT_LIST_URL) -> list[ScriptRecord]:
    html = decode_listing(fetcher.get(url, SOURCE_NAME).content)
    records = parse_script_listing(html)
    LOGGER.info("Fetched %d scripts from the script directory", len(records))
    return records

