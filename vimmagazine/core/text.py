"""Text helpers for scraped markup and markdown output."""

from __future__ import annotations

import re

TAG_RE = re.compile(r"<[^>]*>")
ENTITY_RE = re.compile(r"&#?\w+;")
LEADING_INT_RE = re.compile(r"^\s*([-+]?\d+)")
LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")

HTML_ENTITIES = {
    "quot": '"',
    "amp": "&",
    "apos": "'",
    "lt": "<",
    "gt": ">",
    "nbsp": " ",
}

MARKDOWN_ESCAPES = (
    ("\\", "\\\\"),
    ("<", "\\<"),
    ("[", "\\["),
    ("]", "\\]"),
    ("`", "&#x60;"),
    ("_", "&#x5f;"),
    ("^", "&#x5e;"),
    ("*", "&#x2a;"),
)


def split_lines(text: str) -> list[str]:
    return LINE_SPLIT_RE.split(text)


def strip_tags(markup: str) -> str:
    return TAG_RE.sub("", markup)


def _decode_entity(match: re.Match[str]) -> str:
    entity = match.group(0)
    body = entity[1:-1]
    if not body.startswith("#"):
        return HTML_ENTITIES.get(body, entity)
    try:
        if body[1:2] in {"x", "X"}:
            codepoint = int(body[2:], 16)
        else:
            codepoint = int(body[1:], 10)
        if 0xD800 <= codepoint <= 0xDFFF:
            return entity
        return chr(codepoint)
    except (ValueError, OverflowError):
        return entity


def html_unescape(text: str) -> str:
    """Decode a small set of HTML entities in one pass.

    Named entities outside quot/amp/apos/lt/gt/nbsp and malformed character
    references are kept verbatim. Entities without the trailing semicolon are
    not recognized.
    """
    return ENTITY_RE.sub(_decode_entity, text)


def md_escape(text: str) -> str:
    """Escape text for a markdown link label without changing what it displays."""
    for raw, escaped in MARKDOWN_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def parse_leading_int(value: str) -> int:
    """Parse the leading integer of a string, returning 0 when there is none."""
    match = LEADING_INT_RE.match(value or "")
    if not match:
        return 0
    return int(match.group(1))
