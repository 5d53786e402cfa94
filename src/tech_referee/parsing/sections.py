"""Split a raw model reply into its five named sections."""

from __future__ import annotations

import re
from typing import Any

from tech_referee.config import ParserConfig
from tech_referee.obs.logging import get_logger
from tech_referee.parsing.candidates import compile_pattern
from tech_referee.types import SECTION_KEYS, ParseFailure, SectionSet

logger = get_logger(__name__)

SECTION_LABELS: dict[str, str] = {
    "matchup": "The Matchup",
    "tape": "The Tale of the Tape",
    "verdicts": "The Verdicts",
    "hiddenTax": 'The "Hidden Tax"',
    "tieBreaker": "The Tie-Breaker",
}

_LABEL_PATTERNS: dict[str, str] = {
    "matchup": r"match[ \t-]?up",
    "tape": r"tale[ \t]+of[ \t]+the[ \t]+tape",
    "verdicts": r"verdicts?",
    "hiddenTax": r"hidden[ \t-]+tax(?:es)?",
    "tieBreaker": r"tie[ \t-]?breaker",
}

# A heading line carries a markdown `#` run or an ordinal ("1.", "2)", "3:"),
# then optional decoration (emoji, quotes, bold markers) and the label. The
# rest of the line is free; text after a `:` or dash separator is body text.
_ORDINAL = r"\d{1,2}[ \t]*[.):]"
_MARKER = (
    rf"(?:#{{1,6}}[ \t]*(?:\*\*[ \t]*)?(?:{_ORDINAL}[ \t]*)?"
    rf"|(?:\*\*[ \t]*)?{_ORDINAL}[ \t]*)"
)
_DECOR = r"[^\w\n]*?"
_INLINE_BODY = re.compile(
    r"^(?:[ \t]*\([^)\n]*\))?[^\w\n]*?[:\-–—][ \t*_]*(?P<body>[^\n]*)$"
)


def _heading_pattern(label: str) -> re.Pattern[str]:
    return compile_pattern(
        rf"^[ \t]*{_MARKER}{_DECOR}(?:the[ \t]+)?{_DECOR}(?:{label})(?!\w)(?P<trail>[^\n]*)$"
    )


HEADING_PATTERNS: dict[str, re.Pattern[str]] = {
    key: _heading_pattern(label) for key, label in _LABEL_PATTERNS.items()
}


def _body_start(match: re.Match[str]) -> int:
    inline = _INLINE_BODY.match(match.group("trail"))
    if inline is None:
        return match.end()
    return match.start("trail") + inline.start("body")


def locate_headings(raw: str) -> list[tuple[int, int, str]]:
    """Return `(start, body_start, section_key)` for every heading, in text order.

    `body_start` is the end of the heading line, or the start of same-line
    body text such as `### 1. Matchup: React vs Vue`.
    """
    headings: list[tuple[int, int, str]] = []
    for key, pattern in HEADING_PATTERNS.items():
        for match in pattern.finditer(raw):
            headings.append((match.start(), _body_start(match), key))
    headings.sort()
    return headings


def extract_sections(raw: Any, *, config: ParserConfig | None = None) -> SectionSet | ParseFailure:
    """Locate the five headings and capture the text under each.

    Sections may appear in any order. When a heading is repeated the first
    occurrence wins, and every capture stops at the next heading of any kind.
    Failures name the first missing or empty section in canonical order.
    """

    config = config or ParserConfig()
    if not isinstance(raw, str) or not raw.strip():
        return ParseFailure.section_missing(
            SECTION_KEYS[0], raw if isinstance(raw, str) else "", limit=config.excerpt_chars
        )

    headings = locate_headings(raw)
    first_spans: dict[str, tuple[int, int]] = {}
    for start, body_start, key in headings:
        first_spans.setdefault(key, (start, body_start))

    captured: dict[str, str] = {}
    for key in SECTION_KEYS:
        span = first_spans.get(key)
        if span is None:
            logger.info("section_missing", section=key, reply_length=len(raw))
            return ParseFailure.section_missing(key, raw, limit=config.excerpt_chars)

        body_start = span[1]
        body_end = next((start for start, _, _ in headings if start >= body_start), len(raw))
        content = raw[body_start:body_end].strip()
        if not content:
            logger.info("section_empty", section=key)
            return ParseFailure.section_missing(key, raw, limit=config.excerpt_chars)

        captured[key] = content
        logger.debug("section_extracted", section=key, length=len(content))

    return SectionSet(
        matchup=captured["matchup"],
        tape=captured["tape"],
        verdicts=captured["verdicts"],
        hidden_tax=captured["hiddenTax"],
        tie_breaker=captured["tieBreaker"],
    )
