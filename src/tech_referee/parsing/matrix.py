"""Dimension-matrix parsing for the "Tale of the Tape" section."""

from __future__ import annotations

import re

from tech_referee.config import ParserConfig
from tech_referee.obs.logging import get_logger
from tech_referee.parsing.candidates import (
    Candidate,
    CandidateChain,
    clean_capture,
    compile_pattern,
)
from tech_referee.types import DIMENSION_KEYS, DimensionMatrix, DimensionPair, ParseFailure

logger = get_logger(__name__)

DIMENSION_ALIASES: dict[str, tuple[str, ...]] = {
    "speed": ("speed",),
    "cost": ("cost", "costs"),
    "developerExperience": ("developer experience", "dx"),
    "scalability": ("scalability",),
    "maintainability": ("maintainability",),
}

_LABEL_PATTERNS: dict[str, str] = {
    "speed": r"speed",
    "cost": r"costs?",
    "developerExperience": r"developer[ \t]+experience(?:[ \t]*\(dx\))?|dx",
    "scalability": r"scalability",
    "maintainability": r"maintainability",
}

_SEPARATOR_CELL = re.compile(r"^:?-{2,}:?$")
_BULLET = r"(?:[-*•][ \t]+)?"
_CELL = r"[^|\n]+?"


def _dimension_chain(key: str) -> CandidateChain:
    label = rf"(?<!\w)(?:{_LABEL_PATTERNS[key]})(?!\w)"
    sources = [
        (
            "pipe_row",
            rf"\|[ \t]*(?:\*\*)?{label}(?:\*\*)?[ \t]*\|[ \t]*(?P<tech1>{_CELL})[ \t]*\|"
            rf"[ \t]*(?P<tech2>{_CELL})[ \t]*\|",
        ),
        (
            "colon_delimited",
            rf"^[ \t]*{_BULLET}(?:\*\*)?{label}(?:\*\*)?[ \t]*:(?:\*\*)?[ \t]*"
            rf"(?P<tech1>{_CELL})[ \t]*\|[ \t]*(?P<tech2>{_CELL})[ \t]*\|?[ \t]*$",
        ),
        (
            "pipe_delimited",
            rf"^[ \t]*{_BULLET}{label}[ \t]*\|[ \t]*(?P<tech1>{_CELL})[ \t]*\|"
            rf"[ \t]*(?P<tech2>{_CELL})[ \t]*\|?[ \t]*$",
        ),
        (
            "bolded_label",
            rf"\*\*{label}[ \t]*:?[ \t]*\*\*[ \t]*[:|\-–]?[ \t]*(?P<tech1>{_CELL})[ \t]*"
            rf"(?:\||\bvs\.?(?=[ \t]))[ \t]*(?P<tech2>{_CELL})[ \t]*\|?[ \t]*$",
        ),
        (
            "versus",
            rf"{label}(?:\*\*)?[ \t]*[-:–—][ \t]*(?P<tech1>[^\n]+?)[ \t]+vs\.?[ \t]+"
            rf"(?P<tech2>[^\n]+?)[ \t]*$",
        ),
        (
            "catch_all",
            rf"{label}[^\n]*?(?P<tech1>[A-Za-z0-9$][^|\n]*?)[ \t]*(?:\|[ \t]*|[ \t]+)"
            rf"(?P<tech2>[A-Za-z0-9$][^|\n]*?)[ \t]*\|?[ \t]*$",
        ),
    ]
    return CandidateChain(
        field_name=f"matrix.{key}",
        candidates=[
            Candidate(name=name, pattern=compile_pattern(source), required=("tech1", "tech2"))
            for name, source in sources
        ],
    )


DIMENSION_CHAINS: dict[str, CandidateChain] = {key: _dimension_chain(key) for key in DIMENSION_KEYS}


def match_dimension(label: str) -> str | None:
    """Fuzzy-match a table label against the canonical dimensions.

    A label matches when an alias occurs in it as a word, or when a label of
    four or more characters occurs inside an alias.
    """

    normalized = re.sub(r"\s+", " ", clean_capture(label).lower()).strip(" :")
    if not normalized:
        return None
    for key in DIMENSION_KEYS:
        for alias in DIMENSION_ALIASES[key]:
            if re.search(rf"(?<!\w){re.escape(alias)}(?!\w)", normalized):
                return key
            if len(normalized) >= 4 and normalized in alias:
                return key
    return None


def _split_row(line: str) -> list[str]:
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|"):
        row = row[:-1]
    return [cell.strip() for cell in row.split("|")]


def _is_separator(cells: list[str]) -> bool:
    filled = [cell.replace(" ", "") for cell in cells if cell]
    return bool(filled) and all(_SEPARATOR_CELL.match(cell) for cell in filled)


def _parse_table(text: str) -> dict[str, DimensionPair]:
    rows = [
        _split_row(line)
        for line in text.splitlines()
        if line.strip().startswith("|") and line.count("|") >= 3
    ]
    if not rows:
        return {}

    separator_index = next((i for i, cells in enumerate(rows) if _is_separator(cells)), None)
    data_rows = rows if separator_index is None else rows[separator_index + 1 :]

    found: dict[str, DimensionPair] = {}
    for cells in data_rows:
        if len(cells) < 3 or _is_separator(cells):
            continue
        key = match_dimension(cells[0])
        if key is None or key in found:
            continue
        tech1 = clean_capture(cells[1])
        tech2 = clean_capture(cells[2])
        if tech1 and tech2:
            found[key] = DimensionPair(tech1=tech1, tech2=tech2)
    logger.debug("matrix_table_parsed", rows=len(data_rows), dimensions=sorted(found))
    return found


def parse_dimension_matrix(
    text: str, *, config: ParserConfig | None = None
) -> DimensionMatrix | ParseFailure:
    """Build the five-dimension matrix, table rows first, line patterns second."""

    config = config or ParserConfig()
    found = _parse_table(text)

    for key in DIMENSION_KEYS:
        if key in found:
            continue
        match = DIMENSION_CHAINS[key].first(text)
        if match is not None:
            found[key] = DimensionPair(tech1=match.values["tech1"], tech2=match.values["tech2"])

    missing = [key for key in DIMENSION_KEYS if key not in found]
    if missing:
        logger.info("matrix_dimensions_missing", missing=missing)
        return ParseFailure.dimension_missing(missing, text, limit=config.excerpt_chars)

    return DimensionMatrix.from_mapping(found)
