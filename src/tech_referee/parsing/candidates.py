"""Ordered candidate extractors shared by every reply parser.

A `CandidateChain` holds regex candidates in priority order. The first
candidate whose required named groups all capture non-empty text (after
cleaning) wins; later candidates are never consulted. Matrix, scenario and
hidden-tax parsing all express their format tolerance as chains.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from tech_referee.obs.logging import get_logger

logger = get_logger(__name__)

_BOLD_EDGES = re.compile(r"^[*_`]+|[*_`]+$")
_QUOTE_PAIRS = {'"': '"', "'": "'", "“": "”", "‘": "’"}


def clean_capture(value: str | None) -> str:
    """Trim whitespace, markdown emphasis and wrapping quotes from a capture."""
    if not value:
        return ""
    text = value.strip()
    previous = None
    while text and text != previous:
        previous = text
        text = _BOLD_EDGES.sub("", text).strip()
        if len(text) >= 2 and _QUOTE_PAIRS.get(text[0]) == text[-1]:
            text = text[1:-1].strip()
    return text


@dataclass(frozen=True, slots=True)
class Candidate:
    """One regex alternative and the named groups it must populate."""

    name: str
    pattern: re.Pattern[str]
    required: tuple[str, ...]
    optional: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CandidateMatch:
    candidate: str
    values: dict[str, str]
    start: int
    end: int


@dataclass(slots=True)
class CandidateChain:
    """Prioritized list of candidates for one logical field."""

    field_name: str
    candidates: list[Candidate]
    clean: Callable[[str | None], str] = clean_capture
    accept: Callable[[dict[str, str]], bool] | None = field(default=None)

    def first(self, text: str) -> CandidateMatch | None:
        for match in self.all(text):
            logger.debug(
                "candidate_matched",
                field=self.field_name,
                candidate=match.candidate,
            )
            return match
        logger.debug("candidate_chain_exhausted", field=self.field_name)
        return None

    def all(self, text: str) -> Iterator[CandidateMatch]:
        """Yield acceptable matches, candidate by candidate, in text order."""
        for candidate in self.candidates:
            for raw in candidate.pattern.finditer(text):
                values = self._extract(candidate, raw)
                if values is None:
                    continue
                yield CandidateMatch(
                    candidate=candidate.name,
                    values=values,
                    start=raw.start(),
                    end=raw.end(),
                )

    def _extract(self, candidate: Candidate, raw: re.Match[str]) -> dict[str, str] | None:
        values: dict[str, str] = {}
        for group in candidate.required:
            value = self.clean(raw.group(group))
            if not value:
                return None
            values[group] = value
        for group in candidate.optional:
            value = self.clean(raw.group(group))
            if value:
                values[group] = value
        if self.accept is not None and not self.accept(values):
            return None
        return values


def compile_pattern(source: str, *, flags: int = re.IGNORECASE | re.MULTILINE) -> re.Pattern[str]:
    return re.compile(source, flags)
