"""Scenario verdict parsing for the "Verdicts" section.

Locating a scenario is strict: a missing scenario is a parse failure.
Reading its winner and reasoning is lenient and never fails once the
scenario text has been found. When no winner phrasing matches, the winner is
inferred by counting technology mentions near positive words; that heuristic
is approximate by nature and only runs after every phrasing has failed.
"""

from __future__ import annotations

import re

from tech_referee.config import ParserConfig
from tech_referee.obs.logging import get_logger
from tech_referee.parsing.candidates import (
    Candidate,
    CandidateChain,
    CandidateMatch,
    clean_capture,
    compile_pattern,
)
from tech_referee.types import (
    SCENARIO_ORDER,
    ParseFailure,
    ScenarioIdentity,
    ScenarioVerdict,
    WinnerSource,
)

logger = get_logger(__name__)

ScenarioTriple = tuple[ScenarioVerdict, ScenarioVerdict, ScenarioVerdict]

POSITIVE_KEYWORDS: tuple[str, ...] = (
    "winner",
    "wins",
    "win",
    "better",
    "best",
    "preferred",
    "prefer",
    "advantage",
    "recommend",
    "recommended",
    "ideal",
    "stronger",
    "faster",
    "cheaper",
)

_IDENTITY_LABELS: dict[ScenarioIdentity, str] = {
    ScenarioIdentity.MOVE_FAST: r"move[ \t-]*fast",
    ScenarioIdentity.SCALE: r"scale",
    ScenarioIdentity.BUDGET: r"budget",
}

_QUOTE = r"['\"‘’“”]?"
_SCENARIO_TAG = r"scenario[ \t]+[abc123]"


def _heading_chain(identity: ScenarioIdentity) -> CandidateChain:
    label = rf"{_QUOTE}{_IDENTITY_LABELS[identity]}{_QUOTE}"
    sources = [
        (
            "bold_parenthesized",
            rf"\*\*[ \t]*{_SCENARIO_TAG}[ \t]*\([ \t]*(?:the[ \t]+)?{label}[ \t]+team[ \t]*\)"
            rf"[ \t]*:?[ \t]*\*\*[ \t]*:?",
        ),
        (
            "markdown_heading",
            rf"^[ \t]*#{{1,6}}[ \t]*(?:{_SCENARIO_TAG}[ \t]*[:(\-–—]?[ \t]*)?(?:the[ \t]+)?"
            rf"{label}(?:[ \t]+team)?[^\n]*$",
        ),
        (
            "bold_colon",
            rf"\*\*[ \t]*{_SCENARIO_TAG}[ \t]*:[ \t]*(?:the[ \t]+)?{label}[ \t]+team[ \t]*:?"
            rf"[ \t]*\*\*[ \t]*:?",
        ),
        (
            "bold_team",
            rf"\*\*[ \t]*(?:the[ \t]+)?{label}[ \t]+team[ \t]*:?[ \t]*\*\*[ \t]*:?",
        ),
        (
            "team_line",
            rf"^[ \t]*(?:[-*•][ \t]+)?(?:{_SCENARIO_TAG}[^\n:]*?)?(?:the[ \t]+)?{label}"
            rf"[ \t]+team\b[^\n:]*:",
        ),
    ]
    return CandidateChain(
        field_name=f"scenario.{identity.value}",
        candidates=[
            Candidate(name=name, pattern=compile_pattern(source), required=())
            for name, source in sources
        ],
    )


HEADING_CHAINS: dict[ScenarioIdentity, CandidateChain] = {
    identity: _heading_chain(identity) for identity in SCENARIO_ORDER
}

_GENERIC_BOUNDARY = compile_pattern(
    rf"^[ \t]*(?:[-*•][ \t]+)?(?:\*\*|#{{1,6}})?[ \t]*{_SCENARIO_TAG}\b"
)
_LEADING_NOISE = re.compile(
    r"^[\s'\"‘’“”)\]*:,–—-]*(?:team\b)?[\s'\"‘’“”)\]*:,–—-]*", re.IGNORECASE
)

# A winner runs to the end of its sentence, a following "Why?", or end of line.
_WIN_TAIL = r"(?=[ \t]*[.!?;]+(?:\s|$)|[ \t]+(?:why|because)\b|[ \t]*$)"
_WINNER_NOISE = re.compile(
    r"\s+(?:clearly\s+|easily\s+|comfortably\s+)?(?:wins|is\s+the\s+winner|takes\s+it)\b.*$",
    re.IGNORECASE,
)
_WINNER_PREFIX = re.compile(r"^(?:the\s+winner\s+is|winner\s*[:\-–])\s*", re.IGNORECASE)


def _clean_winner(value: str | None) -> str:
    text = clean_capture(value)
    text = _WINNER_PREFIX.sub("", text)
    text = _WINNER_NOISE.sub("", text)
    return clean_capture(text)


WINNER_CHAIN = CandidateChain(
    field_name="scenario.winner",
    candidates=[
        Candidate(
            name="which_wins",
            pattern=compile_pattern(
                rf"which[ \t]+wins\??[ \t]*:?[ \t]*(?P<winner>[^\n]+?){_WIN_TAIL}"
            ),
            required=("winner",),
        ),
        Candidate(
            name="winner_label",
            pattern=compile_pattern(
                rf"\bwinner\b[ \t]*(?:\*\*)?[ \t]*[:\-–][ \t]*(?P<winner>[^\n]+?){_WIN_TAIL}"
            ),
            required=("winner",),
        ),
        Candidate(
            name="winner_is",
            pattern=compile_pattern(
                rf"\b(?:the[ \t]+)?winner[ \t]+is[ \t]+(?P<winner>[^\n]+?){_WIN_TAIL}"
            ),
            required=("winner",),
        ),
        Candidate(
            name="x_wins",
            pattern=re.compile(
                r"(?<![\w.+#-])(?![Ww]hich\b)"
                r"(?P<winner>(?:[A-Z][\w.+#-]*[ \t]+){0,2}[A-Za-z0-9][\w.+#-]*)[ \t]+[Ww]ins\b",
                re.MULTILINE,
            ),
            required=("winner",),
        ),
        Candidate(
            name="go_with",
            pattern=compile_pattern(
                rf"\b(?:go(?:ing)?[ \t]+with|choose|pick|opt[ \t]+for)[ \t]+"
                rf"(?P<winner>[^\n]+?){_WIN_TAIL}"
            ),
            required=("winner",),
        ),
    ],
    clean=_clean_winner,
    accept=lambda values: len(values["winner"]) <= 80,
)

REASONING_CHAIN = CandidateChain(
    field_name="scenario.reasoning",
    candidates=[
        Candidate(
            name="why",
            pattern=compile_pattern(
                r"\bwhy\b[ \t]*[?:][ \t]*(?:\*\*)?[ \t]*:?[ \t]*"
                r"(?P<reasoning>[\s\S]+?)(?=\s*(?:\*\*)?which[ \t]+wins\?|\Z)"
            ),
            required=("reasoning",),
        ),
        Candidate(
            name="reason_label",
            pattern=compile_pattern(
                r"\b(?:reason(?:ing)?|rationale)\b[ \t]*(?:\*\*)?[ \t]*[:\-–][ \t]*"
                r"(?P<reasoning>[\s\S]+?)\s*\Z"
            ),
            required=("reasoning",),
        ),
        Candidate(
            name="because",
            pattern=compile_pattern(r"\bbecause\b[ \t,]*(?P<reasoning>[\s\S]+?)\s*\Z"),
            required=("reasoning",),
        ),
    ],
)


def _boundaries(text: str) -> list[int]:
    starts = {match.start() for match in _GENERIC_BOUNDARY.finditer(text)}
    for chain in HEADING_CHAINS.values():
        for candidate in chain.candidates:
            starts.update(match.start() for match in candidate.pattern.finditer(text))
    return sorted(starts)


def _slice_until_boundary(text: str, start: int, boundaries: list[int], limit: int | None = None) -> str:
    end = next((b for b in boundaries if b >= start), len(text))
    if limit is not None:
        end = min(end, start + limit)
    return text[start:end]


def locate_scenario(
    text: str,
    identity: ScenarioIdentity,
    *,
    config: ParserConfig | None = None,
    boundaries: list[int] | None = None,
) -> str | None:
    """Return the text belonging to one scenario, or None if it cannot be found."""

    config = config or ParserConfig()
    if boundaries is None:
        boundaries = _boundaries(text)

    for heading in HEADING_CHAINS[identity].all(text):
        content = _slice_until_boundary(text, heading.end, boundaries).strip()
        if content:
            logger.debug("scenario_heading_matched", scenario=identity.value, candidate=heading.candidate)
            return content

    label = compile_pattern(rf"(?<!\w){_IDENTITY_LABELS[identity]}(?!\w)")
    for mention in label.finditer(text):
        window = _slice_until_boundary(
            text, mention.end(), boundaries, limit=config.scenario_window_chars
        )
        content = _LEADING_NOISE.sub("", window).strip()
        if len(content) > config.min_scenario_chars:
            logger.debug("scenario_window_fallback", scenario=identity.value, offset=mention.start())
            return content
    return None


def _count_mentions(text: str, name: str) -> int:
    if not name.strip():
        return 0
    return len(re.findall(rf"(?<!\w){re.escape(name.strip().lower())}(?!\w)", text))


def infer_winner(text: str, technology1: str, technology2: str) -> tuple[str, WinnerSource]:
    """Guess a winner from mention counts when no winner phrasing matched.

    Mentions inside sentences containing a positive keyword decide first, then
    raw mention counts. A tie on both falls back to the first technology.
    """

    positive = [0, 0]
    total = [0, 0]
    keyword = re.compile(r"\b(?:" + "|".join(POSITIVE_KEYWORDS) + r")\b")
    for sentence in re.split(r"(?<=[.!?])\s+|\n+", text.lower()):
        counts = (_count_mentions(sentence, technology1), _count_mentions(sentence, technology2))
        total[0] += counts[0]
        total[1] += counts[1]
        if keyword.search(sentence):
            positive[0] += counts[0]
            positive[1] += counts[1]

    if positive[0] != positive[1]:
        return (technology1 if positive[0] > positive[1] else technology2), WinnerSource.HEURISTIC
    if total[0] != total[1]:
        return (technology1 if total[0] > total[1] else technology2), WinnerSource.HEURISTIC
    return technology1, WinnerSource.DEFAULT


def _extract_reasoning(content: str, winner_match: CandidateMatch | None) -> str:
    match = REASONING_CHAIN.first(content)
    if match is not None:
        return match.values["reasoning"]
    if winner_match is not None:
        trailing = clean_capture(re.sub(r"^[\s.!?;:,-]+", "", content[winner_match.end :]))
        if trailing:
            return trailing
    return clean_capture(content) or content.strip()


def read_verdict(
    identity: ScenarioIdentity, content: str, technology1: str, technology2: str
) -> ScenarioVerdict:
    """Pull winner and reasoning out of one located scenario. Never fails."""

    winner_match = WINNER_CHAIN.first(content)
    if winner_match is not None:
        winner, source = winner_match.values["winner"], WinnerSource.STATED
    else:
        winner, source = infer_winner(content, technology1, technology2)
        logger.info("scenario_winner_inferred", scenario=identity.value, winner=winner, source=source.value)

    return ScenarioVerdict(
        identity=identity,
        winner=winner,
        reasoning=_extract_reasoning(content, winner_match),
        context=f"{identity.team_name} scenario analysis",
        winner_source=source,
    )


def parse_scenarios(
    text: str,
    technology1: str,
    technology2: str,
    *,
    config: ParserConfig | None = None,
) -> ScenarioTriple | ParseFailure:
    """Produce exactly one verdict per scenario identity, in fixed order."""

    config = config or ParserConfig()
    boundaries = _boundaries(text)
    verdicts: list[ScenarioVerdict] = []
    for identity in SCENARIO_ORDER:
        content = locate_scenario(text, identity, config=config, boundaries=boundaries)
        if content is None:
            logger.info("scenario_missing", scenario=identity.value)
            return ParseFailure.scenario_missing(identity, text, limit=config.excerpt_chars)
        verdicts.append(read_verdict(identity, content, technology1, technology2))

    return verdicts[0], verdicts[1], verdicts[2]
