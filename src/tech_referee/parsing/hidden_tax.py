"""Hidden-tax warning parsing with graduated fallbacks."""

from __future__ import annotations

import re
from collections.abc import Sequence

from tech_referee.config import ParserConfig
from tech_referee.obs.logging import get_logger
from tech_referee.parsing.candidates import (
    Candidate,
    CandidateChain,
    clean_capture,
    compile_pattern,
)
from tech_referee.types import HiddenTaxWarning, ParseFailure

logger = get_logger(__name__)

DOWNSIDE_KEYWORDS: tuple[str, ...] = (
    "complexity",
    "maintenance",
    "learning curve",
    "cost",
    "overhead",
    "difficulty",
    "challenge",
    "problem",
    "issue",
    "burden",
)

# Words that start with a capital letter but never name a technology.
_COMMON_WORDS = frozenset(
    {
        "a", "after", "also", "an", "and", "as", "at", "be", "before", "but", "by",
        "choose", "choosing", "during", "each", "every", "expect", "for", "from",
        "hidden", "however", "if", "in", "it", "its", "once", "or", "over", "plan",
        "prepared", "so", "tax", "team", "teams", "that", "the", "their", "then",
        "there", "these", "this", "those", "to", "warning", "when", "while", "with",
        "within", "you", "your",
    }
)

_END = r"(?=[\"'”’*]*(?:\s|$))"
# A sentence character: anything but a newline or a sentence-ending period.
_SENT = rf"(?:[^.\n]|\.(?![\"'”’*]*(?:\s|$)))"
_VERB = r"(?:choose|pick|go[ \t]+with|opt[ \t]+for)"
_PREPARED = (
    r"(?:you(?:'ll|[ \t]+will|[ \t]+should)[ \t]+)?be[ \t]+prepared[ \t]+to[ \t]+pay"
    r"[ \t]+(?:the[ \t]+|a[ \t]+)?tax[ \t]+of[ \t]+"
)
_TIMEFRAME_HINT = re.compile(
    r"\d|month|year|week|day|quarter|sprint|long[ \t-]+run|long[ \t-]+term|\bonce\b",
    re.IGNORECASE,
)


def _clean_tax_capture(value: str | None) -> str:
    text = clean_capture(value)
    if text.startswith("[") and text.endswith("]"):
        text = clean_capture(text[1:-1])
    return text


def _has_timeframe_hint(values: dict[str, str]) -> bool:
    timeframe = values.get("timeframe")
    return timeframe is None or bool(_TIMEFRAME_HINT.search(timeframe))


TEMPLATE_CHAIN = CandidateChain(
    field_name="hidden_tax.template",
    candidates=[
        Candidate(
            name="strict",
            pattern=compile_pattern(
                rf"if[ \t]+you[ \t]+choose[ \t]+(?P<technology>[^,\n]+?),[ \t]*"
                rf"be[ \t]+prepared[ \t]+to[ \t]+pay[ \t]+the[ \t]+tax[ \t]+of[ \t]+"
                rf"(?P<warning>{_SENT}+)[ \t]+in[ \t]+(?P<timeframe>{_SENT}+?)[ \t]*\.{_END}"
            ),
            required=("technology", "warning", "timeframe"),
        ),
        Candidate(
            name="relaxed",
            pattern=compile_pattern(
                rf"if[ \t]+you[ \t]+{_VERB}[ \t]+(?P<technology>[^,\n]+?),?[ \t]+{_PREPARED}"
                rf"(?P<warning>{_SENT}+)[ \t]*\.?[ \t]+in[ \t]+(?P<timeframe>{_SENT}+?)"
                rf"[ \t]*(?:\.{_END}|$)"
            ),
            required=("technology", "warning", "timeframe"),
        ),
        Candidate(
            name="without_timeframe",
            pattern=compile_pattern(
                rf"if[ \t]+you[ \t]+{_VERB}[ \t]+(?P<technology>[^,\n]+?),?[ \t]+{_PREPARED}"
                rf"(?P<warning>{_SENT}+?)[ \t]*(?:\.{_END}|$)"
            ),
            required=("technology", "warning"),
        ),
    ],
    clean=_clean_tax_capture,
)

PERMISSIVE_CHAIN = CandidateChain(
    field_name="hidden_tax.permissive",
    candidates=[
        Candidate(
            name="tax_of_in",
            pattern=compile_pattern(
                rf"\btax[ \t]+of[ \t]+(?P<warning>{_SENT}+)[ \t]+in[ \t]+"
                rf"(?P<timeframe>{_SENT}+?)[ \t]*(?:\.{_END}|$)"
            ),
            required=("warning", "timeframe"),
        ),
        Candidate(
            name="tax_of",
            pattern=compile_pattern(rf"\btax[ \t]+of[ \t]+(?P<warning>{_SENT}+?)[ \t]*(?:\.{_END}|$)"),
            required=("warning",),
        ),
    ],
    clean=_clean_tax_capture,
    accept=_has_timeframe_hint,
)

_CAPITALIZED = re.compile(r"(?<![\w.+#-])[A-Z][A-Za-z0-9.+#-]*")
_DOWNSIDE = re.compile(
    r"\b(?:" + "|".join(re.escape(k).replace(r"\ ", r"\s+") for k in DOWNSIDE_KEYWORDS) + r")",
    re.IGNORECASE,
)


def find_technology(text: str, technologies: Sequence[str] = ()) -> str | None:
    """Find the technology a warning is about.

    Known technology names win, earliest mention first; otherwise the first
    capitalised token that is not a common English or downside word.
    """

    mentions: list[tuple[int, str]] = []
    for name in technologies:
        name = name.strip()
        if not name:
            continue
        match = re.search(rf"(?<!\w){re.escape(name)}(?!\w)", text, re.IGNORECASE)
        if match:
            mentions.append((match.start(), name))
    if mentions:
        return min(mentions)[1]

    for match in _CAPITALIZED.finditer(text):
        token = match.group(0).rstrip(".-")
        lowered = token.lower()
        if len(token) < 2 or lowered in _COMMON_WORDS or _DOWNSIDE.fullmatch(lowered):
            continue
        return token
    return None


def find_downside_sentence(text: str) -> str | None:
    for sentence in re.split(r"(?<=[.!?])\s+|\n+", text):
        sentence = clean_capture(sentence.strip().lstrip("-*• ").rstrip("."))
        if sentence and _DOWNSIDE.search(sentence):
            return sentence
    return None


def parse_hidden_tax(
    text: str,
    technologies: Sequence[str] = (),
    *,
    config: ParserConfig | None = None,
) -> HiddenTaxWarning | ParseFailure:
    """Parse the single hidden-tax warning, from strictest phrasing to heuristics.

    The heuristic tier needs both a technology and a downside sentence; either
    one alone is reported as unparseable.
    """

    config = config or ParserConfig()
    default_timeframe = config.default_timeframe

    template = TEMPLATE_CHAIN.first(text)
    if template is not None:
        values = template.values
        return HiddenTaxWarning.build(
            technology=values["technology"],
            warning=values["warning"],
            timeframe=values.get("timeframe", default_timeframe),
        )

    permissive = PERMISSIVE_CHAIN.first(text)
    if permissive is not None:
        technology = find_technology(text, technologies)
        if technology is not None:
            values = permissive.values
            return HiddenTaxWarning.build(
                technology=technology,
                warning=values["warning"],
                timeframe=values.get("timeframe", default_timeframe),
            )

    technology = find_technology(text, technologies)
    sentence = find_downside_sentence(text)
    if technology is not None and sentence is not None:
        logger.info("hidden_tax_heuristic", technology=technology)
        return HiddenTaxWarning.build(
            technology=technology, warning=sentence, timeframe=default_timeframe
        )

    logger.info(
        "hidden_tax_unparseable",
        technology_found=technology is not None,
        downside_found=sentence is not None,
    )
    return ParseFailure.hidden_tax_unparseable(text, limit=config.excerpt_chars)
