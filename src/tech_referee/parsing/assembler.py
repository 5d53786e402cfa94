"""Result assembly: raw reply in, `ComparisonResult` or one `ParseFailure` out."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from tech_referee.config import ParserConfig
from tech_referee.obs.logging import get_logger
from tech_referee.parsing.hidden_tax import parse_hidden_tax
from tech_referee.parsing.matrix import parse_dimension_matrix
from tech_referee.parsing.scenarios import parse_scenarios
from tech_referee.parsing.sections import extract_sections
from tech_referee.types import (
    ComparisonResult,
    FailureKind,
    ParseFailure,
    ParseStage,
    bounded_excerpt,
)

logger = get_logger(__name__)

T = TypeVar("T")


def _guarded(
    stage: ParseStage,
    kind: FailureKind,
    text: Any,
    config: ParserConfig,
    run: Callable[[], T | ParseFailure],
) -> T | ParseFailure:
    """Run one stage, turning any unexpected exception into that stage's failure."""
    try:
        return run()
    except Exception as exc:
        logger.warning("parse_stage_crashed", stage=stage.value, error=str(exc))
        return ParseFailure(
            stage=stage,
            kind=kind,
            reason=f"Unexpected error during {stage.value}: {exc}",
            excerpt=bounded_excerpt(text, config.excerpt_chars),
        )


def parse_reply(
    raw: str,
    name1: str,
    name2: str,
    *,
    config: ParserConfig | None = None,
) -> ComparisonResult | ParseFailure:
    """Parse a model reply for the `name1` vs `name2` matchup.

    Stages run in fixed order (sections, matrix, scenarios, hidden tax,
    tie-breaker) and the first failure is returned, so a given reply always
    yields the same outcome.
    """

    config = config or ParserConfig()

    sections = _guarded(
        ParseStage.SECTION_EXTRACTION,
        FailureKind.SECTION_MISSING,
        raw,
        config,
        lambda: extract_sections(raw, config=config),
    )
    if isinstance(sections, ParseFailure):
        return sections

    matrix = _guarded(
        ParseStage.MATRIX,
        FailureKind.DIMENSION_MISSING,
        sections.tape,
        config,
        lambda: parse_dimension_matrix(sections.tape, config=config),
    )
    if isinstance(matrix, ParseFailure):
        return matrix

    scenarios = _guarded(
        ParseStage.SCENARIO,
        FailureKind.SCENARIO_MISSING,
        sections.verdicts,
        config,
        lambda: parse_scenarios(sections.verdicts, name1, name2, config=config),
    )
    if isinstance(scenarios, ParseFailure):
        return scenarios

    hidden_tax = _guarded(
        ParseStage.HIDDEN_TAX,
        FailureKind.HIDDEN_TAX_UNPARSEABLE,
        sections.hidden_tax,
        config,
        lambda: parse_hidden_tax(sections.hidden_tax, (name1, name2), config=config),
    )
    if isinstance(hidden_tax, ParseFailure):
        return hidden_tax

    tie_breaker = sections.tie_breaker.strip()
    if not tie_breaker:
        return ParseFailure.tie_breaker_empty()

    return ComparisonResult(
        technology1=name1,
        technology2=name2,
        matrix=matrix,
        scenarios=scenarios,
        hidden_tax=hidden_tax,
        tie_breaker=tie_breaker,
    )
