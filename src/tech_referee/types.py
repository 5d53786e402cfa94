"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

SECTION_KEYS: tuple[str, ...] = ("matchup", "tape", "verdicts", "hiddenTax", "tieBreaker")

DIMENSION_KEYS: tuple[str, ...] = (
    "speed",
    "cost",
    "developerExperience",
    "scalability",
    "maintainability",
)

DIMENSION_LABELS: dict[str, str] = {
    "speed": "Speed",
    "cost": "Cost",
    "developerExperience": "Developer Experience",
    "scalability": "Scalability",
    "maintainability": "Maintainability",
}


class RequestValidationError(ValueError):
    """Raised when a pair of technology names cannot be refereed."""

    def __init__(self, errors: list[str], *, code: str = "VALIDATION_ERROR") -> None:
        super().__init__("; ".join(errors))
        self.errors = errors
        self.code = code


@dataclass(frozen=True, slots=True)
class ComparisonRequest:
    """The two technologies a caller wants compared."""

    technology1: str
    technology2: str

    @classmethod
    def create(cls, tech1: str, tech2: str) -> ComparisonRequest:
        name1 = (tech1 or "").strip()
        name2 = (tech2 or "").strip()
        errors: list[str] = []
        if not name1:
            errors.append("First technology cannot be empty")
        if not name2:
            errors.append("Second technology cannot be empty")
        if errors:
            raise RequestValidationError(errors)
        if name1.lower() == name2.lower():
            raise RequestValidationError(
                ["Please provide two different technologies for comparison."],
                code="DUPLICATE_TECHNOLOGIES",
            )
        return cls(technology1=name1, technology2=name2)


@dataclass(frozen=True, slots=True)
class SectionSet:
    """The five named regions of a model reply, trimmed and non-empty."""

    matchup: str
    tape: str
    verdicts: str
    hidden_tax: str
    tie_breaker: str

    def get(self, key: str) -> str:
        return {
            "matchup": self.matchup,
            "tape": self.tape,
            "verdicts": self.verdicts,
            "hiddenTax": self.hidden_tax,
            "tieBreaker": self.tie_breaker,
        }[key]


@dataclass(frozen=True, slots=True)
class DimensionPair:
    tech1: str
    tech2: str


@dataclass(frozen=True, slots=True)
class DimensionMatrix:
    """Descriptors for both technologies across the five fixed dimensions."""

    speed: DimensionPair
    cost: DimensionPair
    developer_experience: DimensionPair
    scalability: DimensionPair
    maintainability: DimensionPair

    @classmethod
    def from_mapping(cls, values: dict[str, DimensionPair]) -> DimensionMatrix:
        return cls(
            speed=values["speed"],
            cost=values["cost"],
            developer_experience=values["developerExperience"],
            scalability=values["scalability"],
            maintainability=values["maintainability"],
        )

    def get(self, key: str) -> DimensionPair:
        return self.as_mapping()[key]

    def as_mapping(self) -> dict[str, DimensionPair]:
        return {
            "speed": self.speed,
            "cost": self.cost,
            "developerExperience": self.developer_experience,
            "scalability": self.scalability,
            "maintainability": self.maintainability,
        }


class ScenarioIdentity(str, Enum):
    MOVE_FAST = "MoveFast"
    SCALE = "Scale"
    BUDGET = "Budget"

    @property
    def label(self) -> str:
        return {"MoveFast": "Move Fast", "Scale": "Scale", "Budget": "Budget"}[self.value]

    @property
    def team_name(self) -> str:
        return f"{self.label} Team"


SCENARIO_ORDER: tuple[ScenarioIdentity, ...] = (
    ScenarioIdentity.MOVE_FAST,
    ScenarioIdentity.SCALE,
    ScenarioIdentity.BUDGET,
)


class WinnerSource(str, Enum):
    """How a scenario's winner was determined."""

    STATED = "stated"
    HEURISTIC = "heuristic"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ScenarioVerdict:
    identity: ScenarioIdentity
    winner: str
    reasoning: str
    context: str
    winner_source: WinnerSource = WinnerSource.STATED


@dataclass(frozen=True, slots=True)
class HiddenTaxWarning:
    technology: str
    warning: str
    timeframe: str
    impact: str

    @classmethod
    def build(cls, technology: str, warning: str, timeframe: str) -> HiddenTaxWarning:
        return cls(
            technology=technology,
            warning=warning,
            timeframe=timeframe,
            impact=f"{warning} expected in {timeframe}",
        )


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """Terminal artifact of a successful parse."""

    technology1: str
    technology2: str
    matrix: DimensionMatrix
    scenarios: tuple[ScenarioVerdict, ScenarioVerdict, ScenarioVerdict]
    hidden_tax: HiddenTaxWarning
    tie_breaker: str

    def to_payload(self) -> dict[str, Any]:
        """Render the result in the JSON shape consumed by the presentation layer."""
        return {
            "matchup": {
                "technology1": self.technology1,
                "technology2": self.technology2,
            },
            "taleOfTheTape": {
                key: {"tech1": pair.tech1, "tech2": pair.tech2}
                for key, pair in self.matrix.as_mapping().items()
            },
            "scenarios": [
                {
                    "name": verdict.identity.team_name,
                    "winner": verdict.winner,
                    "reasoning": verdict.reasoning,
                    "context": verdict.context,
                    "winnerSource": verdict.winner_source.value,
                }
                for verdict in self.scenarios
            ],
            "hiddenTax": {
                "technology": self.hidden_tax.technology,
                "warning": self.hidden_tax.warning,
                "timeframe": self.hidden_tax.timeframe,
                "impact": self.hidden_tax.impact,
            },
            "tieBreaker": self.tie_breaker,
        }


class ParseStage(str, Enum):
    SECTION_EXTRACTION = "section-extraction"
    MATRIX = "matrix"
    SCENARIO = "scenario"
    HIDDEN_TAX = "hidden-tax"


class FailureKind(str, Enum):
    SECTION_MISSING = "SECTION_MISSING"
    DIMENSION_MISSING = "DIMENSION_MISSING"
    SCENARIO_MISSING = "SCENARIO_MISSING"
    HIDDEN_TAX_UNPARSEABLE = "HIDDEN_TAX_UNPARSEABLE"
    TIE_BREAKER_EMPTY = "TIE_BREAKER_EMPTY"


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """A typed, terminal parse error naming the stage and the missing part.

    `excerpt` is a bounded prefix of the text the failing stage looked at;
    it is diagnostic only and never parsed again.
    """

    stage: ParseStage
    kind: FailureKind
    reason: str
    excerpt: str = ""
    section: str | None = None
    dimensions: tuple[str, ...] = ()
    scenario: ScenarioIdentity | None = None

    @classmethod
    def section_missing(cls, section: str, text: str, *, limit: int = 200) -> ParseFailure:
        return cls(
            stage=ParseStage.SECTION_EXTRACTION,
            kind=FailureKind.SECTION_MISSING,
            reason=f"Missing or empty section: {section}",
            excerpt=bounded_excerpt(text, limit),
            section=section,
        )

    @classmethod
    def dimension_missing(
        cls, dimensions: list[str], text: str, *, limit: int = 200
    ) -> ParseFailure:
        labels = ", ".join(DIMENSION_LABELS[key] for key in dimensions)
        return cls(
            stage=ParseStage.MATRIX,
            kind=FailureKind.DIMENSION_MISSING,
            reason=f"Missing comparison data for: {labels}",
            excerpt=bounded_excerpt(text, limit),
            dimensions=tuple(dimensions),
        )

    @classmethod
    def scenario_missing(
        cls, identity: ScenarioIdentity, text: str, *, limit: int = 200
    ) -> ParseFailure:
        return cls(
            stage=ParseStage.SCENARIO,
            kind=FailureKind.SCENARIO_MISSING,
            reason=f"Missing scenario: {identity.team_name}",
            excerpt=bounded_excerpt(text, limit),
            scenario=identity,
        )

    @classmethod
    def hidden_tax_unparseable(
        cls, text: str, *, reason: str | None = None, limit: int = 200
    ) -> ParseFailure:
        return cls(
            stage=ParseStage.HIDDEN_TAX,
            kind=FailureKind.HIDDEN_TAX_UNPARSEABLE,
            reason=reason or "No recognizable technology and downside in hidden tax section",
            excerpt=bounded_excerpt(text, limit),
        )

    @classmethod
    def tie_breaker_empty(cls) -> ParseFailure:
        return cls(
            stage=ParseStage.SECTION_EXTRACTION,
            kind=FailureKind.TIE_BREAKER_EMPTY,
            reason="Tie-breaker question is missing or empty",
            section="tieBreaker",
        )

    @property
    def code(self) -> str:
        return self.kind.value

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": self.kind.value,
            "stage": self.stage.value,
            "reason": self.reason,
            "excerpt": self.excerpt,
        }
        if self.section is not None:
            payload["section"] = self.section
        if self.dimensions:
            payload["dimensions"] = list(self.dimensions)
        if self.scenario is not None:
            payload["scenario"] = self.scenario.value
        return payload


def bounded_excerpt(text: Any, limit: int = 200) -> str:
    """Return at most `limit` characters of `text` for diagnostics."""
    if not isinstance(text, str):
        return ""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
