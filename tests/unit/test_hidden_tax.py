from tech_referee.config import ParserConfig
from tech_referee.parsing.hidden_tax import (
    find_downside_sentence,
    find_technology,
    parse_hidden_tax,
)
from tech_referee.types import FailureKind, HiddenTaxWarning, ParseFailure


def test_strict_template() -> None:
    warning = parse_hidden_tax(
        "If you choose React, be prepared to pay the tax of decision fatigue in 6 months."
    )

    assert warning == HiddenTaxWarning(
        technology="React",
        warning="decision fatigue",
        timeframe="6 months",
        impact="decision fatigue expected in 6 months",
    )


def test_strict_template_keeps_inner_in_inside_warning() -> None:
    warning = parse_hidden_tax(
        "If you choose Kubernetes, be prepared to pay the tax of YAML sprawl in every repo in 1 year."
    )

    assert isinstance(warning, HiddenTaxWarning)
    assert warning.warning == "YAML sprawl in every repo"
    assert warning.timeframe == "1 year"


def test_relaxed_template_variants() -> None:
    warning = parse_hidden_tax(
        "If you go with Vue you'll be prepared to pay the tax of plugin churn in a year"
    )

    assert isinstance(warning, HiddenTaxWarning)
    assert warning.technology == "Vue"
    assert warning.warning == "plugin churn"
    assert warning.timeframe == "a year"


def test_bracketed_template_values_are_unwrapped() -> None:
    warning = parse_hidden_tax(
        "If you choose [MongoDB], be prepared to pay the tax of [schema drift] in 6 months."
    )

    assert isinstance(warning, HiddenTaxWarning)
    assert warning.technology == "MongoDB"
    assert warning.warning == "schema drift"


def test_missing_timeframe_uses_default() -> None:
    text = "If you choose React, be prepared to pay the tax of decision fatigue."

    default = parse_hidden_tax(text)
    custom = parse_hidden_tax(text, config=ParserConfig(default_timeframe="2 quarters"))

    assert isinstance(default, HiddenTaxWarning)
    assert default.timeframe == "6 months"
    assert default.impact == "decision fatigue expected in 6 months"
    assert isinstance(custom, HiddenTaxWarning)
    assert custom.timeframe == "2 quarters"


def test_permissive_tax_of_phrase_finds_technology_elsewhere() -> None:
    warning = parse_hidden_tax(
        "Picking Svelte means paying a tax of hiring difficulty in 12 months.",
        ("React", "Svelte"),
    )

    assert isinstance(warning, HiddenTaxWarning)
    assert warning.technology == "Svelte"
    assert warning.warning == "hiring difficulty"
    assert warning.timeframe == "12 months"


def test_downside_heuristic_is_last_resort() -> None:
    warning = parse_hidden_tax(
        "Vue's plugin ecosystem adds maintenance overhead for larger apps.", ("React", "Vue")
    )

    assert isinstance(warning, HiddenTaxWarning)
    assert warning.technology == "Vue"
    assert warning.warning == "Vue's plugin ecosystem adds maintenance overhead for larger apps"
    assert warning.timeframe == "6 months"


def test_unparseable_without_technology_and_downside() -> None:
    failure = parse_hidden_tax("nothing notable here.", ("React", "Vue"))

    assert isinstance(failure, ParseFailure)
    assert failure.kind is FailureKind.HIDDEN_TAX_UNPARSEABLE


def test_find_technology_prefers_earliest_known_name() -> None:
    text = "Expect Vue upgrades, then React rewrites."

    assert find_technology(text, ("React", "Vue")) == "Vue"
    assert find_technology("However Terraform drifts.") == "Terraform"
    assert find_technology("however nothing here") is None


def test_find_downside_sentence() -> None:
    text = "Great start. Then the learning curve bites hard.\n- Plenty of docs."

    assert find_downside_sentence(text) == "Then the learning curve bites hard"
    assert find_downside_sentence("All good here.") is None


def test_heuristic_needs_both_technology_and_downside() -> None:
    technology_only = parse_hidden_tax("React is pleasant to use.", ("React", "Vue"))
    downside_only = parse_hidden_tax("expect more maintenance later.", ("React", "Vue"))

    assert isinstance(technology_only, ParseFailure)
    assert technology_only.kind is FailureKind.HIDDEN_TAX_UNPARSEABLE
    assert isinstance(downside_only, ParseFailure)
    assert downside_only.kind is FailureKind.HIDDEN_TAX_UNPARSEABLE
