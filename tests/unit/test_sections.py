from tech_referee.parsing.sections import extract_sections, locate_headings
from tech_referee.types import FailureKind, ParseFailure, SectionSet


def _reply(*blocks: str) -> str:
    return "\n\n".join(blocks)


def test_sections_may_appear_in_any_order() -> None:
    raw = _reply(
        "## The Tie-Breaker\nAre you on-call this year?",
        "## The Matchup\nReact vs Vue",
        "## Hidden Tax\nIf you choose Vue, be prepared to pay the tax of churn in 1 year.",
        "## Tale of the Tape\n| Speed | a | b |",
        "## The Verdicts\nScenario A ...",
    )

    sections = extract_sections(raw)

    assert isinstance(sections, SectionSet)
    assert sections.matchup == "React vs Vue"
    assert sections.tie_breaker == "Are you on-call this year?"
    assert sections.get("hiddenTax").startswith("If you choose Vue")


def test_heading_variants_are_recognised() -> None:
    raw = _reply(
        "1) The Matchup (overview)\nReact vs Vue",
        "**2. Tale of the Tape**\n| Speed | a | b |",
        "# 3: Verdict\nScenario A ...",
        '#### ⚠️ The "Hidden Taxes"\nsome tax',
        "5. 🏁 Tiebreaker\nOne question?",
    )

    sections = extract_sections(raw)

    assert isinstance(sections, SectionSet)
    assert sections.tape == "| Speed | a | b |"
    assert sections.verdicts == "Scenario A ..."
    assert sections.hidden_tax == "some tax"
    assert sections.tie_breaker == "One question?"


def test_duplicate_heading_first_occurrence_wins() -> None:
    raw = _reply(
        "### The Matchup\nReact vs Vue",
        "### The Tale of the Tape\n| Speed | a | b |",
        "### The Verdicts\nfirst verdicts",
        "### The Verdicts\nsecond verdicts",
        '### The "Hidden Tax"\ntax',
        "### The Tie-Breaker\nQuestion?",
    )

    sections = extract_sections(raw)

    assert isinstance(sections, SectionSet)
    assert sections.verdicts == "first verdicts"


def test_empty_section_is_reported_as_missing() -> None:
    raw = _reply(
        "### The Matchup\nReact vs Vue",
        "### The Tale of the Tape\n",
        "### The Verdicts\nverdicts",
        '### The "Hidden Tax"\ntax',
        "### The Tie-Breaker\nQuestion?",
    )

    failure = extract_sections(raw)

    assert isinstance(failure, ParseFailure)
    assert failure.kind is FailureKind.SECTION_MISSING
    assert failure.section == "tape"


def test_blank_or_non_string_reply_fails_on_matchup() -> None:
    for raw in ("", "   \n", None, 42):
        failure = extract_sections(raw)
        assert isinstance(failure, ParseFailure)
        assert failure.section == "matchup"


def test_label_inside_prose_is_not_a_heading() -> None:
    raw = "We discuss the matchup here.\nThe verdicts follow below."
    assert locate_headings(raw) == []


def test_excerpt_is_bounded() -> None:
    failure = extract_sections("x" * 1000)

    assert isinstance(failure, ParseFailure)
    assert len(failure.excerpt) == 200
    assert failure.excerpt.endswith("...")


def test_same_line_text_after_separator_is_section_body(reply_builder) -> None:
    raw = reply_builder().replace(
        "### 1. 🥊 The Matchup\nReact vs Vue", "### 1. 🥊 The Matchup: React vs Vue"
    )

    sections = extract_sections(raw)

    assert isinstance(sections, SectionSet)
    assert sections.matchup == "React vs Vue"


def test_suffixed_heading_keeps_suffix_as_body(reply_builder) -> None:
    raw = reply_builder().replace(
        "### 3. ⚖️ The Verdicts", "### 3. ⚖️ The Verdicts - Scenario Analysis"
    )

    sections = extract_sections(raw)

    assert isinstance(sections, SectionSet)
    assert sections.verdicts.startswith("Scenario Analysis\n* **Scenario A")


def test_bold_heading_with_inline_body() -> None:
    raw = _reply(
        "**1. Matchup:** React vs Vue",
        "**2. Tale of the Tape**\n| Speed | a | b |",
        "**3. Verdicts**\nverdicts",
        '**4. "Hidden Tax":** some tax',
        "**5. Tie-Breaker:** One question?",
    )

    sections = extract_sections(raw)

    assert isinstance(sections, SectionSet)
    assert sections.matchup == "React vs Vue"
    assert sections.hidden_tax == "some tax"
    assert sections.tie_breaker == "One question?"


def test_words_after_label_without_separator_stay_in_heading() -> None:
    raw = _reply(
        "### The Matchup Overview\nReact vs Vue",
        "### The Tale of the Tape\n| Speed | a | b |",
        "### The Verdicts\nverdicts",
        '### The "Hidden Tax"\ntax',
        "### The Tie-Breaker\nQuestion?",
    )

    sections = extract_sections(raw)

    assert isinstance(sections, SectionSet)
    assert sections.matchup == "React vs Vue"
    assert locate_headings("The matchup: React vs Vue") == []
