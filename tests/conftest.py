from __future__ import annotations

from collections.abc import Callable

import pytest

DEFAULT_ROWS: dict[str, tuple[str, str]] = {
    "Speed": ("Fast virtual DOM diffing", "Fine-grained reactivity"),
    "Cost": ("$0 start, paid tooling later", "$0 start, small hosting bill"),
    "Developer Experience": ("JSX with a huge ecosystem", "Single-file components"),
    "Scalability": ("Proven at Meta-sized apps", "Proven at Alibaba-sized apps"),
    "Maintainability": ("Frequent breaking shifts", "Stable core API"),
}

DEFAULT_SCENARIOS: tuple[tuple[str, str, str, str], ...] = (
    ("A", "Move Fast", "React", "Huge component marketplace shortens delivery."),
    ("B", "Scale", "React", "Hiring pool is deep and tooling is mature."),
    ("C", "Budget", "Vue", "Gentle learning curve keeps training short."),
)

DEFAULT_HIDDEN_TAX = (
    "If you choose React, be prepared to pay the tax of decision fatigue in 6 months."
)
DEFAULT_TIE_BREAKER = "Do you have a dedicated DevOps person?"

HEADINGS: dict[str, str] = {
    "matchup": "### 1. 🥊 The Matchup",
    "tape": "### 2. 📊 The Tale of the Tape",
    "verdicts": "### 3. ⚖️ The Verdicts",
    "hiddenTax": '### 4. ⚠️ The "Hidden Tax"',
    "tieBreaker": "### 5. 🏁 The Tie-Breaker",
}


def render_table(tech1: str, tech2: str, rows: dict[str, tuple[str, str]]) -> str:
    lines = [f"| Dimension | {tech1} | {tech2} |", "|---|---|---|"]
    lines.extend(f"| {label} | {left} | {right} |" for label, (left, right) in rows.items())
    return "\n".join(lines)


def render_verdicts(scenarios: tuple[tuple[str, str, str, str], ...]) -> str:
    return "\n".join(
        f"* **Scenario {tag} (The '{label}' Team):** Which wins? {winner}. Why? {reason}"
        for tag, label, winner, reason in scenarios
    )


def build_reply(
    *,
    tech1: str = "React",
    tech2: str = "Vue",
    matchup: str | None = None,
    rows: dict[str, tuple[str, str]] | None = None,
    scenarios: tuple[tuple[str, str, str, str], ...] | None = None,
    hidden_tax: str = DEFAULT_HIDDEN_TAX,
    tie_breaker: str = DEFAULT_TIE_BREAKER,
    omit_headings: tuple[str, ...] = (),
) -> str:
    bodies = {
        "matchup": matchup if matchup is not None else f"{tech1} vs {tech2}",
        "tape": render_table(tech1, tech2, rows if rows is not None else DEFAULT_ROWS),
        "verdicts": render_verdicts(scenarios if scenarios is not None else DEFAULT_SCENARIOS),
        "hiddenTax": hidden_tax,
        "tieBreaker": tie_breaker,
    }
    blocks = []
    for key, heading in HEADINGS.items():
        if key in omit_headings:
            blocks.append(bodies[key])
        else:
            blocks.append(f"{heading}\n{bodies[key]}")
    return "\n\n".join(blocks) + "\n"


@pytest.fixture
def reply_builder() -> Callable[..., str]:
    return build_reply


@pytest.fixture
def default_rows() -> dict[str, tuple[str, str]]:
    return dict(DEFAULT_ROWS)
