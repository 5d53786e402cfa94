"""Deterministic stand-in model used when no OpenAI key is configured."""

from __future__ import annotations

import re

from tech_referee.llm.client import ModelErrorKind, ModelInvocationError

_MATCHUP = re.compile(r"Compare\s+(?P<tech1>.+?)\s+vs\s+(?P<tech2>.+?)\s+following this EXACT structure")

_DIMENSIONS = ("Speed", "Cost", "Developer Experience", "Scalability", "Maintainability")


class OfflineRefereeModel:
    """Replies with a canonical five-section analysis without calling any API.

    The reply keeps the same structure a cooperative model produces, so the
    full parse pipeline runs in local and CI environments where
    `OPENAI_API_KEY` is not set. Its descriptors say plainly that no live
    analysis took place.
    """

    def invoke(self, system_prompt: str, user_prompt: str) -> str:
        del system_prompt  # the canned reply does not depend on the persona.
        match = _MATCHUP.search(user_prompt)
        if match is None:
            raise ModelInvocationError(
                ModelErrorKind.UNKNOWN,
                "Offline model could not read the matchup from the prompt.",
            )
        return render_offline_reply(match.group("tech1"), match.group("tech2"))


def render_offline_reply(tech1: str, tech2: str) -> str:
    rows = "\n".join(
        f"| {dimension} | {tech1}: not benchmarked offline | {tech2}: not benchmarked offline |"
        for dimension in _DIMENSIONS
    )
    return f"""### 1. 🥊 The Matchup
{tech1} vs {tech2}. This analysis was generated offline without a language model.

### 2. 📊 The Tale of the Tape
| Dimension | {tech1} | {tech2} |
|-----------|---------|---------|
{rows}

### 3. ⚖️ The Verdicts
**Scenario A (The 'Move Fast' Team):** Which wins? {tech1}. Why? Offline default: the first contender is listed as the winner.
**Scenario B (The 'Scale' Team):** Which wins? {tech2}. Why? Offline default: the second contender is listed as the winner.
**Scenario C (The 'Budget' Team):** Which wins? {tech1}. Why? Offline default: the first contender is listed as the winner.

### 4. ⚠️ The "Hidden Tax"
If you choose {tech1}, be prepared to pay the tax of an unverified offline recommendation in 6 months.

### 5. 🏁 The Tie-Breaker
Which constraint matters most to your team right now: delivery speed, scale, or budget?
"""
