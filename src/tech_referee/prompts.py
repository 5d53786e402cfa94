"""Prompt construction and input validation for a referee matchup."""

from __future__ import annotations

from dataclasses import dataclass

from tech_referee.config import InputConfig
from tech_referee.types import RequestValidationError

_SYSTEM_PROMPT = """
You are "The Tech Referee," a senior solutions architect and impartial arbiter. Your philosophy is that "There is no best tool, only the best tool for the specific job."

Core Behavioral Directives:
1. Reject Absolutes: Never say "X is better than Y" without immediately adding "if..."
2. Expose Hidden Costs: For every benefit, expose the "Tax" (maintenance burden, learning curve, cost at scale)
3. Scenario Mapping: Present how decisions change across 3 distinct scenarios

You must respond using the exact 5-section structure provided in prompts, with specific descriptors and qualified statements only.
""".strip()

_USER_PROMPT_TEMPLATE = """
You are The Tech Referee. Compare {tech1} vs {tech2} following this EXACT structure:

### 1. 🥊 The Matchup
Briefly define the contenders and the core conflict.

### 2. 📊 The Tale of the Tape
Create a table comparing options on: Speed, Cost, Developer Experience (DX), Scalability, and Maintainability.
* *Constraint:* Do not use generic words like "Good/Bad." Use specific descriptors (e.g., "$0 start cost", "High Latency").

### 3. ⚖️ The Verdicts
* **Scenario A (The 'Move Fast' Team):** Which wins? Why?
* **Scenario B (The 'Scale' Team):** Which wins? Why?
* **Scenario C (The 'Budget' Team):** Which wins? Why?

### 4. ⚠️ The "Hidden Tax"
Explicitly state the downside of the "winning" options.
* *Format:* "If you choose [Option A], be prepared to pay the tax of [Specific Downside] in 6 months."

### 5. 🏁 The Tie-Breaker
End with ONE single, cutting question that forces the user to decide (e.g., "Do you have a dedicated DevOps person?").

CRITICAL REQUIREMENTS:
- Never say "X is better than Y" without immediately adding "if..."
- For every benefit, expose the "Tax" (maintenance burden, learning curve, cost at scale)
- Use specific descriptors, not generic terms like "Good/Bad/Better/Worse"
- Include exactly 3 scenarios: Move Fast Team, Scale Team, Budget Team
- Each scenario must have a clear winner and specific reasoning
- Hidden Tax must be specific with timeframes and actionable impacts
- End with exactly ONE tie-breaker question

Respond with the analysis following this exact structure.
""".strip()

REQUIRED_SECTIONS: tuple[str, ...] = (
    "🥊 The Matchup",
    "📊 The Tale of the Tape",
    "⚖️ The Verdicts",
    '⚠️ The "Hidden Tax"',
    "🏁 The Tie-Breaker",
)
REQUIRED_SCENARIOS: tuple[str, ...] = ("Move Fast Team", "Scale Team", "Budget Team")
REQUIRED_DIMENSIONS: tuple[str, ...] = (
    "Speed",
    "Cost",
    "Developer Experience",
    "Scalability",
    "Maintainability",
)

TECHNOLOGY_ALIASES: dict[str, str] = {
    # JavaScript frameworks
    "react": "React",
    "react.js": "React",
    "reactjs": "React",
    "vue": "Vue",
    "vue.js": "Vue",
    "vuejs": "Vue",
    "angular": "Angular",
    "angular.js": "Angular",
    "angularjs": "Angular",
    # Databases
    "postgres": "PostgreSQL",
    "postgresql": "PostgreSQL",
    "pg": "PostgreSQL",
    "mongo": "MongoDB",
    "mongodb": "MongoDB",
    "mysql": "MySQL",
    # Cloud providers
    "aws": "Amazon Web Services",
    "gcp": "Google Cloud Platform",
    "azure": "Microsoft Azure",
    # Languages
    "js": "JavaScript",
    "javascript": "JavaScript",
    "ts": "TypeScript",
    "typescript": "TypeScript",
    "py": "Python",
    "python": "Python",
    "golang": "Go",
    # Tools
    "k8s": "Kubernetes",
    "kubernetes": "Kubernetes",
    "docker": "Docker",
    "git": "Git",
}


@dataclass(frozen=True, slots=True)
class PromptPackage:
    technology1: str
    technology2: str
    system_prompt: str
    user_prompt: str


def get_system_prompt() -> str:
    return _SYSTEM_PROMPT


def generate_referee_prompt(tech1: str, tech2: str) -> str:
    return _USER_PROMPT_TEMPLATE.format(tech1=tech1, tech2=tech2)


def build_prompts(tech1: str, tech2: str) -> PromptPackage:
    """Build the system and user instructions for already-validated names."""
    return PromptPackage(
        technology1=tech1,
        technology2=tech2,
        system_prompt=get_system_prompt(),
        user_prompt=generate_referee_prompt(tech1, tech2),
    )


def normalize_technology_name(name: str) -> str:
    stripped = name.strip()
    return TECHNOLOGY_ALIASES.get(stripped.lower(), stripped)


_SAME_TECHNOLOGY = "Cannot compare a technology with itself"


def validate_technology_input(
    tech1: str, tech2: str, config: InputConfig | None = None
) -> list[str]:
    """Return every problem with a pair of names; an empty list means valid."""

    config = config or InputConfig()
    errors: list[str] = []
    if not tech1.strip():
        errors.append("First technology cannot be empty")
    if not tech2.strip():
        errors.append("Second technology cannot be empty")

    if normalize_technology_name(tech1).lower() == normalize_technology_name(tech2).lower():
        errors.append(_SAME_TECHNOLOGY)

    generic = set(config.generic_terms)
    if tech1.strip().lower() in generic or tech2.strip().lower() in generic:
        errors.append('Please be more specific than generic terms like "technology" or "framework"')

    if len(tech1) > config.max_name_length or len(tech2) > config.max_name_length:
        errors.append(f"Technology names should be {config.max_name_length} characters or less")

    return errors


def validate_prompt_structure(prompt: str) -> bool:
    """Check a prompt names every section, scenario and comparison dimension."""
    required = (*REQUIRED_SECTIONS, *REQUIRED_SCENARIOS, *REQUIRED_DIMENSIONS)
    return all(marker in prompt for marker in required)


def create_prompt_package(
    tech1: str, tech2: str, config: InputConfig | None = None
) -> PromptPackage:
    """Validate and normalise the names, then build the prompts.

    Raises:
        RequestValidationError: when `validate_technology_input` reports problems.
    """

    errors = validate_technology_input(tech1, tech2, config)
    if errors:
        # Aliases of one technology ("react", "React.js") are a duplicate pair.
        duplicate = _SAME_TECHNOLOGY in errors and tech1.strip() and tech2.strip()
        raise RequestValidationError(
            errors, code="DUPLICATE_TECHNOLOGIES" if duplicate else "VALIDATION_ERROR"
        )
    return build_prompts(normalize_technology_name(tech1), normalize_technology_name(tech2))
