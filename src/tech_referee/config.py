"""Configuration models for the referee pipeline."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ParserConfig(BaseModel):
    """Tunes the tolerance of the reply parsers."""

    default_timeframe: str = Field(default="6 months", min_length=1)
    min_scenario_chars: int = Field(default=10, ge=0)
    scenario_window_chars: int = Field(default=300, ge=20)
    excerpt_chars: int = Field(default=200, ge=20)


class InputConfig(BaseModel):
    """Constraints applied to technology names before prompting."""

    max_name_length: int = Field(default=50, ge=1)
    generic_terms: tuple[str, ...] = (
        "technology",
        "tool",
        "framework",
        "library",
        "database",
        "language",
    )


class ModelConfig(BaseModel):
    """Configures the chat model used to referee a matchup."""

    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, ge=1)
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    max_retries: int = Field(default=2, ge=0)


class LoggingConfig(BaseModel):
    """Configures structlog output."""

    level: str = "INFO"
    format: Literal["console", "json"] = "console"
