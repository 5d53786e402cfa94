"""Tech Referee package."""

from .config import InputConfig, ModelConfig, ParserConfig
from .parsing.assembler import parse_reply

__all__ = ["InputConfig", "ModelConfig", "ParserConfig", "parse_reply"]
