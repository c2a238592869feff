"""Tree-sitter integration: per-language normalization into the unified model."""

from .parser import TreeSitterParser
from .exceptions import TreeSitterError, GrammarError, ParsingError, UnsupportedFileError

__all__ = ["TreeSitterParser", "TreeSitterError", "GrammarError", "ParsingError", "UnsupportedFileError"]
