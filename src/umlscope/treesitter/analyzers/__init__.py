"""Tree-sitter language analyzers using tree-sitter-language-pack."""

from .base import BaseAnalyzer
from .python_analyzer import PythonAnalyzer
from .java_analyzer import JavaAnalyzer
from .typescript_analyzer import TypeScriptAnalyzer, TsxAnalyzer
from .javascript_analyzer import JavaScriptAnalyzer

__all__ = [
    'BaseAnalyzer', 'PythonAnalyzer', 'JavaAnalyzer',
    'TypeScriptAnalyzer', 'TsxAnalyzer', 'JavaScriptAnalyzer',
]
