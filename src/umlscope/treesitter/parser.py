"""Extension-based dispatch to the language analyzers."""

import logging
import threading
from pathlib import PurePath
from typing import Dict, Iterable, List, Optional, Type, Union

from tree_sitter import Tree

from .analyzers import (
    BaseAnalyzer, PythonAnalyzer, JavaAnalyzer, TypeScriptAnalyzer, TsxAnalyzer, JavaScriptAnalyzer
)
from .models import UnifiedAST
from .exceptions import TreeSitterError, UnsupportedFileError

logger = logging.getLogger(__name__)

DEFAULT_ANALYZERS = (PythonAnalyzer, JavaAnalyzer, TypeScriptAnalyzer, TsxAnalyzer, JavaScriptAnalyzer)

class TreeSitterParser:
    """Registry of language analyzers, selected by file extension.

    Analyzer instances are created lazily on first use and reused; each one
    holds a tree-sitter parser, so a ``TreeSitterParser`` should not be
    shared between threads that parse concurrently.
    """

    def __init__(self, analyzers: Optional[Iterable[Type[BaseAnalyzer]]] = None):
        self.analyzers: Dict[str, Type[BaseAnalyzer]] = {}
        self.extension_map: Dict[str, Type[BaseAnalyzer]] = {}
        self._instances: Dict[str, BaseAnalyzer] = {}
        self._lock = threading.Lock()
        for analyzer_class in analyzers if analyzers is not None else DEFAULT_ANALYZERS:
            self.register(analyzer_class)

    def register(self, analyzer_class: Type[BaseAnalyzer]) -> None:
        """Register an analyzer under its grammar name and extensions."""
        grammar = analyzer_class.grammar_name()
        if grammar in self.analyzers:
            raise TreeSitterError(f"Analyzer for '{grammar}' is already registered")
        self.analyzers[grammar] = analyzer_class
        for ext in analyzer_class.FILE_EXTENSIONS:
            self.extension_map[ext] = analyzer_class

    def unregister(self, grammar: str) -> None:
        analyzer_class = self.analyzers.pop(grammar, None)
        if analyzer_class is None:
            return
        self._instances.pop(grammar, None)
        for ext in [e for e, cls in self.extension_map.items() if cls is analyzer_class]:
            del self.extension_map[ext]

    def clear(self) -> None:
        self.analyzers.clear()
        self.extension_map.clear()
        self._instances.clear()

    def _analyzer_class(self, file_path: Union[str, PurePath]) -> Optional[Type[BaseAnalyzer]]:
        return self.extension_map.get(PurePath(str(file_path)).suffix.lower())

    def detect_language(self, file_path: Union[str, PurePath]) -> Optional[str]:
        """Language tag for a path, or None if no analyzer handles it."""
        analyzer_class = self._analyzer_class(file_path)
        return analyzer_class.LANGUAGE_NAME if analyzer_class else None

    def can_parse(self, file_path: Union[str, PurePath]) -> bool:
        return self._analyzer_class(file_path) is not None

    def registered_languages(self) -> List[str]:
        return sorted({cls.LANGUAGE_NAME for cls in self.analyzers.values()})

    def extensions_for(self, language: str) -> List[str]:
        """Extensions of every analyzer registered for a language tag."""
        return [ext for ext, cls in self.extension_map.items() if cls.LANGUAGE_NAME == language]

    def get_analyzer(self, file_path: Union[str, PurePath]) -> BaseAnalyzer:
        """
        Return the analyzer instance responsible for a file.

        Raises:
            UnsupportedFileError: If no analyzer handles the file's extension.
            GrammarError: If the grammar cannot be loaded.
        """
        analyzer_class = self._analyzer_class(file_path)
        if analyzer_class is None:
            raise UnsupportedFileError(str(file_path))
        grammar = analyzer_class.grammar_name()
        with self._lock:
            analyzer = self._instances.get(grammar)
            if analyzer is None:
                analyzer = analyzer_class()
                self._instances[grammar] = analyzer
        return analyzer

    def parse(self, source_code: Union[str, bytes], file_path: Union[str, PurePath]) -> Tree:
        return self.get_analyzer(file_path).parse(source_code, str(file_path))

    def normalize(self, source_code: Union[str, bytes], file_path: Union[str, PurePath]) -> UnifiedAST:
        """Parse and normalize source text according to the file's extension."""
        analyzer = self.get_analyzer(file_path)
        logger.debug(f"Normalizing {file_path} with {type(analyzer).__name__}")
        return analyzer.analyze_source(source_code, str(file_path))
