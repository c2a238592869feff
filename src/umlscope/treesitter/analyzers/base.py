"""Base class for Tree-sitter language analyzers."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional, Union

from tree_sitter import Parser as TreeSitterParser, Tree, Node

try:
    from tree_sitter_language_pack import get_parser as get_tslp_provider_parser
    _TSLP_PROVIDER_IMPORT_ERROR = None
except ImportError as e:
    get_tslp_provider_parser = None
    _TSLP_PROVIDER_IMPORT_ERROR = str(e)

from ..models import UnifiedAST
from ..exceptions import GrammarError, ParsingError
from ..type_names import simplify_type

logger = logging.getLogger(__name__)

class BaseAnalyzer(ABC):
    """
    Base class for all language normalizers.

    An analyzer owns one tree-sitter grammar (acquired through
    'tree-sitter-language-pack') and turns its syntax trees into a
    ``UnifiedAST``. Trees containing ERROR or MISSING nodes are rejected.
    """

    LANGUAGE_NAME: str
    GRAMMAR_NAME: Optional[str] = None
    FILE_EXTENSIONS: tuple[str, ...]
    TYPE_DIALECT: str = "typescript"
    parser: TreeSitterParser

    def __init__(self):
        grammar = self.grammar_name()
        if get_tslp_provider_parser is None:
            raise GrammarError(
                "The 'tree-sitter-language-pack' library could not be imported. "
                "Please ensure it's installed correctly. "
                f"Original import error: {_TSLP_PROVIDER_IMPORT_ERROR}"
            )

        try:
            self.parser = get_tslp_provider_parser(grammar)
        except LookupError as e:
            logger.error(f"Grammar '{grammar}' is not available in tree-sitter-language-pack: {e}")
            raise GrammarError(f"Language '{grammar}' not found or supported by tree-sitter-language-pack: {e}") from e
        except Exception as e:
            logger.error(f"Failed to initialize parser for {grammar}: {e}", exc_info=True)
            raise GrammarError(f"Failed to load '{grammar}' grammar using tree-sitter-language-pack: {e}") from e

        if self.parser is None or self.parser.language is None:
            raise GrammarError(f"Failed to get a valid parser for '{grammar}' from tree-sitter-language-pack.")
        logger.debug(f"Initialized {grammar} parser for {self.LANGUAGE_NAME} analysis.")

    @classmethod
    def grammar_name(cls) -> str:
        return cls.GRAMMAR_NAME or cls.LANGUAGE_NAME

    def parse(self, source_code: Union[str, bytes], file_path: str) -> Tree:
        """Parse source text into a tree, rejecting malformed input."""
        if isinstance(source_code, str):
            source_code = source_code.encode("utf-8")
        tree = self.parser.parse(source_code)
        if not tree:
            raise ParsingError(str(file_path), "Parser returned no tree.")
        self._check_tree(tree, file_path)
        return tree

    def normalize(self, tree: Tree, source_code: Union[str, bytes], file_path: str) -> UnifiedAST:
        """Convert a parsed tree into the unified model for this file."""
        if isinstance(source_code, str):
            source_code = source_code.encode("utf-8")
        self._check_tree(tree, file_path)
        ast = self._analyze_tree(tree, source_code, str(file_path))
        return ast.model_copy(update={"tree": tree})

    def analyze_source(self, source_code: Union[str, bytes], file_path: str) -> UnifiedAST:
        if isinstance(source_code, str):
            source_code = source_code.encode("utf-8")
        return self.normalize(self.parse(source_code, file_path), source_code, file_path)

    def analyze_file(self, file_path: Path) -> UnifiedAST:
        """Read a source file from disk and normalize it."""
        if not isinstance(file_path, Path):
            file_path = Path(file_path)
        with open(file_path, 'rb') as f:
            source_code = f.read()
        return self.analyze_source(source_code, str(file_path))

    def _check_tree(self, tree: Tree, file_path: str) -> None:
        if not tree.root_node.has_error:
            return
        error_node = self._find_error_node(tree.root_node)
        reason = "Source code contains syntax errors."
        if error_node is not None:
            kind = "missing " + error_node.type if error_node.is_missing else error_node.type
            reason = (
                f"Source code contains syntax errors. First error near line "
                f"{error_node.start_point[0] + 1}, column {error_node.start_point[1] + 1} (type: {kind})."
            )
        raise ParsingError(str(file_path), reason)

    def _find_error_node(self, node: Node) -> Optional[Node]:
        if node.type == "ERROR" or node.is_missing:
            return node
        for child in node.children:
            if child.has_error or child.is_missing:
                found = self._find_error_node(child)
                if found is not None:
                    return found
        return None

    @abstractmethod
    def _analyze_tree(self, tree: Tree, source_code: bytes, file_path: str) -> UnifiedAST:
        """Walk the syntax tree and return the unified model."""
        pass

    def _get_node_text(self, node: Optional[Node], source_code: bytes) -> str:
        """Get the text content of a node from the source code (decoded as UTF-8)."""
        if node is None:
            return ""
        return source_code[node.start_byte:node.end_byte].decode('utf-8', errors='replace')

    def _line(self, node: Node) -> int:
        return node.start_point[0] + 1

    def _children_of_type(self, node: Optional[Node], *types: str) -> Iterator[Node]:
        if node is None:
            return iter(())
        return (child for child in node.children if child.type in types)

    def _child_of_type(self, node: Optional[Node], *types: str) -> Optional[Node]:
        return next(self._children_of_type(node, *types), None)

    def _has_keyword(self, node: Node, keyword: str) -> bool:
        """True if an anonymous child token (e.g. 'static', 'async') is present."""
        return any(not child.is_named and child.type == keyword for child in node.children)

    def _simplify_type(self, text: Optional[str]) -> Optional[str]:
        return simplify_type(text, self.TYPE_DIALECT)

    def _strip_quotes(self, text: str) -> str:
        for quote in ('"""', "'''", '"', "'", "`"):
            if len(text) >= 2 * len(quote) and text.startswith(quote) and text.endswith(quote):
                return text[len(quote):-len(quote)]
        return text
