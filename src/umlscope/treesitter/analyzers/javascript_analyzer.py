"""JavaScript-specific Tree-sitter analyzer."""

from .typescript_analyzer import TypeScriptAnalyzer

class JavaScriptAnalyzer(TypeScriptAnalyzer):
    """Analyzer for plain JavaScript modules.

    The javascript grammar is a subset of the typescript one for everything
    this package extracts; type information is only ever inferred from
    initializers (`new X()`, literals).
    """
    LANGUAGE_NAME = "javascript"
    FILE_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs")
