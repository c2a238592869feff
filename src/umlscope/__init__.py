"""Class relationship extraction across TypeScript, JavaScript, Java and Python sources."""

__version__ = "0.3.0"

from .config import AnalysisConfig, load_config
from .cross_file import CrossFileAnalyzer, TraversalContext
from .exceptions import (
    UmlscopeError, PreconditionError, InvalidDepthError, StartFileNotFoundError, ProviderError, ConfigError
)
from .import_index import ImportIndex
from .models import AnalysisMode, BidirectionalAnalysisResult, FileAnalysisResult
from .oo_analyzer import OOAnalyzer
from .providers import FileProvider, LocalFileProvider
from .type_resolver import resolve_type_info

__all__ = [
    "__version__",
    "AnalysisConfig", "load_config",
    "CrossFileAnalyzer", "TraversalContext",
    "UmlscopeError", "PreconditionError", "InvalidDepthError", "StartFileNotFoundError",
    "ProviderError", "ConfigError",
    "ImportIndex",
    "AnalysisMode", "BidirectionalAnalysisResult", "FileAnalysisResult",
    "OOAnalyzer",
    "FileProvider", "LocalFileProvider",
    "resolve_type_info",
]
