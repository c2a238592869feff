"""Precomputed class name to file lookup."""

import logging
import re
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from .config import AnalysisConfig
from .exceptions import ProviderError
from .providers import FileProvider, glob_to_regex

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE_PATTERNS = ["**/*.{ts,tsx,js,jsx,mts,cts,mjs,cjs,java,py}"]

DEFAULT_EXCLUDE_PATTERNS = [
    "**/node_modules/**", "**/dist/**", "**/build/**", "**/.next/**", "**/out/**",
    "**/coverage/**", "**/*.min.js", "**/*.d.ts",
    "**/__pycache__/**", "**/venv/**", "**/.venv/**", "**/*.egg-info/**",
    "**/target/**", "**/.gradle/**", "**/.git/**",
]

# Declarations are found with regexes so that broken files still get indexed
_TS_DECLARATION_RE = re.compile(
    r"^\s*(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?"
    r"(?:class|interface|enum|type)\s+([A-Za-z_$][\w$]*)",
    re.MULTILINE,
)
_JAVA_DECLARATION_RE = re.compile(
    r"^\s*(?:(?:public|protected|private|static|final|abstract|sealed|non-sealed|strictfp)\s+)*"
    r"(?:class|interface|enum|record|@interface)\s+([A-Za-z_$][\w$]*)",
    re.MULTILINE,
)
_PYTHON_DECLARATION_RE = re.compile(r"^class\s+([A-Z]\w*)", re.MULTILINE)

_PATTERNS_BY_SUFFIX = {
    ".ts": _TS_DECLARATION_RE, ".tsx": _TS_DECLARATION_RE, ".mts": _TS_DECLARATION_RE,
    ".cts": _TS_DECLARATION_RE, ".js": _TS_DECLARATION_RE, ".jsx": _TS_DECLARATION_RE,
    ".mjs": _TS_DECLARATION_RE, ".cjs": _TS_DECLARATION_RE,
    ".java": _JAVA_DECLARATION_RE,
    ".py": _PYTHON_DECLARATION_RE, ".pyi": _PYTHON_DECLARATION_RE,
}


class IndexStats(BaseModel):
    class_count: int
    file_count: int
    built_at: Optional[datetime] = None


def extract_class_names(file_path: str, content: str) -> List[str]:
    """Names of the types declared in a file, in source order."""
    regex = _PATTERNS_BY_SUFFIX.get(PurePath(file_path).suffix.lower())
    if regex is None:
        return []
    return list(dict.fromkeys(regex.findall(content)))


class ImportIndex:
    """Maps class names to the files that declare them.

    Built once per project and read-only afterwards; lookups never touch
    the file system, so one index can serve concurrent traversals.
    """

    def __init__(self, file_provider: FileProvider, config: Optional[AnalysisConfig] = None):
        self.file_provider = file_provider
        self.config = config or AnalysisConfig()
        self._index: Dict[str, Tuple[str, ...]] = {}
        self._file_count = 0
        self._built_at: Optional[datetime] = None

    @property
    def is_built(self) -> bool:
        return self._built_at is not None

    def build(self, include_patterns: Optional[Sequence[str]] = None,
              exclude_patterns: Optional[Sequence[str]] = None,
              max_files: int = 10000) -> "ImportIndex":
        """Scan the project and replace the current index."""
        include_patterns = list(include_patterns or DEFAULT_INCLUDE_PATTERNS)
        excludes = [glob_to_regex(p) for p in (exclude_patterns if exclude_patterns is not None else DEFAULT_EXCLUDE_PATTERNS)]

        files: List[str] = []
        for pattern in include_patterns:
            try:
                listed = self.file_provider.list_files(pattern)
            except ProviderError as e:
                logger.warning(f"Could not list files for {pattern}: {e}")
                continue
            for path in listed:
                relative = self.file_provider.relative_path(path)
                if any(regex.match(relative) for regex in excludes):
                    continue
                files.append(path)
        files = list(dict.fromkeys(files))
        if len(files) > max_files:
            logger.warning(f"Import index limited to {max_files} of {len(files)} files")
            files = files[:max_files]

        index: Dict[str, List[str]] = {}
        for path in files:
            try:
                content = self.file_provider.read_file(path)
            except ProviderError as e:
                logger.debug(f"Skipping unreadable file {path}: {e}")
                continue
            for name in extract_class_names(path, content):
                index.setdefault(name, []).append(path)

        self._index = {name: tuple(paths) for name, paths in index.items()}
        self._file_count = len(files)
        self._built_at = datetime.now(timezone.utc)
        logger.info(f"Indexed {len(self._index)} class names across {self._file_count} files")
        return self

    def resolve(self, class_name: str) -> Tuple[str, ...]:
        return self._index.get(class_name, ())

    def class_names(self) -> List[str]:
        return sorted(self._index)

    def stats(self) -> IndexStats:
        return IndexStats(class_count=len(self._index), file_count=self._file_count, built_at=self._built_at)

    def clear(self) -> None:
        self._index = {}
        self._file_count = 0
        self._built_at = None
