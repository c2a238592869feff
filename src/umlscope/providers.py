"""File system access for the cross-file engine."""

import fnmatch
import logging
import os
import re
import sys
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Sequence

from .config import AnalysisConfig
from .exceptions import ProviderError

logger = logging.getLogger(__name__)

TS_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mts", ".cts", ".mjs", ".cjs")
JAVA_EXTENSIONS = (".java",)
PYTHON_EXTENSIONS = (".py", ".pyi", ".pyw")

_GLOB_CHARS = set("*?[{")


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> "re.Pattern[str]":
    """Compile a glob into a regex matching whole '/'-separated paths.

    `**/` matches zero or more directories, `*` and `?` never cross a
    separator, `{a,b}` is an alternation.
    """
    out = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            out.append(".*")
            i += 2
            continue
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "{":
            close = pattern.find("}", i)
            if close == -1:
                out.append(re.escape(ch))
            else:
                options = pattern[i + 1:close].split(",")
                out.append("(?:" + "|".join(re.escape(o) for o in options) + ")")
                i = close + 1
                continue
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("^" + "".join(out) + "$")


def select_best_match(candidates: Sequence[str], config: AnalysisConfig) -> Optional[str]:
    """Pick one path: fixture data first, then a source root, then scan order."""
    if not candidates:
        return None
    for path in candidates:
        if config.fixture_marker and config.fixture_marker in path:
            return path
    for path in candidates:
        if config.source_root_marker and config.source_root_marker in path:
            return path
    return candidates[0]


class FileProvider(ABC):
    """Host file access used by the engine and the import index."""

    @abstractmethod
    def read_file(self, path: str) -> str:
        """Return the text of a file; raise ProviderError if it cannot be read."""
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def list_files(self, pattern: str) -> List[str]:
        """Paths of files matching a glob, in a stable order."""
        pass

    @abstractmethod
    def resolve_import(self, from_path: str, specifier: str) -> Optional[str]:
        """Map an import specifier written in `from_path` to a file path, or None."""
        pass

    def normalize_path(self, path: str) -> str:
        return path

    def contains(self, path: str) -> bool:
        """Whether a directory lies inside the project being analyzed."""
        return True

    def relative_path(self, path: str) -> str:
        """Path as seen from the project root, used for exclusion matching."""
        return path


class LocalFileProvider(FileProvider):
    """FileProvider backed by the local file system under a project root."""

    def __init__(self, root, config: Optional[AnalysisConfig] = None):
        self.root = Path(os.path.abspath(root))
        self.config = config or AnalysisConfig()

    def normalize_path(self, path) -> str:
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path
        return os.path.normpath(str(path))

    def contains(self, path: str) -> bool:
        return os.path.commonpath([str(self.root), os.path.abspath(path)]) == str(self.root)

    def relative_path(self, path: str) -> str:
        try:
            return Path(path).relative_to(self.root).as_posix()
        except ValueError:
            return Path(path).as_posix()

    def read_file(self, path: str) -> str:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ProviderError(str(path), f"Failed to read file: {e}") from e

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def _should_ignore(self, path: Path) -> bool:
        """Check a path against the ignore patterns (full path, any part, or file name)."""
        try:
            relative = path.relative_to(self.root)
        except ValueError:
            return False
        path_str = relative.as_posix()
        for pattern in self.config.ignore_patterns:
            dir_pattern = pattern.rstrip('/')
            if fnmatch.fnmatch(path_str, dir_pattern):
                return True
            if any(fnmatch.fnmatch(part, dir_pattern) for part in relative.parts):
                return True
        return False

    def _walk_base(self, pattern: str) -> Path:
        """Longest leading directory of a glob that contains no wildcard."""
        fixed = []
        for part in PurePosixPath(pattern).parts[:-1]:
            if _GLOB_CHARS & set(part):
                break
            fixed.append(part)
        return Path(*fixed) if fixed else self.root

    def list_files(self, pattern: str) -> List[str]:
        if not os.path.isabs(pattern):
            pattern = (PurePosixPath(self.root.as_posix()) / pattern).as_posix()
        if not _GLOB_CHARS & set(pattern):
            path = Path(pattern)
            return [os.path.normpath(pattern)] if path.is_file() and not self._should_ignore(path) else []
        regex = glob_to_regex(pattern)
        base = self._walk_base(pattern)
        if not base.is_dir():
            return []

        matches = []
        try:
            for dirpath, dirnames, filenames in os.walk(base):
                current = Path(dirpath)
                dirnames[:] = sorted(d for d in dirnames if not self._should_ignore(current / d))
                for file_name in sorted(filenames):
                    file_path = current / file_name
                    if regex.match(file_path.as_posix()) and not self._should_ignore(file_path):
                        matches.append(os.path.normpath(str(file_path)))
        except OSError as e:
            raise ProviderError(pattern, f"Failed to list files: {e}") from e
        return matches

    # import resolution

    def resolve_import(self, from_path: str, specifier: str) -> Optional[str]:
        suffix = Path(from_path).suffix.lower()
        if suffix in TS_EXTENSIONS:
            return self._resolve_script_import(from_path, specifier)
        if suffix in JAVA_EXTENSIONS:
            return self._resolve_java_import(specifier)
        if suffix in PYTHON_EXTENSIONS:
            return self._resolve_python_import(from_path, specifier)
        return None

    def _first_file(self, candidates: Iterable[Path]) -> Optional[str]:
        for candidate in candidates:
            if candidate.is_file():
                return os.path.normpath(str(candidate))
        return None

    def _resolve_script_import(self, from_path: str, specifier: str) -> Optional[str]:
        if specifier.startswith(("./", "../")) or specifier in (".", ".."):
            target = Path(from_path).parent / specifier
        else:
            target = None
            for alias, replacement in self.config.path_aliases.items():
                if specifier.startswith(alias):
                    target = self.root / (replacement + specifier[len(alias):])
                    break
            if target is None:
                # bare package specifier, lives in node_modules
                return None

        candidates = [target]
        candidates.extend(Path(f"{target}{ext}") for ext in TS_EXTENSIONS)
        if target.suffix in (".js", ".jsx", ".mjs", ".cjs"):
            # ESM-style TypeScript imports name the emitted .js file
            stem = target.with_suffix("")
            candidates.extend(Path(f"{stem}{ext}") for ext in (".ts", ".tsx", ".mts", ".cts"))
        candidates.extend(target / f"index{ext}" for ext in TS_EXTENSIONS)
        return self._first_file(candidates)

    def _resolve_java_import(self, specifier: str) -> Optional[str]:
        if specifier.endswith("*"):
            return None
        if any(specifier.startswith(prefix) for prefix in self.config.java_excluded_prefixes):
            return None

        segments = specifier.split(".")
        # static member imports name a member of the class
        for length in (len(segments), len(segments) - 1):
            if length < 1:
                continue
            relative = Path(*segments[:length]).with_suffix(".java")
            found = self._first_file(self.root / source_root / relative for source_root in self.config.java_source_roots)
            if found:
                return found

        class_name = segments[-1]
        try:
            matches = self.list_files(f"**/{class_name}.java")
        except ProviderError as e:
            logger.debug(f"Fallback search for {specifier} failed: {e}")
            return None
        return select_best_match(matches[:self.config.max_glob_results], self.config)

    def _resolve_python_import(self, from_path: str, specifier: str) -> Optional[str]:
        if specifier.startswith("."):
            dots = len(specifier) - len(specifier.lstrip("."))
            module = specifier[dots:]
            base = Path(from_path).parent
            for _ in range(dots - 1):
                base = base.parent
            if not module:
                return self._first_file([base / "__init__.py"])
            target = base.joinpath(*module.split("."))
            return self._first_file([target.with_name(target.name + ".py"), target / "__init__.py"])

        top_level = specifier.split(".", 1)[0]
        if top_level in sys.stdlib_module_names:
            return None

        relative = Path(*specifier.split("."))
        for source_root in self.config.python_source_roots:
            target = self.root / source_root / relative
            found = self._first_file([target.with_name(target.name + ".py"), target / "__init__.py"])
            if found:
                return found

        try:
            matches = self.list_files(f"**/{relative.name}.py")
        except ProviderError as e:
            logger.debug(f"Fallback search for {specifier} failed: {e}")
            return None
        return select_best_match(matches[:self.config.max_glob_results], self.config)
