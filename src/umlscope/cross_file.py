"""Cross-file traversal of the class relationship graph.

Starting from one file, the engine normalizes it, derives its relationships
and follows the referenced class names to the files that declare them,
forward (dependencies), in reverse (dependents) or both.
"""

import logging
import os
import re
import threading
from pathlib import PurePath
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .config import AnalysisConfig
from .exceptions import InvalidDepthError, ProviderError, StartFileNotFoundError
from .import_index import ImportIndex
from .models import (
    AnalysisMode, AnalysisStats, BidirectionalAnalysisResult, ClassLocation, FileAnalysisResult
)
from .oo_analyzer import OOAnalyzer
from .providers import FileProvider, JAVA_EXTENSIONS, PYTHON_EXTENSIONS, TS_EXTENSIONS, select_best_match
from .treesitter import TreeSitterParser, TreeSitterError
from .treesitter.models import ClassInfo, DependencyInfo, ImportInfo, UnifiedAST
from .type_resolver import resolve_type_info

logger = logging.getLogger(__name__)

# Conventional source file extensions probed when resolving a class name
_RESOLUTION_EXTENSIONS = {
    "typescript": (".ts", ".tsx", ".js", ".jsx"),
    "javascript": (".ts", ".tsx", ".js", ".jsx"),
    "java": (".java",),
    "python": (".py",),
}

# Extensions of each language family
_FAMILY_EXTENSIONS = {
    "typescript": TS_EXTENSIONS,
    "javascript": TS_EXTENSIONS,
    "java": JAVA_EXTENSIONS,
    "python": PYTHON_EXTENSIONS,
}

_FIRST_CAP_RE = re.compile(r"(.)([A-Z][a-z]+)")
_ALL_CAP_RE = re.compile(r"([a-z0-9])([A-Z])")


def camel_to_snake(name: str) -> str:
    """`UserService` -> `user_service`, `HTTPServer` -> `http_server`."""
    return _ALL_CAP_RE.sub(r"\1_\2", _FIRST_CAP_RE.sub(r"\1_\2", name)).lower()


def _unique(items: Iterable) -> List:
    return list(dict.fromkeys(items))


class TraversalContext:
    """State owned by a single traversal.

    Pass one in to inspect unresolved names afterwards or to cancel a
    running traversal from another thread through ``cancel_event``.
    """

    def __init__(self, max_files: int = 500, cancel_event: Optional[threading.Event] = None):
        self.max_files = max_files
        self.cancel_event = cancel_event
        self.visited: Set[str] = set()
        self.pinned: Set[str] = set()
        self.results: Dict[str, FileAnalysisResult] = {}
        self.unresolved: Dict[str, List[str]] = {}
        self.ast_cache: Dict[str, Optional[UnifiedAST]] = {}
        self._limit_reported = False

    def fork(self) -> "TraversalContext":
        """Fresh traversal state sharing cancellation and unresolved diagnostics."""
        child = TraversalContext(self.max_files, self.cancel_event)
        child.unresolved = self.unresolved
        return child

    def should_stop(self) -> bool:
        if self.cancel_event is not None and self.cancel_event.is_set():
            return True
        if len(self.visited) >= self.max_files:
            if not self._limit_reported:
                logger.warning(f"File limit of {self.max_files} reached, traversal stops expanding")
                self._limit_reported = True
            return True
        return False

    def record_unresolved(self, class_name: str, referenced_from: str) -> None:
        referrers = self.unresolved.setdefault(class_name, [])
        if referenced_from not in referrers:
            referrers.append(referenced_from)


class CrossFileAnalyzer:
    """Walks class relationships across file boundaries."""

    def __init__(self, file_provider: FileProvider, import_index: Optional[ImportIndex] = None,
                 parser: Optional[TreeSitterParser] = None, config: Optional[AnalysisConfig] = None):
        self.file_provider = file_provider
        self.import_index = import_index
        self.parser = parser or TreeSitterParser()
        self.config = config or getattr(file_provider, "config", None) or AnalysisConfig()
        self.oo_analyzer = OOAnalyzer()

    # entry points

    def analyze(self, file_path: str, max_depth: int, mode: AnalysisMode = AnalysisMode.FORWARD,
                context: Optional[TraversalContext] = None):
        mode = AnalysisMode(mode)
        if mode is AnalysisMode.FORWARD:
            return self.analyze_forward(file_path, max_depth, context)
        if mode is AnalysisMode.REVERSE:
            return self.analyze_reverse(file_path, max_depth, context)
        return self.analyze_bidirectional(file_path, max_depth, context)

    def analyze_forward(self, file_path: str, max_depth: int,
                        context: Optional[TraversalContext] = None) -> Dict[str, FileAnalysisResult]:
        """Files reachable from `file_path` through class references, keyed by path."""
        start = self._validate(file_path, max_depth)
        ctx = context or self.new_context()
        result = self._analyze_start(ctx, start)
        ctx.results[start] = result
        self._expand(ctx, result, 0, max_depth)
        return dict(ctx.results)

    def analyze_reverse(self, file_path: str, max_depth: int,
                        context: Optional[TraversalContext] = None) -> Dict[str, FileAnalysisResult]:
        """The target plus the files that (transitively) depend on it.

        Importers are numbered from the outermost dependent (depth 0) inwards;
        the target gets the deepest depth.
        """
        target = self._validate(file_path, max_depth)
        ctx = context or self.new_context()
        target_result = self._analyze_start(ctx, target)
        levels = max(1, max_depth - 1)

        known: Dict[str, FileAnalysisResult] = {target: target_result}
        discovered: List[Tuple[str, int, str]] = []
        frontier = [target]
        for level in range(1, levels + 1):
            next_frontier = []
            for imported in frontier:
                for importer in self._find_importers(ctx, known[imported]):
                    if importer in ctx.visited or ctx.should_stop():
                        continue
                    ctx.visited.add(importer)
                    ast = self._load_ast(ctx, importer)
                    if ast is None:
                        continue
                    known[importer] = self._build_result(ast, 0)
                    discovered.append((importer, level, imported))
                    next_frontier.append(importer)
            frontier = next_frontier
            if not frontier:
                break

        deepest = max((level for _, level, _ in discovered), default=0)
        for importer, level, imported in discovered:
            result = known[importer]
            synthesized = self._synthesize_edges(result, known[imported])
            ctx.results[importer] = result.model_copy(update={
                "depth": deepest - level,
                "relationships": result.relationships + synthesized,
            })
            ctx.pinned.add(importer)

        # the target's own edges describe its dependencies, not its dependents
        ctx.results[target] = target_result.model_copy(update={"depth": deepest, "relationships": []})
        ctx.pinned.add(target)
        logger.debug(f"Found {len(discovered)} importers of {target} across {deepest} levels")

        for importer, _, _ in discovered:
            result = ctx.results[importer]
            self._expand(ctx, result, result.depth, result.depth + levels)
        return dict(ctx.results)

    def analyze_bidirectional(self, file_path: str, max_depth: int,
                              context: Optional[TraversalContext] = None) -> BidirectionalAnalysisResult:
        target = self._validate(file_path, max_depth)
        ctx = context or self.new_context()
        forward = self.analyze_forward(target, max_depth, ctx.fork())
        reverse = self.analyze_reverse(target, max_depth, ctx.fork())

        merged: Dict[str, FileAnalysisResult] = {}
        for results in (forward, reverse):
            for path, result in results.items():
                existing = merged.get(path)
                merged[path] = result if existing is None else self._merge_results(existing, result)

        all_classes: Dict[str, ClassLocation] = {}
        relationships: Dict[str, DependencyInfo] = {}
        for path, result in merged.items():
            for cls in result.classes:
                all_classes.setdefault(f"{path}:{cls.name}", ClassLocation(file_path=path, class_info=cls))
            for rel in result.relationships:
                relationships.setdefault(rel.key(), rel)

        return BidirectionalAnalysisResult(
            target_file=target,
            forward_deps=[r for p, r in forward.items() if p != target],
            reverse_deps=[r for p, r in reverse.items() if p != target],
            files=merged,
            all_classes=list(all_classes.values()),
            relationships=list(relationships.values()),
            stats=AnalysisStats(
                total_files=len(merged),
                total_classes=len(all_classes),
                total_relationships=len(relationships),
                max_depth=max((r.depth for r in merged.values()), default=0),
            ),
        )

    def analyze_file(self, file_path: str, depth: int = 0) -> FileAnalysisResult:
        """Analyze a single file; read and parse errors propagate."""
        path = self.file_provider.normalize_path(file_path)
        return self._build_result(self._normalize(path), depth)

    def new_context(self) -> TraversalContext:
        return TraversalContext(self.config.max_files)

    # traversal

    def _validate(self, file_path: str, max_depth: int) -> str:
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) \
                or not 1 <= max_depth <= self.config.max_allowed_depth:
            raise InvalidDepthError(max_depth, self.config.max_allowed_depth)
        path = self.file_provider.normalize_path(file_path)
        if not self._safe_exists(path):
            raise StartFileNotFoundError(str(file_path))
        return path

    def _normalize(self, path: str) -> UnifiedAST:
        source = self.file_provider.read_file(path)
        return self.parser.normalize(source, path)

    def _analyze_start(self, ctx: TraversalContext, path: str) -> FileAnalysisResult:
        ctx.visited.add(path)
        ast = self._normalize(path)
        ctx.ast_cache[path] = ast
        return self._build_result(ast, 0)

    def _load_ast(self, ctx: TraversalContext, path: str) -> Optional[UnifiedAST]:
        """Normalize a non-start file, logging and skipping failures."""
        if path in ctx.ast_cache:
            return ctx.ast_cache[path]
        ast = None
        try:
            ast = self._normalize(path)
        except TreeSitterError as e:
            logger.warning(f"Skipping {path}: {e}")
        except (ProviderError, OSError) as e:
            logger.warning(f"Skipping unreadable file {path}: {e}")
        ctx.ast_cache[path] = ast
        return ast

    def _build_result(self, ast: UnifiedAST, depth: int) -> FileAnalysisResult:
        classes = ast.all_classes()
        if ast.relationships is None:
            ast.attach_relationships(self.oo_analyzer.analyze(classes, ast.imports).relationships)
        return FileAnalysisResult(
            file_path=ast.file_path,
            language=ast.language,
            classes=classes,
            imports=list(ast.imports),
            exports=list(ast.exports),
            relationships=list(ast.relationships),
            depth=depth,
        )

    def _visit(self, ctx: TraversalContext, path: str, depth: int, max_depth: int) -> None:
        if path in ctx.pinned:
            return
        existing = ctx.results.get(path)
        if existing is not None:
            # reached again by a shorter path: re-expand with the remaining budget
            if depth < existing.depth:
                updated = existing.model_copy(update={"depth": depth})
                ctx.results[path] = updated
                self._expand(ctx, updated, depth, max_depth)
            return
        if path in ctx.visited or ctx.should_stop():
            return
        ctx.visited.add(path)
        ast = self._load_ast(ctx, path)
        if ast is None:
            return
        result = self._build_result(ast, depth)
        ctx.results[path] = result
        self._expand(ctx, result, depth, max_depth)

    def _expand(self, ctx: TraversalContext, result: FileAnalysisResult, depth: int, max_depth: int) -> None:
        if depth >= max_depth:
            return
        for class_name, source_module in self._referenced_classes(result):
            if ctx.should_stop():
                return
            resolved = self.find_class_file(result.file_path, class_name, result.imports, source_module)
            if resolved is None:
                ctx.record_unresolved(class_name, result.file_path)
                logger.debug(f"Could not resolve {class_name} referenced from {result.file_path}")
                continue
            self._visit(ctx, resolved, depth + 1, max_depth)

    def _referenced_classes(self, result: FileAnalysisResult) -> List[Tuple[str, Optional[str]]]:
        """Class names the file refers to, minus those it declares itself."""
        local = {cls.name for cls in result.classes}
        references: Dict[str, Optional[str]] = {}
        for rel in result.relationships:
            if rel.to not in local and rel.to not in references:
                references[rel.to] = rel.source_module
        for cls in result.classes:
            for parent in [cls.extends] + list(cls.implements):
                resolved = resolve_type_info(parent, result.imports)
                if resolved is None or not resolved.is_class_type or resolved.type_name in local:
                    continue
                references.setdefault(resolved.type_name, resolved.source_module)
        return list(references.items())

    # file resolution

    def find_class_file(self, current_file: str, class_name: str,
                        imports: Optional[Sequence[ImportInfo]] = None,
                        source_module: Optional[str] = None) -> Optional[str]:
        """Map a class name referenced from `current_file` to the file declaring it.

        Strategies, first hit wins: same-directory probe, import index,
        the import naming the class, project-wide filename search.
        """
        language = self.parser.detect_language(current_file) or "typescript"
        stems = self._file_stems(class_name, language)
        extensions = _RESOLUTION_EXTENSIONS.get(language, ())

        directory = os.path.dirname(current_file)
        for stem in stems:
            for ext in extensions:
                candidate = os.path.join(directory, f"{stem}{ext}")
                if candidate != current_file and self._safe_exists(candidate):
                    return self.file_provider.normalize_path(candidate)

        if self.import_index is not None:
            family = _FAMILY_EXTENSIONS.get(language, ())
            candidates = [c for c in self.import_index.resolve(class_name) if c.lower().endswith(family)]
            if candidates:
                return self.file_provider.normalize_path(candidates[0])

        found = self._resolve_via_imports(current_file, class_name, imports or (), source_module)
        if found:
            return found

        for stem in stems:
            for ext in extensions:
                matches = self._safe_list(f"**/{stem}{ext}")[:self.config.max_glob_results]
                matches = [m for m in matches if m != current_file]
                if matches:
                    return self.file_provider.normalize_path(select_best_match(matches, self.config))
        return None

    def _file_stems(self, class_name: str, language: str) -> List[str]:
        if language == "java":
            return [class_name]
        snake = camel_to_snake(class_name)
        if language == "python":
            return _unique([snake, class_name, class_name.lower()])
        return _unique([class_name, class_name.lower(), snake.replace("_", "-")])

    def _resolve_via_imports(self, current_file: str, class_name: str,
                             imports: Sequence[ImportInfo], source_module: Optional[str]) -> Optional[str]:
        sources = [imp.source for imp in imports if class_name in imp.specifiers]
        if source_module:
            sources.append(source_module)
        for source in _unique(sources):
            target = self._safe_resolve(current_file, source)
            if target and target != current_file and self._safe_exists(target):
                return self.file_provider.normalize_path(target)
        return None

    # reverse discovery

    def _exported_names(self, result: FileAnalysisResult) -> List[str]:
        names = [cls.name for cls in result.classes]
        names.extend(e.name for e in result.exports if e.name not in ("*", "default"))
        return _unique(names) or [PurePath(result.file_path).stem]

    def _find_importers(self, ctx: TraversalContext, imported: FileAnalysisResult) -> List[str]:
        target = imported.file_path
        names = set(self._exported_names(imported))
        extensions = _FAMILY_EXTENSIONS.get(imported.language, ())

        directories = []
        directory = os.path.dirname(target)
        for _ in range(3):
            if not directory or not self.file_provider.contains(directory):
                break
            directories.append(directory)
            parent = os.path.dirname(directory)
            if parent == directory:
                break
            directory = parent

        def scan(patterns: List[str]) -> List[str]:
            candidates = []
            for pattern in patterns:
                candidates.extend(self._safe_list(pattern)[:self.config.max_reverse_candidates])
            return [c for c in _unique(candidates)
                    if c != target and self._file_imports_any(ctx, c, names, imported)]

        local = scan([PurePath(d, "**", f"*{ext}").as_posix() for d in directories for ext in extensions])
        if local:
            return local
        return scan([f"**/*{ext}" for ext in extensions])

    def _file_imports_any(self, ctx: TraversalContext, candidate: str, names: Set[str],
                          imported: FileAnalysisResult) -> bool:
        ast = self._load_ast(ctx, candidate)
        if ast is None:
            return False
        stem = PurePath(imported.file_path).stem
        for imp in ast.imports:
            if names.intersection(imp.specifiers):
                return True
            # `from . import target` names the module itself
            if ast.language == "python" and stem in imp.specifiers:
                return True
            last_segment = re.split(r"[/.]", imp.source.rstrip("/"))[-1] if imp.source.strip("./") else ""
            if last_segment == stem:
                return True
            if self._safe_resolve(candidate, imp.source) == imported.file_path:
                return True
        if ast.language == "java" and os.path.dirname(candidate) == os.path.dirname(imported.file_path):
            # same package: no import statement needed
            return any(name in names for name in self._type_names_used(ast.all_classes()))
        return False

    def _type_names_used(self, classes: Iterable[ClassInfo]) -> Set[str]:
        used = set()
        for cls in classes:
            raw = [p.type for p in cls.properties] + [cls.extends] + list(cls.implements)
            for method in cls.methods:
                raw.append(method.return_type)
                raw.extend(p.type for p in method.parameters)
            raw.extend(p.type for p in cls.constructor_params or [])
            for type_string in raw:
                resolved = resolve_type_info(type_string)
                if resolved is not None and resolved.is_class_type:
                    used.add(resolved.type_name)
        return used

    def _synthesize_edges(self, importer: FileAnalysisResult, imported: FileAnalysisResult) -> List[DependencyInfo]:
        """Dependency edges from importer classes to the names they use from `imported`."""
        names = set(self._exported_names(imported))
        imported_names = {s for imp in importer.imports for s in imp.specifiers if s in names}
        if importer.language == "java" and os.path.dirname(importer.file_path) == os.path.dirname(imported.file_path):
            imported_names |= names
        existing = {(r.from_class, r.to) for r in importer.relationships if r.type == "dependency"}
        basename = os.path.basename(imported.file_path)

        edges = []
        for cls in importer.classes:
            used = self._type_names_used([cls])
            used.update(r.to for r in importer.relationships if r.from_class == cls.name)
            for name in sorted(imported_names & used):
                if (cls.name, name) in existing:
                    continue
                existing.add((cls.name, name))
                edges.append(DependencyInfo(
                    from_class=cls.name,
                    to=name,
                    type="dependency",
                    context=f"imports from {basename}",
                    line_number=cls.line_number,
                ))
        return edges

    def _merge_results(self, first: FileAnalysisResult, second: FileAnalysisResult) -> FileAnalysisResult:
        relationships = {rel.key(): rel for rel in first.relationships}
        for rel in second.relationships:
            relationships.setdefault(rel.key(), rel)
        return first.model_copy(update={"relationships": list(relationships.values())})

    # provider calls that degrade to "no result"

    def _safe_exists(self, path: str) -> bool:
        try:
            return self.file_provider.exists(path)
        except (ProviderError, OSError) as e:
            logger.debug(f"Existence check failed for {path}: {e}")
            return False

    def _safe_list(self, pattern: str) -> List[str]:
        try:
            return self.file_provider.list_files(pattern)
        except (ProviderError, OSError) as e:
            logger.debug(f"File listing failed for {pattern}: {e}")
            return []

    def _safe_resolve(self, from_path: str, specifier: str) -> Optional[str]:
        try:
            return self.file_provider.resolve_import(from_path, specifier)
        except (ProviderError, OSError) as e:
            logger.debug(f"Import resolution failed for {specifier} in {from_path}: {e}")
            return None
