"""Classification of structural relationships between classes."""

import logging
from typing import Iterable, List, Optional, Set, Tuple

from .models import OOAnalysisResult, ResolvedTypeInfo
from .treesitter.models import ClassInfo, DependencyInfo, ImportInfo, Visibility
from .type_resolver import resolve_type_info

logger = logging.getLogger(__name__)


def classify_property(resolved: Optional[ResolvedTypeInfo], visibility: Visibility,
                      is_static: bool) -> List[Tuple[str, str]]:
    """Relationship kinds and cardinalities implied by one property.

    A collection of a class type is an aggregation. A single reference is a
    composition when the property is private or belongs to instances, and
    additionally an association when it is public.
    """
    if resolved is None or not resolved.is_class_type:
        return []
    if resolved.is_array:
        return [("aggregation", "*")]
    kinds = []
    if visibility == "private" or not is_static:
        kinds.append(("composition", "1"))
    if visibility == "public":
        kinds.append(("association", "1"))
    return kinds


class OOAnalyzer:
    """Derives relationship edges from the classes of a single file.

    Stateless: every call to ``analyze`` starts from scratch.
    """

    def analyze(self, classes: Iterable[ClassInfo], imports: Iterable[ImportInfo] = ()) -> OOAnalysisResult:
        imports = list(imports)
        result = OOAnalysisResult()
        seen: Set[str] = set()

        def add(bucket: List[DependencyInfo], edge: DependencyInfo) -> None:
            key = edge.key()
            if key not in seen:
                seen.add(key)
                bucket.append(edge)

        def edge(cls: ClassInfo, resolved: ResolvedTypeInfo, kind: str, line: Optional[int],
                 cardinality: Optional[str] = None, context: Optional[str] = None) -> DependencyInfo:
            return DependencyInfo(
                from_class=cls.name,
                to=resolved.type_name,
                type=kind,
                cardinality=cardinality,
                context=context,
                line_number=line if line is not None else cls.line_number,
                is_external=resolved.is_external,
                source_module=resolved.source_module,
            )

        buckets = {
            "composition": result.compositions,
            "aggregation": result.aggregations,
            "association": result.associations,
        }

        for cls in classes:
            for prop in cls.properties:
                resolved = resolve_type_info(prop.type, imports)
                for kind, cardinality in classify_property(resolved, prop.visibility, prop.is_static):
                    add(buckets[kind], edge(cls, resolved, kind, prop.line_number, cardinality, prop.name))

            for method in cls.methods:
                for param in method.parameters:
                    resolved = resolve_type_info(param.type, imports)
                    if resolved is not None and resolved.is_class_type:
                        add(result.dependencies, edge(
                            cls, resolved, "dependency", method.line_number,
                            context=f"{method.name}({param.name})",
                        ))
                resolved = resolve_type_info(method.return_type, imports)
                if resolved is not None and resolved.is_class_type:
                    add(result.dependencies, edge(
                        cls, resolved, "dependency", method.line_number,
                        context=f"{method.name}() returns {resolved.type_name}",
                    ))

            for param in cls.constructor_params or []:
                resolved = resolve_type_info(param.type, imports)
                if resolved is not None and resolved.is_class_type:
                    add(result.injections, edge(
                        cls, resolved, "injection", cls.line_number, context=f"constructor({param.name})",
                    ))

            self._add_hierarchy(cls, imports, result, add, edge)

        logger.debug(f"Derived {len(seen)} relationships")
        return result

    def _add_hierarchy(self, cls, imports, result, add, edge) -> None:
        parents = [(cls.extends, "inheritance")] if cls.extends else []
        parents.extend((name, "realization") for name in cls.implements)

        for name, kind in parents:
            resolved = resolve_type_info(name, imports)
            if resolved is None or not resolved.is_class_type:
                continue
            bucket = result.inheritances if kind == "inheritance" else result.realizations
            add(bucket, edge(cls, resolved, kind, cls.line_number))
            if kind == "inheritance":
                subclasses = result.inheritance_tree.setdefault(resolved.type_name, [])
                if cls.name not in subclasses:
                    subclasses.append(cls.name)
