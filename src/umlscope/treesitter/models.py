"""Data models for the unified, language-agnostic view of a source file."""

from typing import Any, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field

Visibility = Literal["public", "private", "protected"]
RelationshipType = Literal[
    "inheritance", "realization", "composition", "aggregation",
    "association", "dependency", "injection",
]
Cardinality = Literal["1", "0..1", "1..*", "*", "0..*"]

class ImportInfo(BaseModel):
    """Model for import statements."""
    source: str
    specifiers: List[str] = Field(default_factory=list)
    is_default: bool = False
    is_namespace: bool = False
    namespace_alias: Optional[str] = None
    is_dynamic: bool = False
    is_type_only: bool = False
    line_number: Optional[int] = None

class ExportInfo(BaseModel):
    """Model for exported names."""
    name: str
    is_default: bool = False
    is_re_export: bool = False
    source: Optional[str] = None
    export_type: Literal["class", "interface", "function", "variable", "type", "unknown"] = "unknown"
    line_number: Optional[int] = None

class ParameterInfo(BaseModel):
    """Model for function/method parameters."""
    name: str
    type: Optional[str] = None
    is_optional: bool = False
    default_value: Optional[str] = None

class PropertyInfo(BaseModel):
    """Model for class properties and fields."""
    name: str
    type: Optional[str] = None
    visibility: Visibility = "public"
    is_static: bool = False
    is_readonly: bool = False
    is_optional: bool = False
    line_number: Optional[int] = None

class MethodInfo(BaseModel):
    """Model for class methods."""
    name: str
    parameters: List[ParameterInfo] = Field(default_factory=list)
    return_type: Optional[str] = None
    visibility: Visibility = "public"
    is_static: bool = False
    is_abstract: bool = False
    is_async: bool = False
    line_number: Optional[int] = None

class ClassInfo(BaseModel):
    """Model for class definitions."""
    name: str
    kind: Literal["class", "interface"] = "class"
    properties: List[PropertyInfo] = Field(default_factory=list)
    methods: List[MethodInfo] = Field(default_factory=list)
    extends: Optional[str] = None
    implements: List[str] = Field(default_factory=list)
    constructor_params: Optional[List[ParameterInfo]] = None
    is_abstract: bool = False
    line_number: Optional[int] = None

class InterfaceInfo(BaseModel):
    """Model for interface definitions."""
    name: str
    kind: Literal["interface"] = "interface"
    properties: List[PropertyInfo] = Field(default_factory=list)
    methods: List[MethodInfo] = Field(default_factory=list)
    extends: List[str] = Field(default_factory=list)
    line_number: Optional[int] = None

    def to_class_info(self) -> ClassInfo:
        """View this interface as a class entry: the first parent is the superclass."""
        return ClassInfo(
            name=self.name,
            kind="interface",
            properties=list(self.properties),
            methods=list(self.methods),
            extends=self.extends[0] if self.extends else None,
            implements=list(self.extends[1:]),
            is_abstract=True,
            line_number=self.line_number,
        )

class FunctionInfo(BaseModel):
    """Model for top-level functions."""
    name: str
    parameters: List[ParameterInfo] = Field(default_factory=list)
    return_type: Optional[str] = None
    is_async: bool = False
    is_exported: bool = False
    line_number: Optional[int] = None

class DependencyInfo(BaseModel):
    """A directed, typed relationship between two class names."""
    model_config = ConfigDict(populate_by_name=True)

    from_class: str = Field(alias="from")
    to: str
    type: RelationshipType
    cardinality: Optional[Cardinality] = None
    context: Optional[str] = None
    line_number: Optional[int] = None
    is_external: bool = False
    source_module: Optional[str] = None

    def key(self) -> str:
        return f"{self.from_class}:{self.to}:{self.type}:{self.context or ''}"

class UnifiedAST(BaseModel):
    """Structural summary of one source file.

    Everything except ``relationships`` is fixed by the analyzer that produced
    it. Relationships are attached once, by the OO analyzer.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    language: str
    file_path: str
    imports: List[ImportInfo] = Field(default_factory=list)
    exports: List[ExportInfo] = Field(default_factory=list)
    classes: List[ClassInfo] = Field(default_factory=list)
    interfaces: List[InterfaceInfo] = Field(default_factory=list)
    functions: List[FunctionInfo] = Field(default_factory=list)
    relationships: Optional[List[DependencyInfo]] = None
    tree: Optional[Any] = Field(default=None, exclude=True, repr=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if name != "relationships":
            raise AttributeError(f"UnifiedAST.{name} is read-only")
        super().__setattr__(name, value)

    def all_classes(self) -> List[ClassInfo]:
        """Classes followed by interfaces converted to class entries."""
        return list(self.classes) + [iface.to_class_info() for iface in self.interfaces]

    def attach_relationships(self, relationships: List[DependencyInfo]) -> None:
        if self.relationships is not None:
            raise ValueError(f"Relationships already attached for {self.file_path}")
        self.relationships = list(relationships)
