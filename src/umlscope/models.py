"""Result models produced by the relationship analyzer and the cross-file engine."""

from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from .treesitter.models import ClassInfo, DependencyInfo, ExportInfo, ImportInfo

class AnalysisMode(str, Enum):
    FORWARD = "forward"
    REVERSE = "reverse"
    BIDIRECTIONAL = "bidirectional"

class ResolvedTypeInfo(BaseModel):
    """What a raw type string refers to, as far as heuristics can tell."""
    type_name: str
    qualifier: Optional[str] = None
    is_array: bool = False
    is_primitive: bool = False
    is_builtin: bool = False
    is_class_type: bool = False
    is_interface_type: bool = False
    is_external: bool = False
    source_module: Optional[str] = None
    generic_args: List[str] = Field(default_factory=list)

class OOAnalysisResult(BaseModel):
    """Relationships of one file, grouped by kind."""
    compositions: List[DependencyInfo] = Field(default_factory=list)
    aggregations: List[DependencyInfo] = Field(default_factory=list)
    associations: List[DependencyInfo] = Field(default_factory=list)
    dependencies: List[DependencyInfo] = Field(default_factory=list)
    injections: List[DependencyInfo] = Field(default_factory=list)
    inheritances: List[DependencyInfo] = Field(default_factory=list)
    realizations: List[DependencyInfo] = Field(default_factory=list)
    inheritance_tree: Dict[str, List[str]] = Field(default_factory=dict)

    @property
    def relationships(self) -> List[DependencyInfo]:
        return (
            self.compositions + self.aggregations + self.associations + self.dependencies
            + self.injections + self.inheritances + self.realizations
        )

class FileAnalysisResult(BaseModel):
    """One analyzed file within a traversal."""
    file_path: str
    language: str
    classes: List[ClassInfo] = Field(default_factory=list)
    imports: List[ImportInfo] = Field(default_factory=list)
    exports: List[ExportInfo] = Field(default_factory=list)
    relationships: List[DependencyInfo] = Field(default_factory=list)
    depth: int = 0

class AnalysisStats(BaseModel):
    total_files: int = 0
    total_classes: int = 0
    total_relationships: int = 0
    max_depth: int = 0

class ClassLocation(BaseModel):
    """A class together with the file it was found in."""
    file_path: str
    class_info: ClassInfo

class BidirectionalAnalysisResult(BaseModel):
    target_file: str
    forward_deps: List[FileAnalysisResult] = Field(default_factory=list)
    reverse_deps: List[FileAnalysisResult] = Field(default_factory=list)
    files: Dict[str, FileAnalysisResult] = Field(default_factory=dict)
    all_classes: List[ClassLocation] = Field(default_factory=list)
    relationships: List[DependencyInfo] = Field(default_factory=list)
    stats: AnalysisStats = Field(default_factory=AnalysisStats)
