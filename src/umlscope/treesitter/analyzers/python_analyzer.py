"""Python-specific Tree-sitter analyzer."""

import logging
from typing import Dict, List, Optional, Tuple, Union

from tree_sitter import Node, Tree

from .base import BaseAnalyzer
from ..models import (
    UnifiedAST, ImportInfo, ExportInfo, ClassInfo, InterfaceInfo,
    MethodInfo, PropertyInfo, ParameterInfo, FunctionInfo, Visibility
)
from ..type_names import is_class_var, short_name

logger = logging.getLogger(__name__)

# Bases that carry no structural meaning for the class diagram
_MARKER_BASES = {"object", "Generic"}

_LITERAL_TYPES = {
    "string": "str",
    "concatenated_string": "str",
    "integer": "int",
    "float": "float",
    "true": "bool",
    "false": "bool",
    "dictionary": "dict",
    "dictionary_comprehension": "dict",
    "set": "set",
    "set_comprehension": "set",
    "tuple": "tuple",
}

_SCOPE_BREAKERS = ("function_definition", "class_definition", "lambda")

class PythonAnalyzer(BaseAnalyzer):
    LANGUAGE_NAME = "python"
    FILE_EXTENSIONS = (".py", ".pyi", ".pyw")
    TYPE_DIALECT = "python"

    def _analyze_tree(self, tree: Tree, source_code: bytes, file_path: str) -> UnifiedAST:
        ast = UnifiedAST(language=self.LANGUAGE_NAME, file_path=file_path)
        declared_all: Optional[List[str]] = None

        for node in tree.root_node.named_children:
            node_type = node.type
            if node_type in ("import_statement", "import_from_statement"):
                ast.imports.extend(self._process_import(node, source_code))
            elif node_type in ("if_statement", "try_statement"):
                # `if TYPE_CHECKING:` and `try: import x` blocks
                for nested in self._nested_imports(node):
                    ast.imports.extend(self._process_import(nested, source_code))
            elif node_type in ("class_definition", "function_definition", "decorated_definition"):
                self._process_definition(node, source_code, ast)
            elif node_type == "expression_statement":
                names = self._dunder_all(node, source_code)
                if names is not None:
                    declared_all = names

        ast.exports.extend(self._build_exports(ast, declared_all))
        return ast

    # imports

    def _nested_imports(self, node: Node) -> List[Node]:
        found = []
        stack = list(reversed(node.named_children))
        while stack:
            current = stack.pop()
            if current.type in ("import_statement", "import_from_statement"):
                found.append(current)
            elif current.type in ("block", "if_statement", "elif_clause", "else_clause",
                                  "try_statement", "except_clause", "finally_clause"):
                stack.extend(reversed(current.named_children))
        return found

    def _process_import(self, node: Node, source_code: bytes) -> List[ImportInfo]:
        line = self._line(node)
        imports: List[ImportInfo] = []

        if node.type == "import_statement":
            for name_node in node.children_by_field_name("name"):
                if name_node.type == "aliased_import":
                    module = self._get_node_text(name_node.child_by_field_name("name"), source_code)
                    alias = self._get_node_text(name_node.child_by_field_name("alias"), source_code)
                else:
                    module = self._get_node_text(name_node, source_code)
                    alias = module.split(".")[0]
                imports.append(ImportInfo(
                    source=module, is_namespace=True, namespace_alias=alias, line_number=line
                ))
            return imports

        module_node = node.child_by_field_name("module_name")
        source = "".join(self._get_node_text(module_node, source_code).split())
        if source == "__future__":
            return imports

        if self._child_of_type(node, "wildcard_import") is not None:
            imports.append(ImportInfo(source=source, is_namespace=True, line_number=line))
            return imports

        for name_node in node.children_by_field_name("name"):
            if name_node.type == "aliased_import":
                local_name = self._get_node_text(name_node.child_by_field_name("alias"), source_code)
            else:
                local_name = self._get_node_text(name_node, source_code)
            imports.append(ImportInfo(source=source, specifiers=[local_name], line_number=line))
        return imports

    def _dunder_all(self, node: Node, source_code: bytes) -> Optional[List[str]]:
        assignment = self._child_of_type(node, "assignment")
        if assignment is None:
            return None
        left = assignment.child_by_field_name("left")
        right = assignment.child_by_field_name("right")
        if left is None or right is None or self._get_node_text(left, source_code) != "__all__":
            return None
        if right.type not in ("list", "tuple"):
            return None
        return [
            self._strip_quotes(self._get_node_text(item, source_code))
            for item in right.named_children if item.type == "string"
        ]

    def _build_exports(self, ast: UnifiedAST, declared_all: Optional[List[str]]) -> List[ExportInfo]:
        kinds: Dict[str, Tuple[str, Optional[int]]] = {}
        for cls in ast.classes:
            kinds[cls.name] = ("class", cls.line_number)
        for iface in ast.interfaces:
            kinds[iface.name] = ("interface", iface.line_number)
        for func in ast.functions:
            kinds[func.name] = ("function", func.line_number)

        if declared_all is None:
            names = [name for name in kinds if not name.startswith("_")]
        else:
            names = declared_all
        exports = []
        for name in names:
            export_type, line = kinds.get(name, ("unknown", None))
            exports.append(ExportInfo(name=name, export_type=export_type, line_number=line))
        return exports

    # definitions

    def _decorator_names(self, node: Node, source_code: bytes) -> List[str]:
        names = []
        for decorator in self._children_of_type(node, "decorator"):
            text = self._get_node_text(decorator, source_code).lstrip("@").strip()
            names.append(short_name(text.split("(", 1)[0]))
        return names

    def _unwrap_decorated(self, node: Node, source_code: bytes) -> Tuple[Optional[Node], List[str]]:
        if node.type != "decorated_definition":
            return node, []
        return node.child_by_field_name("definition"), self._decorator_names(node, source_code)

    def _process_definition(self, node: Node, source_code: bytes, ast: UnifiedAST) -> None:
        definition, decorators = self._unwrap_decorated(node, source_code)
        if definition is None:
            return
        if definition.type == "class_definition":
            for entry in self._process_class(definition, source_code, decorators):
                if isinstance(entry, InterfaceInfo):
                    ast.interfaces.append(entry)
                else:
                    ast.classes.append(entry)
        elif definition.type == "function_definition":
            name = self._get_node_text(definition.child_by_field_name("name"), source_code)
            ast.functions.append(FunctionInfo(
                name=name,
                parameters=self._process_parameters(definition.child_by_field_name("parameters"), source_code),
                return_type=self._simplify_type(self._get_node_text(definition.child_by_field_name("return_type"), source_code) or None),
                is_async=self._has_keyword(definition, "async"),
                is_exported=not name.startswith("_"),
                line_number=self._line(definition),
            ))

    def _visibility(self, name: str) -> Visibility:
        if name.startswith("__") and not name.endswith("__"):
            return "private"
        if name.startswith("_") and not name.endswith("__"):
            return "protected"
        return "public"

    def _process_class(self, node: Node, source_code: bytes,
                       decorators: List[str]) -> List[Union[ClassInfo, InterfaceInfo]]:
        """Return the class itself followed by any classes nested in its body."""
        class_name = self._get_node_text(node.child_by_field_name("name"), source_code)
        bases, is_abstract, is_protocol = self._process_bases(node.child_by_field_name("superclasses"), source_code)

        properties: Dict[str, PropertyInfo] = {}
        methods: List[MethodInfo] = []
        nested: List[Union[ClassInfo, InterfaceInfo]] = []
        constructor_params: Optional[List[ParameterInfo]] = None

        body = node.child_by_field_name("body")
        for stmt in body.named_children if body else []:
            if stmt.type == "expression_statement":
                for assignment in self._children_of_type(stmt, "assignment"):
                    prop = self._class_level_property(assignment, source_code)
                    if prop is not None:
                        self._merge_property(properties, prop)
            elif stmt.type in ("function_definition", "decorated_definition", "class_definition"):
                definition, method_decorators = self._unwrap_decorated(stmt, source_code)
                if definition is None:
                    continue
                if definition.type == "class_definition":
                    nested.extend(self._process_class(definition, source_code, method_decorators))
                    continue
                method = self._process_method(definition, source_code, method_decorators)
                methods.append(method)
                if method.name == "__init__":
                    constructor_params = method.parameters
                    for prop in self._init_properties(definition, source_code, method.parameters):
                        self._merge_property(properties, prop)

        if constructor_params is None and "dataclass" in decorators:
            constructor_params = [
                ParameterInfo(name=p.name, type=p.type)
                for p in properties.values() if not p.is_static
            ]

        is_abstract = is_abstract or any(m.is_abstract for m in methods)
        line = self._line(node)
        if is_protocol:
            entry: Union[ClassInfo, InterfaceInfo] = InterfaceInfo(
                name=class_name, properties=list(properties.values()), methods=methods,
                extends=bases, line_number=line,
            )
        else:
            entry = ClassInfo(
                name=class_name,
                properties=list(properties.values()),
                methods=methods,
                extends=bases[0] if bases else None,
                implements=bases[1:],
                constructor_params=constructor_params,
                is_abstract=is_abstract,
                line_number=line,
            )
        return [entry] + nested

    def _process_bases(self, superclasses: Optional[Node], source_code: bytes) -> Tuple[List[str], bool, bool]:
        bases: List[str] = []
        is_abstract = False
        is_protocol = False
        for arg in superclasses.named_children if superclasses else []:
            if arg.type == "keyword_argument":
                key = self._get_node_text(arg.child_by_field_name("name"), source_code)
                value = self._get_node_text(arg.child_by_field_name("value"), source_code)
                if key == "metaclass" and short_name(value) == "ABCMeta":
                    is_abstract = True
                continue
            if arg.type not in ("identifier", "attribute", "subscript", "generic_type"):
                continue
            base = self._get_node_text(arg, source_code).split("[", 1)[0].strip()
            name = short_name(base)
            if name == "ABC":
                is_abstract = True
            elif name == "Protocol":
                is_protocol = True
            elif name not in _MARKER_BASES:
                bases.append(base)
        return bases, is_abstract, is_protocol

    def _merge_property(self, properties: Dict[str, PropertyInfo], prop: PropertyInfo) -> None:
        existing = properties.get(prop.name)
        if existing is None:
            properties[prop.name] = prop
        elif existing.type is None and prop.type is not None:
            properties[prop.name] = existing.model_copy(update={"type": prop.type})

    def _class_level_property(self, assignment: Node, source_code: bytes) -> Optional[PropertyInfo]:
        left = assignment.child_by_field_name("left")
        if left is None or left.type != "identifier":
            return None
        name = self._get_node_text(left, source_code)
        type_node = assignment.child_by_field_name("type")
        if type_node is not None:
            raw = self._get_node_text(type_node, source_code)
            prop_type = self._simplify_type(raw)
            is_static = is_class_var(raw)
            is_readonly = raw.strip().startswith(("Final", "typing.Final"))
        else:
            prop_type = self._infer_type(assignment.child_by_field_name("right"), source_code)
            is_static = True
            is_readonly = name.isupper()
        return PropertyInfo(
            name=name,
            type=prop_type,
            visibility=self._visibility(name),
            is_static=is_static,
            is_readonly=is_readonly,
            line_number=self._line(assignment),
        )

    def _init_properties(self, init_node: Node, source_code: bytes,
                         params: List[ParameterInfo]) -> List[PropertyInfo]:
        """Collect `self.x = ...` assignments made in __init__."""
        param_types = {p.name: p.type for p in params if p.type}
        found: List[PropertyInfo] = []
        body = init_node.child_by_field_name("body")
        stack = list(reversed(body.named_children)) if body else []
        while stack:
            current = stack.pop()
            if current.type in _SCOPE_BREAKERS:
                continue
            if current.type == "assignment":
                prop = self._self_assignment(current, source_code, param_types)
                if prop is not None:
                    found.append(prop)
            stack.extend(reversed(current.named_children))
        return found

    def _self_assignment(self, assignment: Node, source_code: bytes,
                         param_types: Dict[str, str]) -> Optional[PropertyInfo]:
        left = assignment.child_by_field_name("left")
        if left is None or left.type != "attribute":
            return None
        if self._get_node_text(left.child_by_field_name("object"), source_code) != "self":
            return None
        name = self._get_node_text(left.child_by_field_name("attribute"), source_code)
        type_node = assignment.child_by_field_name("type")
        right = assignment.child_by_field_name("right")
        if type_node is not None:
            prop_type = self._simplify_type(self._get_node_text(type_node, source_code))
        elif right is not None and right.type == "identifier":
            prop_type = param_types.get(self._get_node_text(right, source_code))
        else:
            prop_type = self._infer_type(right, source_code)
        return PropertyInfo(
            name=name,
            type=prop_type,
            visibility=self._visibility(name),
            line_number=self._line(assignment),
        )

    def _infer_type(self, value: Optional[Node], source_code: bytes) -> Optional[str]:
        """Guess a type from an initializer expression."""
        if value is None:
            return None
        if value.type == "call":
            return self._get_node_text(value.child_by_field_name("function"), source_code) or None
        if value.type == "list":
            if value.named_child_count == 0:
                return "list"
            element = self._infer_type(value.named_children[0], source_code)
            return f"{element}[]" if element else "list"
        if value.type == "list_comprehension":
            element = self._infer_type(value.child_by_field_name("body"), source_code)
            return f"{element}[]" if element else "list"
        return _LITERAL_TYPES.get(value.type)

    def _process_method(self, node: Node, source_code: bytes, decorators: List[str]) -> MethodInfo:
        name = self._get_node_text(node.child_by_field_name("name"), source_code)
        params = self._process_parameters(node.child_by_field_name("parameters"), source_code)
        is_static = "staticmethod" in decorators
        if not is_static and params and params[0].name in ("self", "cls"):
            params = params[1:]
        return_node = node.child_by_field_name("return_type")
        return MethodInfo(
            name=name,
            parameters=params,
            return_type=self._simplify_type(self._get_node_text(return_node, source_code)) if return_node else None,
            visibility=self._visibility(name),
            is_static=is_static or "classmethod" in decorators,
            is_abstract="abstractmethod" in decorators,
            is_async=self._has_keyword(node, "async"),
            line_number=self._line(node),
        )

    def _param_name(self, node: Optional[Node], source_code: bytes) -> Optional[str]:
        if node is None:
            return None
        if node.type == "identifier":
            return self._get_node_text(node, source_code)
        if node.type in ("list_splat_pattern", "dictionary_splat_pattern", "typed_parameter"):
            ident = self._child_of_type(node, "identifier")
            if ident is None and node.named_child_count:
                return self._param_name(node.named_children[0], source_code)
            return self._get_node_text(ident, source_code) if ident else None
        return None

    def _process_parameters(self, parameters_node: Optional[Node], source_code: bytes) -> List[ParameterInfo]:
        params: List[ParameterInfo] = []
        for param_node in parameters_node.named_children if parameters_node else []:
            node_type = param_node.type
            type_node = param_node.child_by_field_name("type")
            value_node = param_node.child_by_field_name("value")
            if node_type in ("identifier", "list_splat_pattern", "dictionary_splat_pattern", "typed_parameter"):
                name = self._param_name(param_node, source_code)
            elif node_type in ("default_parameter", "typed_default_parameter"):
                name = self._param_name(param_node.child_by_field_name("name"), source_code)
            else:
                # positional/keyword separators
                continue
            if not name:
                logger.debug(f"Could not extract a parameter name from '{self._get_node_text(param_node, source_code)}'")
                continue
            raw_type = self._get_node_text(type_node, source_code) if type_node else None
            params.append(ParameterInfo(
                name=name,
                type=self._simplify_type(raw_type),
                is_optional=value_node is not None or (raw_type or "").startswith("Optional"),
                default_value=self._get_node_text(value_node, source_code) if value_node else None,
            ))
        return params
