"""TypeScript-specific Tree-sitter analyzer.

The same walker serves the ``typescript``, ``tsx`` and ``javascript``
grammars. Where the grammars disagree (``public_field_definition`` vs
``field_definition``, ``extends_clause`` vs a bare heritage expression,
``required_parameter`` vs plain identifiers) both shapes are handled.
"""

import logging
from typing import List, Optional, Tuple

from tree_sitter import Node, Tree

from .base import BaseAnalyzer
from ..models import (
    UnifiedAST, ImportInfo, ExportInfo, ClassInfo, InterfaceInfo,
    MethodInfo, PropertyInfo, ParameterInfo, FunctionInfo, Visibility
)

logger = logging.getLogger(__name__)

_CLASS_NODES = ("class_declaration", "abstract_class_declaration", "class")
_FUNCTION_NODES = ("function_declaration", "generator_function_declaration", "function_signature")
_FUNCTION_VALUES = ("arrow_function", "function_expression", "function", "generator_function")
_LITERAL_TYPES = {
    "string": "string",
    "template_string": "string",
    "number": "number",
    "true": "boolean",
    "false": "boolean",
}

ExportedName = Tuple[str, str, int]

class TypeScriptAnalyzer(BaseAnalyzer):
    LANGUAGE_NAME = "typescript"
    FILE_EXTENSIONS = (".ts", ".mts", ".cts")
    TYPE_DIALECT = "typescript"

    def _analyze_tree(self, tree: Tree, source_code: bytes, file_path: str) -> UnifiedAST:
        ast = UnifiedAST(language=self.LANGUAGE_NAME, file_path=file_path)
        for node in tree.root_node.named_children:
            if node.type == "import_statement":
                imported = self._process_import(node, source_code)
                if imported is not None:
                    ast.imports.append(imported)
            elif node.type == "export_statement":
                self._process_export(node, source_code, ast)
            else:
                self._process_declaration(node, source_code, ast, exported=False)
        ast.imports.extend(self._call_imports(tree.root_node, source_code))
        return ast

    # imports / exports

    def _string_value(self, node: Optional[Node], source_code: bytes) -> str:
        return self._strip_quotes(self._get_node_text(node, source_code))

    def _process_import(self, node: Node, source_code: bytes) -> Optional[ImportInfo]:
        line = self._line(node)
        type_only = self._has_keyword(node, "type")
        require_clause = self._child_of_type(node, "import_require_clause")
        if require_clause is not None:
            # import fs = require("fs")
            local = self._child_of_type(require_clause, "identifier")
            return ImportInfo(
                source=self._string_value(self._child_of_type(require_clause, "string"), source_code),
                specifiers=[self._get_node_text(local, source_code)] if local else [],
                is_default=True,
                line_number=line,
            )

        source_node = node.child_by_field_name("source") or self._child_of_type(node, "string")
        if source_node is None:
            return None
        imported = ImportInfo(source=self._string_value(source_node, source_code),
                              is_type_only=type_only, line_number=line)

        clause = self._child_of_type(node, "import_clause")
        for part in clause.named_children if clause else []:
            if part.type == "identifier":
                imported.specifiers.append(self._get_node_text(part, source_code))
                imported.is_default = True
            elif part.type == "namespace_import":
                alias = self._child_of_type(part, "identifier")
                imported.is_namespace = True
                imported.namespace_alias = self._get_node_text(alias, source_code) if alias else None
            elif part.type == "named_imports":
                for spec in self._children_of_type(part, "import_specifier"):
                    name = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                    imported.specifiers.append(self._get_node_text(name, source_code))
        return imported

    def _call_imports(self, root: Node, source_code: bytes) -> List[ImportInfo]:
        """Dynamic `import("x")` and CommonJS `require("x")` calls anywhere in the file."""
        imports: List[ImportInfo] = []
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "call_expression":
                function = node.child_by_field_name("function")
                arguments = node.child_by_field_name("arguments")
                first_arg = arguments.named_children[0] if arguments is not None and arguments.named_child_count else None
                if function is not None and first_arg is not None and first_arg.type == "string":
                    source = self._string_value(first_arg, source_code)
                    if function.type == "import":
                        imports.append(ImportInfo(source=source, is_dynamic=True, line_number=self._line(node)))
                    elif function.type == "identifier" and self._get_node_text(function, source_code) == "require":
                        imports.append(self._require_import(node, source, source_code))
            stack.extend(reversed(node.named_children))
        return imports

    def _require_import(self, call: Node, source: str, source_code: bytes) -> ImportInfo:
        imported = ImportInfo(source=source, line_number=self._line(call))
        parent = call.parent
        if parent is None or parent.type != "variable_declarator":
            return imported
        target = parent.child_by_field_name("name")
        if target is None:
            return imported
        if target.type == "identifier":
            imported.specifiers.append(self._get_node_text(target, source_code))
            imported.is_default = True
        elif target.type == "object_pattern":
            for prop in target.named_children:
                if prop.type == "shorthand_property_identifier_pattern":
                    imported.specifiers.append(self._get_node_text(prop, source_code))
                elif prop.type == "pair_pattern":
                    imported.specifiers.append(self._get_node_text(prop.child_by_field_name("value"), source_code))
        return imported

    def _process_export(self, node: Node, source_code: bytes, ast: UnifiedAST) -> None:
        line = self._line(node)
        is_default = self._has_keyword(node, "default")
        source_node = node.child_by_field_name("source")
        source = self._string_value(source_node, source_code) if source_node is not None else None

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            for name, kind, decl_line in self._process_declaration(declaration, source_code, ast, exported=True):
                ast.exports.append(ExportInfo(name=name, is_default=is_default, export_type=kind, line_number=decl_line))
            return

        value = node.child_by_field_name("value")
        if value is not None:
            if value.type in _CLASS_NODES and value.child_by_field_name("name") is not None:
                for name, kind, decl_line in self._process_declaration(value, source_code, ast, exported=True):
                    ast.exports.append(ExportInfo(name=name, is_default=True, export_type=kind, line_number=decl_line))
            else:
                name = self._get_node_text(value, source_code) if value.type == "identifier" else "default"
                ast.exports.append(ExportInfo(name=name, is_default=True, line_number=line))
            return

        clause = self._child_of_type(node, "export_clause")
        names = []
        for spec in self._children_of_type(clause, "export_specifier"):
            name = self._get_node_text(spec.child_by_field_name("name"), source_code)
            alias = spec.child_by_field_name("alias")
            exported_name = self._get_node_text(alias, source_code) if alias is not None else name
            names.append(name)
            ast.exports.append(ExportInfo(
                name=exported_name, is_default=exported_name == "default",
                is_re_export=source is not None, source=source, line_number=line,
            ))
        if clause is None and source is not None:
            # export * from './x'
            ast.exports.append(ExportInfo(name="*", is_re_export=True, source=source, line_number=line))
        if source is not None:
            ast.imports.append(ImportInfo(
                source=source, specifiers=names, is_namespace=clause is None, line_number=line,
            ))

    # declarations

    def _process_declaration(self, node: Node, source_code: bytes, ast: UnifiedAST,
                             exported: bool) -> List[ExportedName]:
        node_type = node.type
        line = self._line(node)
        if node_type in _CLASS_NODES:
            cls = self._process_class(node, source_code)
            if cls is None:
                return []
            ast.classes.append(cls)
            return [(cls.name, "class", line)]
        if node_type == "interface_declaration":
            iface = self._process_interface(node, source_code)
            ast.interfaces.append(iface)
            return [(iface.name, "interface", line)]
        if node_type in _FUNCTION_NODES:
            func = self._process_function(node, node, source_code, exported)
            ast.functions.append(func)
            return [(func.name, "function", line)]
        if node_type in ("lexical_declaration", "variable_declaration"):
            names = []
            for declarator in self._children_of_type(node, "variable_declarator"):
                name_node = declarator.child_by_field_name("name")
                if name_node is None or name_node.type != "identifier":
                    continue
                value = declarator.child_by_field_name("value")
                if value is not None and value.type in _FUNCTION_VALUES:
                    func = self._process_function(declarator, value, source_code, exported)
                    ast.functions.append(func)
                    names.append((func.name, "function", line))
                else:
                    names.append((self._get_node_text(name_node, source_code), "variable", line))
            return names
        if node_type in ("type_alias_declaration", "enum_declaration"):
            return [(self._get_node_text(node.child_by_field_name("name"), source_code), "type", line)]
        if node_type == "ambient_declaration":
            names = []
            for child in node.named_children:
                names.extend(self._process_declaration(child, source_code, ast, exported))
            return names
        return []

    def _process_function(self, name_holder: Node, node: Node, source_code: bytes, exported: bool) -> FunctionInfo:
        return FunctionInfo(
            name=self._get_node_text(name_holder.child_by_field_name("name"), source_code),
            parameters=self._process_parameters(node, source_code)[0],
            return_type=self._annotation_type(node.child_by_field_name("return_type"), source_code),
            is_async=self._has_keyword(node, "async"),
            is_exported=exported,
            line_number=self._line(name_holder),
        )

    def _heritage(self, node: Node, source_code: bytes) -> Tuple[Optional[str], List[str]]:
        heritage = self._child_of_type(node, "class_heritage")
        extends: Optional[str] = None
        implements: List[str] = []
        for child in heritage.named_children if heritage else []:
            if child.type == "extends_clause":
                value = child.child_by_field_name("value") or (child.named_children[0] if child.named_child_count else None)
                extends = self._get_node_text(value, source_code) or None
            elif child.type == "implements_clause":
                simplified = (self._simplify_type(self._get_node_text(t, source_code)) for t in child.named_children)
                implements.extend(t for t in simplified if t)
            elif extends is None:
                # javascript: `class A extends B` has no extends_clause
                extends = self._get_node_text(child, source_code) or None
        return extends, implements

    def _visibility(self, node: Node, name_node: Optional[Node], source_code: bytes) -> Visibility:
        modifier = self._child_of_type(node, "accessibility_modifier")
        if modifier is not None:
            return self._get_node_text(modifier, source_code).strip()
        if name_node is not None and name_node.type == "private_property_identifier":
            return "private"
        return "public"

    def _member_name(self, node: Node) -> Optional[Node]:
        return node.child_by_field_name("name") or node.child_by_field_name("property")

    def _process_class(self, node: Node, source_code: bytes) -> Optional[ClassInfo]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        extends, implements = self._heritage(node, source_code)
        cls = ClassInfo(
            name=self._get_node_text(name_node, source_code),
            extends=extends,
            implements=implements,
            is_abstract=node.type == "abstract_class_declaration",
            line_number=self._line(node),
        )

        body = node.child_by_field_name("body")
        for member in body.named_children if body else []:
            if member.type in ("public_field_definition", "field_definition"):
                cls.properties.append(self._process_field(member, source_code))
            elif member.type in ("method_definition", "method_signature", "abstract_method_signature"):
                method = self._process_method(member, source_code)
                if method.name == "constructor":
                    params, param_properties = self._process_parameters(member, source_code)
                    cls.constructor_params = params
                    cls.properties.extend(param_properties)
                cls.methods.append(method)
        return cls

    def _process_field(self, node: Node, source_code: bytes) -> PropertyInfo:
        name_node = self._member_name(node)
        declared = self._annotation_type(node.child_by_field_name("type"), source_code)
        return PropertyInfo(
            name=self._get_node_text(name_node, source_code).lstrip("#"),
            type=declared or self._infer_type(node.child_by_field_name("value"), source_code),
            visibility=self._visibility(node, name_node, source_code),
            is_static=self._has_keyword(node, "static"),
            is_readonly=self._has_keyword(node, "readonly"),
            is_optional=self._has_keyword(node, "?"),
            line_number=self._line(node),
        )

    def _process_method(self, node: Node, source_code: bytes) -> MethodInfo:
        name_node = self._member_name(node)
        return MethodInfo(
            name=self._get_node_text(name_node, source_code).lstrip("#"),
            parameters=self._process_parameters(node, source_code)[0],
            return_type=self._annotation_type(node.child_by_field_name("return_type"), source_code),
            visibility=self._visibility(node, name_node, source_code),
            is_static=self._has_keyword(node, "static"),
            is_abstract=node.type == "abstract_method_signature" or self._has_keyword(node, "abstract"),
            is_async=self._has_keyword(node, "async"),
            line_number=self._line(node),
        )

    def _process_interface(self, node: Node, source_code: bytes) -> InterfaceInfo:
        iface = InterfaceInfo(
            name=self._get_node_text(node.child_by_field_name("name"), source_code),
            line_number=self._line(node),
        )
        extends_clause = self._child_of_type(node, "extends_type_clause", "extends_clause")
        for parent in extends_clause.named_children if extends_clause else []:
            iface.extends.append(self._simplify_type(self._get_node_text(parent, source_code)))

        body = node.child_by_field_name("body")
        for member in body.named_children if body else []:
            if member.type == "property_signature":
                name_node = member.child_by_field_name("name")
                iface.properties.append(PropertyInfo(
                    name=self._get_node_text(name_node, source_code),
                    type=self._annotation_type(member.child_by_field_name("type"), source_code),
                    is_readonly=self._has_keyword(member, "readonly"),
                    is_optional=self._has_keyword(member, "?"),
                    line_number=self._line(member),
                ))
            elif member.type == "method_signature":
                method = self._process_method(member, source_code)
                iface.methods.append(method.model_copy(update={"is_abstract": True}))
        return iface

    # types and parameters

    def _annotation_type(self, node: Optional[Node], source_code: bytes) -> Optional[str]:
        if node is None:
            return None
        if node.type in ("type_predicate_annotation", "asserts_annotation"):
            return "boolean"
        if node.type.endswith("type_annotation"):
            if not node.named_child_count:
                return None
            node = node.named_children[0]
        return self._simplify_type(self._get_node_text(node, source_code))

    def _infer_type(self, value: Optional[Node], source_code: bytes) -> Optional[str]:
        """Guess a property type from its initializer."""
        if value is None:
            return None
        if value.type == "new_expression":
            constructor = value.child_by_field_name("constructor")
            return self._get_node_text(constructor, source_code) or None
        if value.type == "array":
            if not value.named_child_count:
                return None
            element = self._infer_type(value.named_children[0], source_code)
            return f"{element}[]" if element else None
        if value.type in ("as_expression", "satisfies_expression") and value.named_child_count > 1:
            return self._simplify_type(self._get_node_text(value.named_children[-1], source_code))
        return _LITERAL_TYPES.get(value.type)

    def _pattern_name(self, node: Optional[Node], source_code: bytes) -> Optional[str]:
        if node is None or node.type == "this":
            return None
        if node.type in ("rest_pattern", "assignment_pattern"):
            inner = node.child_by_field_name("left") or (node.named_children[0] if node.named_child_count else None)
            return self._pattern_name(inner, source_code)
        return self._get_node_text(node, source_code)

    def _process_parameters(self, owner: Node, source_code: bytes) -> Tuple[List[ParameterInfo], List[PropertyInfo]]:
        """Return the parameters plus any TypeScript parameter properties they declare."""
        params: List[ParameterInfo] = []
        param_properties: List[PropertyInfo] = []
        parameters = owner.child_by_field_name("parameters")
        if parameters is None:
            single = owner.child_by_field_name("parameter")
            if single is not None:
                params.append(ParameterInfo(name=self._get_node_text(single, source_code)))
            return params, param_properties

        for param in parameters.named_children:
            if param.type in ("required_parameter", "optional_parameter"):
                pattern = param.child_by_field_name("pattern") or param.child_by_field_name("name")
                name = self._pattern_name(pattern, source_code)
                if name is None:
                    continue
                value = param.child_by_field_name("value")
                param_type = self._annotation_type(param.child_by_field_name("type"), source_code)
                params.append(ParameterInfo(
                    name=name,
                    type=param_type,
                    is_optional=param.type == "optional_parameter" or value is not None,
                    default_value=self._get_node_text(value, source_code) if value is not None else None,
                ))
                modifier = self._child_of_type(param, "accessibility_modifier")
                is_readonly = self._has_keyword(param, "readonly")
                if modifier is not None or is_readonly:
                    param_properties.append(PropertyInfo(
                        name=name,
                        type=param_type,
                        visibility=self._get_node_text(modifier, source_code).strip() if modifier else "public",
                        is_readonly=is_readonly,
                        line_number=self._line(param),
                    ))
            elif param.type in ("identifier", "assignment_pattern", "rest_pattern", "object_pattern", "array_pattern"):
                name = self._pattern_name(param, source_code)
                if name is None:
                    continue
                right = param.child_by_field_name("right") if param.type == "assignment_pattern" else None
                params.append(ParameterInfo(
                    name=name,
                    is_optional=right is not None,
                    default_value=self._get_node_text(right, source_code) if right is not None else None,
                ))
        return params, param_properties


class TsxAnalyzer(TypeScriptAnalyzer):
    GRAMMAR_NAME = "tsx"
    FILE_EXTENSIONS = (".tsx",)
