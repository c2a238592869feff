"""Java-specific Tree-sitter analyzer."""

import logging
from typing import List, Optional, Set

from tree_sitter import Node, Tree

from .base import BaseAnalyzer
from ..models import (
    UnifiedAST, ImportInfo, ExportInfo, ClassInfo, InterfaceInfo,
    MethodInfo, PropertyInfo, ParameterInfo, Visibility
)

logger = logging.getLogger(__name__)

_TYPE_DECLARATIONS = (
    "class_declaration", "interface_declaration", "enum_declaration", "record_declaration",
)

class JavaAnalyzer(BaseAnalyzer):
    LANGUAGE_NAME = "java"
    FILE_EXTENSIONS = (".java",)
    TYPE_DIALECT = "java"

    def _analyze_tree(self, tree: Tree, source_code: bytes, file_path: str) -> UnifiedAST:
        ast = UnifiedAST(language=self.LANGUAGE_NAME, file_path=file_path)
        for node in tree.root_node.named_children:
            if node.type == "import_declaration":
                ast.imports.append(self._process_import(node, source_code))
            elif node.type in _TYPE_DECLARATIONS:
                modifiers = self._modifiers(node)
                name = self._get_node_text(node.child_by_field_name("name"), source_code)
                if "public" in modifiers:
                    ast.exports.append(ExportInfo(
                        name=name,
                        export_type="interface" if node.type == "interface_declaration" else "class",
                        line_number=self._line(node),
                    ))
                self._process_type(node, source_code, ast)
        return ast

    def _process_import(self, node: Node, source_code: bytes) -> ImportInfo:
        name_node = self._child_of_type(node, "scoped_identifier", "identifier")
        path = self._get_node_text(name_node, source_code)
        line = self._line(node)
        if self._child_of_type(node, "asterisk") is not None:
            return ImportInfo(source=f"{path}.*", is_namespace=True, line_number=line)
        return ImportInfo(source=path, specifiers=[path.rsplit(".", 1)[-1]], line_number=line)

    def _modifiers(self, node: Node) -> Set[str]:
        modifiers = self._child_of_type(node, "modifiers")
        if modifiers is None:
            return set()
        return {child.type for child in modifiers.children if not child.is_named}

    def _visibility(self, modifiers: Set[str]) -> Visibility:
        if "private" in modifiers:
            return "private"
        if "protected" in modifiers:
            return "protected"
        return "public"

    def _type_text(self, node: Optional[Node], source_code: bytes) -> Optional[str]:
        if node is None:
            return None
        return self._simplify_type(self._get_node_text(node, source_code))

    def _type_list(self, node: Optional[Node], source_code: bytes) -> List[str]:
        type_list = self._child_of_type(node, "type_list")
        if type_list is None:
            return []
        return [self._type_text(t, source_code) for t in type_list.named_children]

    def _process_type(self, node: Node, source_code: bytes, ast: UnifiedAST) -> None:
        """Add a type declaration and every type nested inside it to the AST."""
        name = self._get_node_text(node.child_by_field_name("name"), source_code)
        modifiers = self._modifiers(node)
        body = node.child_by_field_name("body")
        line = self._line(node)

        if node.type == "interface_declaration":
            properties: List[PropertyInfo] = []
            methods: List[MethodInfo] = []
            for member in body.named_children if body else []:
                if member.type in ("constant_declaration", "field_declaration"):
                    properties.extend(self._process_field(member, source_code, in_interface=True))
                elif member.type == "method_declaration":
                    methods.append(self._process_method(member, source_code, in_interface=True))
                elif member.type in _TYPE_DECLARATIONS:
                    self._process_type(member, source_code, ast)
            ast.interfaces.append(InterfaceInfo(
                name=name,
                properties=properties,
                methods=methods,
                extends=self._type_list(self._child_of_type(node, "extends_interfaces"), source_code),
                line_number=line,
            ))
            return

        superclass_node = node.child_by_field_name("superclass")
        superclass = None
        if superclass_node is not None and superclass_node.named_child_count:
            superclass = self._type_text(superclass_node.named_children[0], source_code)

        cls = ClassInfo(
            name=name,
            extends=superclass,
            implements=self._type_list(node.child_by_field_name("interfaces"), source_code),
            is_abstract="abstract" in modifiers,
            line_number=line,
        )

        if node.type == "record_declaration":
            components = self._process_parameters(node.child_by_field_name("parameters"), source_code)
            cls.constructor_params = components
            cls.properties.extend(
                PropertyInfo(name=p.name, type=p.type, visibility="private", is_readonly=True, line_number=line)
                for p in components
            )

        members: List[Node] = []
        if body is not None:
            for member in body.named_children:
                if member.type == "enum_constant":
                    cls.properties.append(PropertyInfo(
                        name=self._get_node_text(member.child_by_field_name("name"), source_code),
                        type=name,
                        is_static=True,
                        is_readonly=True,
                        line_number=self._line(member),
                    ))
                elif member.type == "enum_body_declarations":
                    members.extend(member.named_children)
                else:
                    members.append(member)

        for member in members:
            if member.type == "field_declaration":
                cls.properties.extend(self._process_field(member, source_code))
            elif member.type == "method_declaration":
                method = self._process_method(member, source_code)
                if method.name == name:
                    cls.constructor_params = method.parameters
                    method = method.model_copy(update={"name": "constructor", "return_type": None})
                cls.methods.append(method)
            elif member.type == "constructor_declaration":
                params = self._process_parameters(member.child_by_field_name("parameters"), source_code)
                if cls.constructor_params is None or len(params) > len(cls.constructor_params):
                    # The widest constructor carries the injected collaborators
                    cls.constructor_params = params
                cls.methods.append(MethodInfo(
                    name="constructor",
                    parameters=params,
                    visibility=self._visibility(self._modifiers(member)),
                    line_number=self._line(member),
                ))
            elif member.type in _TYPE_DECLARATIONS:
                self._process_type(member, source_code, ast)

        ast.classes.append(cls)

    def _process_field(self, node: Node, source_code: bytes, in_interface: bool = False) -> List[PropertyInfo]:
        modifiers = self._modifiers(node)
        base_type = self._get_node_text(node.child_by_field_name("type"), source_code)
        properties = []
        for declarator in node.children_by_field_name("declarator"):
            field_type = base_type
            if declarator.child_by_field_name("dimensions") is not None:
                field_type += self._get_node_text(declarator.child_by_field_name("dimensions"), source_code)
            properties.append(PropertyInfo(
                name=self._get_node_text(declarator.child_by_field_name("name"), source_code),
                type=self._simplify_type(field_type),
                visibility="public" if in_interface else self._visibility(modifiers),
                is_static=in_interface or "static" in modifiers,
                is_readonly=in_interface or "final" in modifiers,
                line_number=self._line(declarator),
            ))
        return properties

    def _process_method(self, node: Node, source_code: bytes, in_interface: bool = False) -> MethodInfo:
        modifiers = self._modifiers(node)
        has_body = node.child_by_field_name("body") is not None
        return_type = self._type_text(node.child_by_field_name("type"), source_code)
        return MethodInfo(
            name=self._get_node_text(node.child_by_field_name("name"), source_code),
            parameters=self._process_parameters(node.child_by_field_name("parameters"), source_code),
            return_type=return_type,
            visibility="public" if in_interface and "private" not in modifiers else self._visibility(modifiers),
            is_static="static" in modifiers,
            is_abstract="abstract" in modifiers or (in_interface and not has_body),
            line_number=self._line(node),
        )

    def _process_parameters(self, parameters_node: Optional[Node], source_code: bytes) -> List[ParameterInfo]:
        params: List[ParameterInfo] = []
        for param in parameters_node.named_children if parameters_node else []:
            if param.type == "formal_parameter":
                param_type = self._get_node_text(param.child_by_field_name("type"), source_code)
                if param.child_by_field_name("dimensions") is not None:
                    param_type += self._get_node_text(param.child_by_field_name("dimensions"), source_code)
                params.append(ParameterInfo(
                    name=self._get_node_text(param.child_by_field_name("name"), source_code),
                    type=self._simplify_type(param_type),
                ))
            elif param.type == "spread_parameter":
                type_node = next((c for c in param.named_children if c.type not in ("modifiers", "variable_declarator")), None)
                declarator = self._child_of_type(param, "variable_declarator")
                if type_node is None or declarator is None:
                    continue
                params.append(ParameterInfo(
                    name=self._get_node_text(declarator.child_by_field_name("name"), source_code),
                    type=self._simplify_type(self._get_node_text(type_node, source_code) + "[]"),
                    is_optional=True,
                ))
        return params
