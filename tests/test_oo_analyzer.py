"""Tests for relationship classification."""

import unittest

from umlscope.oo_analyzer import OOAnalyzer, classify_property
from umlscope.treesitter.models import ClassInfo, ImportInfo, InterfaceInfo, MethodInfo, ParameterInfo, PropertyInfo
from umlscope.type_resolver import resolve_type_info


def _edges(result, kind):
    return [(r.from_class, r.to, r.cardinality, r.context) for r in result.relationships if r.type == kind]


class TestClassifyProperty(unittest.TestCase):

    def test_collection_is_aggregation(self):
        self.assertEqual(classify_property(resolve_type_info("Item[]"), "public", False), [("aggregation", "*")])

    def test_private_instance_reference_is_composition(self):
        self.assertEqual(classify_property(resolve_type_info("Engine"), "private", False), [("composition", "1")])

    def test_public_instance_reference_is_both(self):
        self.assertEqual(
            classify_property(resolve_type_info("Engine"), "public", False),
            [("composition", "1"), ("association", "1")],
        )

    def test_public_static_reference_is_association(self):
        self.assertEqual(classify_property(resolve_type_info("Registry"), "public", True), [("association", "1")])

    def test_protected_static_reference_has_no_edge(self):
        self.assertEqual(classify_property(resolve_type_info("Registry"), "protected", True), [])

    def test_non_class_types(self):
        self.assertEqual(classify_property(resolve_type_info("string"), "public", False), [])
        self.assertEqual(classify_property(None, "public", False), [])


class TestOOAnalyzer(unittest.TestCase):

    def setUp(self):
        self.analyzer = OOAnalyzer()
        self.order = ClassInfo(
            name="Order",
            extends="BaseEntity",
            implements=["Serializable"],
            properties=[
                PropertyInfo(name="customer", type="Customer", visibility="private"),
                PropertyInfo(name="items", type="LineItem[]"),
                PropertyInfo(name="label", type="string"),
            ],
            methods=[
                MethodInfo(name="ship", parameters=[ParameterInfo(name="address", type="Address")],
                           return_type="Receipt", line_number=12),
                MethodInfo(name="total", return_type="number"),
            ],
            constructor_params=[ParameterInfo(name="repo", type="OrderRepository")],
            line_number=3,
        )

    def test_property_relationships(self):
        result = self.analyzer.analyze([self.order])
        self.assertEqual(_edges(result, "composition"), [("Order", "Customer", "1", "customer")])
        self.assertEqual(_edges(result, "aggregation"), [("Order", "LineItem", "*", "items")])
        self.assertEqual(_edges(result, "association"), [])

    def test_method_dependencies(self):
        result = self.analyzer.analyze([self.order])
        self.assertEqual(_edges(result, "dependency"), [
            ("Order", "Address", None, "ship(address)"),
            ("Order", "Receipt", None, "ship() returns Receipt"),
        ])
        self.assertEqual(result.dependencies[0].line_number, 12)

    def test_constructor_injection(self):
        result = self.analyzer.analyze([self.order])
        self.assertEqual(_edges(result, "injection"), [("Order", "OrderRepository", None, "constructor(repo)")])
        self.assertEqual(result.injections[0].line_number, 3)

    def test_hierarchy(self):
        result = self.analyzer.analyze([self.order])
        self.assertEqual(_edges(result, "inheritance"), [("Order", "BaseEntity", None, None)])
        self.assertEqual(_edges(result, "realization"), [("Order", "Serializable", None, None)])
        self.assertEqual(result.inheritance_tree, {"BaseEntity": ["Order"]})

    def test_interface_with_several_parents(self):
        shape = InterfaceInfo(name="IShape", extends=["IBase", "IDrawable"]).to_class_info()
        result = self.analyzer.analyze([shape])
        self.assertEqual(_edges(result, "inheritance"), [("IShape", "IBase", None, None)])
        self.assertEqual(_edges(result, "realization"), [("IShape", "IDrawable", None, None)])
        self.assertEqual(result.inheritance_tree, {"IBase": ["IShape"]})

    def test_builtin_parent_is_skipped(self):
        error = ClassInfo(name="NotFoundError", extends="Error")
        self.assertEqual(self.analyzer.analyze([error]).relationships, [])

    def test_duplicate_edges_are_collapsed(self):
        repo = ClassInfo(name="Repo", methods=[
            MethodInfo(name="find", parameters=[ParameterInfo(name="key", type="Key")]),
            MethodInfo(name="find", parameters=[ParameterInfo(name="key", type="Key")]),
        ])
        result = self.analyzer.analyze([repo])
        self.assertEqual(len(result.dependencies), 1)

    def test_external_flag_from_imports(self):
        imports = [ImportInfo(source="./customer", specifiers=["Customer"])]
        result = self.analyzer.analyze([self.order], imports)
        composition = result.compositions[0]
        self.assertTrue(composition.is_external)
        self.assertEqual(composition.source_module, "./customer")

    def test_relationship_order(self):
        result = self.analyzer.analyze([self.order])
        kinds = [r.type for r in result.relationships]
        self.assertEqual(kinds, [
            "composition", "aggregation", "dependency", "dependency", "injection", "inheritance", "realization",
        ])

    def test_analyze_is_stateless(self):
        first = self.analyzer.analyze([self.order])
        second = self.analyzer.analyze([self.order])
        self.assertEqual(first, second)


if __name__ == '__main__':
    unittest.main()
