"""Tests for the heuristic type resolver."""

import unittest

from umlscope.treesitter.models import ImportInfo
from umlscope.type_resolver import resolve_type_info


class TestResolveTypeInfo(unittest.TestCase):

    def test_missing_and_wildcard_types(self):
        self.assertIsNone(resolve_type_info(None))
        self.assertIsNone(resolve_type_info(""))
        self.assertIsNone(resolve_type_info("any"))
        self.assertIsNone(resolve_type_info("unknown"))

    def test_plain_class(self):
        resolved = resolve_type_info("User")
        self.assertEqual(resolved.type_name, "User")
        self.assertTrue(resolved.is_class_type)
        self.assertFalse(resolved.is_array)
        self.assertFalse(resolved.is_external)

    def test_arrays(self):
        self.assertTrue(resolve_type_info("User[]").is_array)
        resolved = resolve_type_info("Array<User>")
        self.assertTrue(resolved.is_array)
        self.assertEqual(resolved.type_name, "User")
        self.assertTrue(resolved.is_class_type)

    def test_primitives_are_case_insensitive(self):
        for type_string in ("string", "number", "int", "str", "boolean", "Integer", "String"):
            resolved = resolve_type_info(type_string)
            self.assertTrue(resolved.is_primitive, type_string)
            self.assertFalse(resolved.is_class_type, type_string)

    def test_builtin_generic(self):
        resolved = resolve_type_info("Map<string, User>")
        self.assertEqual(resolved.type_name, "Map")
        self.assertTrue(resolved.is_builtin)
        self.assertFalse(resolved.is_class_type)
        self.assertEqual(resolved.generic_args, ["string", "User"])

    def test_promise_is_not_a_class(self):
        self.assertFalse(resolve_type_info("Promise<User>").is_class_type)

    def test_lowercase_name_is_not_a_class(self):
        self.assertFalse(resolve_type_info("userRecord").is_class_type)

    def test_interface_naming_convention(self):
        self.assertTrue(resolve_type_info("IRepository").is_interface_type)
        self.assertFalse(resolve_type_info("Item").is_interface_type)

    def test_external_by_specifier(self):
        imports = [ImportInfo(source="./user", specifiers=["User"])]
        resolved = resolve_type_info("User", imports)
        self.assertTrue(resolved.is_external)
        self.assertEqual(resolved.source_module, "./user")

    def test_external_by_namespace_alias(self):
        imports = [ImportInfo(source="app.models", is_namespace=True, namespace_alias="models")]
        resolved = resolve_type_info("models.User", imports)
        self.assertEqual(resolved.type_name, "User")
        self.assertEqual(resolved.qualifier, "models")
        self.assertTrue(resolved.is_external)
        self.assertEqual(resolved.source_module, "app.models")

    def test_deterministic(self):
        imports = [ImportInfo(source="./a", specifiers=["A"])]
        self.assertEqual(resolve_type_info("A[]", imports), resolve_type_info("A[]", imports))


if __name__ == '__main__':
    unittest.main()
