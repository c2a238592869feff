"""Tests for type annotation simplification."""

import unittest

from umlscope.treesitter.type_names import (
    is_class_var, parse_generic, simplify_type, split_top_level
)


class TestSplitTopLevel(unittest.TestCase):

    def test_nested_separators_are_kept(self):
        self.assertEqual(split_top_level("Map<K, V>, List<T>"), ["Map<K, V>", "List<T>"])

    def test_union_members(self):
        self.assertEqual(split_top_level("A | B<C | D>", "|"), ["A", "B<C | D>"])

    def test_empty_text(self):
        self.assertEqual(split_top_level(""), [])


class TestParseGeneric(unittest.TestCase):

    def test_angle_brackets(self):
        self.assertEqual(parse_generic("Map<string, User>"), ("Map", ["string", "User"]))

    def test_square_brackets(self):
        self.assertEqual(parse_generic("typing.Dict[str, int]"), ("typing.Dict", ["str", "int"]))

    def test_not_generic(self):
        self.assertIsNone(parse_generic("User"))
        self.assertIsNone(parse_generic("User[]"))
        self.assertIsNone(parse_generic("A<B> | C<D>"))


class TestSimplifyType(unittest.TestCase):

    def test_plain_name_unchanged(self):
        self.assertEqual(simplify_type("User"), "User")
        self.assertIsNone(simplify_type(None))

    def test_nullable_union_is_unwrapped(self):
        self.assertEqual(simplify_type("User | null"), "User")
        self.assertEqual(simplify_type("User | undefined | null"), "User")
        self.assertEqual(simplify_type("Optional[User]", "python"), "User")
        self.assertEqual(simplify_type("Union[User, None]", "python"), "User")

    def test_collections_become_arrays(self):
        self.assertEqual(simplify_type("Array<User>"), "User[]")
        self.assertEqual(simplify_type("List<Order>", "java"), "Order[]")
        self.assertEqual(simplify_type("List[Order]", "python"), "Order[]")
        self.assertEqual(simplify_type("Tuple[Order, ...]", "python"), "Order[]")
        self.assertEqual(simplify_type("readonly User[]"), "User[]")

    def test_other_generics_keep_their_form(self):
        self.assertEqual(simplify_type("Map<string, User>"), "Map<string, User>")
        self.assertEqual(simplify_type("Dict[str, User]", "python"), "Dict[str, User]")
        self.assertEqual(simplify_type("Promise<User | null>"), "Promise<User>")

    def test_python_forward_references(self):
        self.assertEqual(simplify_type("'User'", "python"), "User")
        self.assertEqual(simplify_type('List["Order"]', "python"), "Order[]")

    def test_java_wildcards(self):
        self.assertEqual(simplify_type("List<? extends Shape>", "java"), "Shape[]")

    def test_parenthesized_union(self):
        self.assertEqual(simplify_type("(User | null)[]"), "User[]")

    def test_class_var_detection(self):
        self.assertTrue(is_class_var("ClassVar[int]"))
        self.assertTrue(is_class_var("typing.ClassVar[Registry]"))
        self.assertFalse(is_class_var("int"))
        self.assertEqual(simplify_type("ClassVar[Registry]", "python"), "Registry")


if __name__ == '__main__':
    unittest.main()
