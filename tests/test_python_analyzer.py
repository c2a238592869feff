"""Tests for the Python analyzer."""

import unittest

from tests import SKIP_REASON, TSLP_AVAILABLE
from umlscope.treesitter.analyzers.python_analyzer import PythonAnalyzer
from umlscope.treesitter.exceptions import ParsingError

SERVICE_SOURCE = '''
from __future__ import annotations
import os
import app.models as m
from typing import ClassVar, List, Optional
from .repository import Repository as Repo
from .helpers import *

try:
    import ujson as json
except ImportError:
    import json

__all__ = ["Service"]


class Service(BaseService, Auditable):
    """Coordinates repository access."""

    registry: ClassVar[Registry]
    DEFAULT_LIMIT = 10
    count: int

    def __init__(self, repo: Repo, cache: Optional[Cache] = None):
        self.repo = repo
        self._cache = cache
        self.__history = []
        self.clock = Clock()

    @staticmethod
    def build() -> "Service":
        ...

    async def fetch(self, ids: List[int]) -> List[User]:
        return []


def _helper():
    pass
'''


@unittest.skipIf(not TSLP_AVAILABLE, SKIP_REASON)
class TestPythonAnalyzer(unittest.TestCase):
    """Test cases for the Python analyzer."""

    def setUp(self):
        self.analyzer = PythonAnalyzer()

    def analyze(self, source: str):
        return self.analyzer.analyze_source(source, "/project/service.py")

    def test_imports(self):
        ast = self.analyze(SERVICE_SOURCE)
        sources = [imp.source for imp in ast.imports]
        self.assertNotIn("__future__", sources)
        self.assertEqual(sources, ["os", "app.models", "typing", "typing", "typing", ".repository", ".helpers", "ujson", "json"])

        aliased = ast.imports[1]
        self.assertTrue(aliased.is_namespace)
        self.assertEqual(aliased.namespace_alias, "m")

        repo = ast.imports[5]
        self.assertEqual(repo.specifiers, ["Repo"])
        self.assertFalse(repo.is_namespace)

        self.assertTrue(ast.imports[6].is_namespace)
        self.assertEqual(ast.imports[6].specifiers, [])

    def test_exports_follow_dunder_all(self):
        ast = self.analyze(SERVICE_SOURCE)
        self.assertEqual([e.name for e in ast.exports], ["Service"])
        self.assertEqual(ast.exports[0].export_type, "class")

    def test_exports_default_to_public_names(self):
        ast = self.analyze("class A:\n    pass\n\nclass _B:\n    pass\n\ndef run():\n    pass\n")
        self.assertEqual([e.name for e in ast.exports], ["A", "run"])

    def test_class_hierarchy(self):
        cls = self.analyze(SERVICE_SOURCE).classes[0]
        self.assertEqual(cls.name, "Service")
        self.assertEqual(cls.extends, "BaseService")
        self.assertEqual(cls.implements, ["Auditable"])
        self.assertFalse(cls.is_abstract)

    def test_properties(self):
        cls = self.analyze(SERVICE_SOURCE).classes[0]
        props = {p.name: p for p in cls.properties}
        self.assertEqual(list(props), ["registry", "DEFAULT_LIMIT", "count", "repo", "_cache", "__history", "clock"])

        self.assertEqual(props["registry"].type, "Registry")
        self.assertTrue(props["registry"].is_static)
        self.assertEqual(props["DEFAULT_LIMIT"].type, "int")
        self.assertTrue(props["DEFAULT_LIMIT"].is_static)
        self.assertTrue(props["DEFAULT_LIMIT"].is_readonly)
        self.assertFalse(props["count"].is_static)

        self.assertEqual(props["repo"].type, "Repo")
        self.assertEqual(props["_cache"].type, "Cache")
        self.assertEqual(props["_cache"].visibility, "protected")
        self.assertEqual(props["__history"].type, "list")
        self.assertEqual(props["__history"].visibility, "private")
        self.assertEqual(props["clock"].type, "Clock")

    def test_methods_and_constructor(self):
        cls = self.analyze(SERVICE_SOURCE).classes[0]
        methods = {m.name: m for m in cls.methods}
        self.assertEqual(list(methods), ["__init__", "build", "fetch"])
        self.assertTrue(methods["build"].is_static)
        self.assertEqual(methods["build"].return_type, "Service")
        self.assertTrue(methods["fetch"].is_async)
        self.assertEqual(methods["fetch"].return_type, "User[]")
        self.assertEqual([(p.name, p.type) for p in methods["fetch"].parameters], [("ids", "int[]")])

        self.assertEqual([p.name for p in cls.constructor_params], ["repo", "cache"])
        self.assertFalse(cls.constructor_params[0].is_optional)
        self.assertTrue(cls.constructor_params[1].is_optional)
        self.assertEqual(cls.constructor_params[1].default_value, "None")

    def test_functions(self):
        ast = self.analyze(SERVICE_SOURCE)
        self.assertEqual([f.name for f in ast.functions], ["_helper"])
        self.assertFalse(ast.functions[0].is_exported)

    def test_protocol_becomes_interface(self):
        ast = self.analyze("class Drawable(Protocol):\n    def draw(self, canvas: Canvas) -> None: ...\n")
        self.assertEqual(ast.classes, [])
        self.assertEqual(ast.interfaces[0].name, "Drawable")
        self.assertEqual(ast.all_classes()[0].kind, "interface")

    def test_abstract_classes(self):
        source = (
            "class Shape(ABC):\n"
            "    @abstractmethod\n"
            "    def area(self) -> float:\n"
            "        pass\n\n"
            "class Meta(metaclass=ABCMeta):\n"
            "    pass\n"
        )
        shape, meta = self.analyze(source).classes
        self.assertTrue(shape.is_abstract)
        self.assertIsNone(shape.extends)
        self.assertTrue(shape.methods[0].is_abstract)
        self.assertTrue(meta.is_abstract)

    def test_dataclass_fields_are_constructor_params(self):
        source = (
            "@dataclass\n"
            "class Point:\n"
            "    x: float\n"
            "    owner: Owner\n"
            "    TAG: ClassVar[str] = 'p'\n"
        )
        cls = self.analyze(source).classes[0]
        self.assertEqual([(p.name, p.type) for p in cls.constructor_params], [("x", "float"), ("owner", "Owner")])

    def test_nested_classes(self):
        ast = self.analyze("class Outer:\n    class Inner:\n        pass\n")
        self.assertEqual([c.name for c in ast.classes], ["Outer", "Inner"])

    def test_syntax_error(self):
        with self.assertRaises(ParsingError) as context:
            self.analyze("def broken(:\n    pass\n")
        self.assertIn("syntax errors", str(context.exception))


if __name__ == '__main__':
    unittest.main()
