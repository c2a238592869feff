"""Tests for configuration loading."""

import json

from tests import BaseUmlscopeTestCase
from umlscope.config import DEFAULT_IGNORE_PATTERNS, AnalysisConfig, load_config, load_ignore_patterns
from umlscope.exceptions import ConfigError


class TestUmlscopeIgnore(BaseUmlscopeTestCase):
    """Test cases for .umlscopeignore handling."""

    def test_missing_file(self):
        self.assertEqual(load_ignore_patterns(self.project_root), [])

    def test_comments_and_blank_lines_are_skipped(self):
        (self.project_root / ".umlscopeignore").write_text(
            "# generated sources\n"
            "generated/\n"
            "\n"
            "*.spec.ts\n"
            "   legacy   \n"
        )
        self.assertEqual(load_ignore_patterns(self.project_root), ["generated/", "*.spec.ts", "legacy"])


class TestLoadConfig(BaseUmlscopeTestCase):

    def test_defaults(self):
        config = load_config(self.project_root)
        self.assertEqual(config, AnalysisConfig())
        self.assertEqual(config.max_allowed_depth, 10)
        self.assertEqual(config.ignore_patterns, DEFAULT_IGNORE_PATTERNS)

    def test_no_root(self):
        self.assertEqual(load_config(), AnalysisConfig())

    def test_overrides(self):
        (self.project_root / ".umlscope.json").write_text(json.dumps({
            "max_files": 20,
            "path_aliases": {"@/": "src/"},
        }))
        config = load_config(self.project_root)
        self.assertEqual(config.max_files, 20)
        self.assertEqual(config.path_aliases, {"@/": "src/"})
        self.assertEqual(config.max_allowed_depth, 10)

    def test_ignore_file_extends_patterns(self):
        (self.project_root / ".umlscopeignore").write_text("generated\n")
        config = load_config(self.project_root)
        self.assertEqual(config.ignore_patterns[-1], "generated")
        self.assertIn("node_modules", config.ignore_patterns)

    def test_malformed_json(self):
        (self.project_root / ".umlscope.json").write_text("{not json")
        with self.assertRaises(ConfigError) as context:
            load_config(self.project_root)
        self.assertIn("Could not decode", str(context.exception))

    def test_non_object(self):
        (self.project_root / ".umlscope.json").write_text("[1, 2]")
        with self.assertRaises(ConfigError):
            load_config(self.project_root)

    def test_unknown_key(self):
        (self.project_root / ".umlscope.json").write_text(json.dumps({"max_filez": 3}))
        with self.assertRaises(ConfigError) as context:
            load_config(self.project_root)
        self.assertIn("Invalid configuration", str(context.exception))

    def test_out_of_range_value(self):
        (self.project_root / ".umlscope.json").write_text(json.dumps({"max_allowed_depth": 0}))
        with self.assertRaises(ConfigError):
            load_config(self.project_root)
