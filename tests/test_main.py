"""Tests for the main CLI module."""

import json
import unittest

from click.testing import CliRunner

from tests import BaseUmlscopeTestCase, SKIP_REASON, TSLP_AVAILABLE
from umlscope import __version__
from umlscope.main import main


class TestMainGroup(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()

    def test_version(self):
        result = self.runner.invoke(main, ['--version'])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip(), f"umlscope {__version__}")

    def test_help_lists_commands(self):
        result = self.runner.invoke(main, ['--help'])
        self.assertEqual(result.exit_code, 0)
        for command in ('analyze', 'inspect', 'index'):
            self.assertIn(command, result.output)


@unittest.skipIf(not TSLP_AVAILABLE, SKIP_REASON)
class TestCommands(BaseUmlscopeTestCase):

    def setUp(self):
        super().setUp()
        self.runner = CliRunner()
        self.order = self.write_file("src/Order.ts", """
            import { Customer } from './Customer';

            export class Order {
              private customer: Customer;
            }
        """)
        self.customer = self.write_file("src/Customer.ts", "export class Customer {}\n")

    def invoke(self, *args):
        return self.runner.invoke(main, list(args))

    def analyze(self, *args):
        return self.invoke('analyze', str(self.order), '--root', str(self.project_root), *args)

    def test_analyze_text(self):
        result = self.analyze('--depth', '2')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("src/Order.ts (depth 0, typescript)", result.output)
        self.assertIn("src/Customer.ts (depth 1, typescript)", result.output)
        self.assertIn("  class Order", result.output)
        self.assertIn("    Order --composition--> Customer [1] (customer)", result.output)

    def test_analyze_json(self):
        result = self.analyze('--json')
        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.output)
        self.assertEqual(set(payload), {str(self.order), str(self.customer)})
        self.assertEqual(payload[str(self.customer)]["depth"], 1)

    def test_analyze_with_index(self):
        result = self.analyze('--use-index')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("src/Customer.ts (depth 1, typescript)", result.output)

    def test_analyze_reverse(self):
        result = self.invoke('analyze', str(self.customer), '-r', str(self.project_root), '-m', 'reverse', '-d', '2')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("src/Order.ts (depth 0, typescript)", result.output)
        self.assertIn("src/Customer.ts (depth 1, typescript)", result.output)
        self.assertIn("(imports from Customer.ts)", result.output)

    def test_analyze_bidirectional(self):
        result = self.invoke('analyze', str(self.customer), '-r', str(self.project_root), '-m', 'bidirectional')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("2 files, 2 classes, 2 relationships (0 dependencies, 1 dependents)", result.output)

    def test_verbose_reports_unresolved_names(self):
        self.write_file("src/Order.ts", "export class Order {\n  private ledger: Ledger;\n}\n")
        result = self.runner.invoke(main, ['-v', 'analyze', str(self.order), '-r', str(self.project_root)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Unresolved class names:", result.output)
        self.assertIn("  Ledger (from src/Order.ts)", result.output)

    def test_invalid_depth(self):
        result = self.analyze('--depth', '0')
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error: Depth must be between 1 and 10", result.output)

    def test_missing_file(self):
        result = self.invoke('analyze', str(self.project_root / "src" / "Nope.ts"), '-r', str(self.project_root))
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error: File not found", result.output)

    def test_parse_error(self):
        broken = self.write_file("src/Broken.ts", "export class {\n")
        result = self.invoke('analyze', str(broken), '-r', str(self.project_root))
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)

    def test_bad_project_config(self):
        (self.project_root / ".umlscope.json").write_text("{oops")
        result = self.analyze()
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error: Could not decode", result.output)

    def test_inspect(self):
        result = self.invoke('inspect', str(self.order))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("  class Order", result.output)
        self.assertIn("Order --composition--> Customer", result.output)
        self.assertNotIn("class Customer", result.output)

    def test_inspect_json(self):
        result = self.invoke('inspect', str(self.order), '--json')
        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.output)
        self.assertEqual([c["name"] for c in payload["classes"]], ["Order"])

    def test_index(self):
        result = self.invoke('index', str(self.project_root))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Indexed 2 classes in 2 files.", result.output)
        self.assertIn("  Customer: src/Customer.ts", result.output)

    def test_index_json(self):
        result = self.invoke('index', str(self.project_root), '--json')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(json.loads(result.output), {"Customer": ["src/Customer.ts"], "Order": ["src/Order.ts"]})


if __name__ == '__main__':
    unittest.main()
