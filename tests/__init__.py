"""Test package for umlscope."""

import shutil
import tempfile
import textwrap
import unittest
from pathlib import Path

# Check if the tree-sitter-language-pack is available
TSLP_AVAILABLE = True
TSLP_IMPORT_ERROR_MSG = ""
try:
    from tree_sitter_language_pack import get_parser
    if get_parser is None:
        TSLP_AVAILABLE = False
        TSLP_IMPORT_ERROR_MSG = "get_parser is None after successful import of tree_sitter_language_pack"
except ImportError as e:
    TSLP_AVAILABLE = False
    TSLP_IMPORT_ERROR_MSG = f"Failed to import from tree_sitter_language_pack: {e}. Ensure it's installed."

SKIP_REASON = f"tree-sitter-language-pack not available. Error: {TSLP_IMPORT_ERROR_MSG}"


class BaseUmlscopeTestCase(unittest.TestCase):
    """Base test case with a throwaway project directory."""

    def setUp(self):
        super().setUp()
        self.temp_dir = Path(tempfile.mkdtemp())
        self.project_root = self.temp_dir / "project"
        self.project_root.mkdir()

    def tearDown(self):
        try:
            if self.temp_dir.exists():
                shutil.rmtree(self.temp_dir)
        except OSError as e:
            print(f"Warning: Failed to clean up test resources: {e}")
        finally:
            super().tearDown()

    def write_file(self, relative_path: str, content: str) -> Path:
        """Write a source file under the project root, dedenting its content."""
        path = self.project_root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return path
