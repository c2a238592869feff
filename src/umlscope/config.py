"""Analysis policy and its per-project configuration files."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".umlscope.json"
IGNORE_FILE_NAME = ".umlscopeignore"

DEFAULT_IGNORE_PATTERNS = [
    ".git", ".hg", ".svn", ".vscode", ".idea",
    "node_modules", "dist", "build", ".next", "out", "coverage", "*.min.js",
    "__pycache__", "venv", ".venv", ".tox", ".mypy_cache", "*.egg-info",
    "target", ".gradle",
]

class AnalysisConfig(BaseModel):
    """Tunable limits and resolution policy for a traversal."""
    model_config = ConfigDict(extra="forbid")

    max_allowed_depth: int = Field(default=10, ge=1)
    max_files: int = Field(default=500, ge=1)
    max_glob_results: int = Field(default=50, ge=1)
    max_reverse_candidates: int = Field(default=100, ge=1)
    fixture_marker: str = "test-data"
    source_root_marker: str = "/src/"
    java_source_roots: List[str] = Field(default_factory=lambda: ["src/main/java", "src/test/java", "src", "."])
    java_excluded_prefixes: List[str] = Field(default_factory=lambda: [
        "java.", "javax.", "jakarta.", "org.springframework.", "org.hibernate.", "com.google.common.",
    ])
    python_source_roots: List[str] = Field(default_factory=lambda: ["src", "."])
    path_aliases: Dict[str, str] = Field(default_factory=dict)
    ignore_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))


def load_ignore_patterns(project_root: Path) -> List[str]:
    """Load ignore patterns from a .umlscopeignore file.

    Returns:
        List of ignore patterns, empty if the file does not exist.
    """
    ignore_file = project_root / IGNORE_FILE_NAME
    patterns = []
    if ignore_file.exists():
        try:
            with open(ignore_file, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    # Skip empty lines and comments
                    if line and not line.startswith('#'):
                        patterns.append(line)
        except IOError as e:
            logger.warning(f"Failed to read {IGNORE_FILE_NAME} file: {e}")
    return patterns


def load_config(project_root: Optional[Path] = None) -> AnalysisConfig:
    """Build the configuration for a project.

    Values from ``.umlscope.json`` override the defaults; patterns from
    ``.umlscopeignore`` are added to the ignore list.

    Raises:
        ConfigError: If the JSON file is malformed or has unknown keys.
    """
    if project_root is None:
        return AnalysisConfig()
    project_root = Path(project_root)

    config_path = project_root / CONFIG_FILE_NAME
    overrides = {}
    if config_path.exists():
        try:
            with open(config_path, encoding='utf-8') as f:
                overrides = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Could not decode {config_path}: {e}") from e
        if not isinstance(overrides, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")

    try:
        config = AnalysisConfig(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    extra_patterns = load_ignore_patterns(project_root)
    if extra_patterns:
        config = config.model_copy(update={"ignore_patterns": config.ignore_patterns + extra_patterns})
    logger.debug(f"Loaded configuration for {project_root}: {config.model_dump()}")
    return config
