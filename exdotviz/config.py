"""Configuration paths and defaults for exdotviz."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("EXDOTVIZ_HOME", str(Path.home() / ".exdotviz"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
PROJECT_CONFIG_NAME = ".exdotviz.toml"

SOURCE_EXTENSIONS = {".ex", ".exs"}
TEST_SUFFIX = "_test.exs"

SKIP_DIRS = {
    "_build", "deps", ".elixir_ls", ".git", "node_modules", "cover",
}

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_JOBS = 1
