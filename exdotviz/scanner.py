"""Scans directories for Elixir source files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Set

from . import config

logger = logging.getLogger(__name__)


def is_source_file(path: Path, include_tests: bool = False) -> bool:
    """``.ex`` always; ``.exs`` unless it is a ``*_test.exs`` and tests are excluded."""
    if path.suffix not in config.SOURCE_EXTENSIONS:
        return False
    if path.name.endswith(config.TEST_SUFFIX):
        return include_tests
    return True


def scan(
    root: Path,
    include_tests: bool = False,
    exclude_dirs: Optional[Iterable[str]] = None,
) -> List[Path]:
    """Return Elixir source files under ``root`` in sorted order.

    A regular file is returned on its own when it has a supported extension.
    A missing path or an empty directory yields an empty list.
    """
    root = Path(root)
    skip: Set[str] = set(config.SKIP_DIRS if exclude_dirs is None else exclude_dirs)

    if root.is_file():
        return [root] if is_source_file(root, include_tests) else []
    if not root.is_dir():
        logger.warning("Nothing to scan at %s", root)
        return []

    files = []
    for ext in sorted(config.SOURCE_EXTENSIONS):
        for path in root.rglob(f"*{ext}"):
            rel_parts = path.relative_to(root).parts[:-1]
            if any(part in skip for part in rel_parts):
                continue
            if path.is_file() and is_source_file(path, include_tests):
                files.append(path)

    files.sort()
    logger.info("Found %d source file(s) under %s", len(files), root)
    return files
