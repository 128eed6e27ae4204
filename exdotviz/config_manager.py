"""Configuration manager for exdotviz using TOML files.

Settings are layered: built-in defaults, then ``$EXDOTVIZ_HOME/config.toml``,
then ``.exdotviz.toml`` in the analyzed project.  Command-line flags override
whatever the files say.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml

from . import config

logger = logging.getLogger(__name__)


@dataclass
class AnalysisConfig:
    include_tests: bool = False
    internal_only: bool = True
    lexical_aliases: bool = False
    nested_names: bool = False
    jobs: int = config.DEFAULT_JOBS
    exclude_dirs: List[str] = field(default_factory=lambda: sorted(config.SKIP_DIRS))
    prune: List[str] = field(default_factory=list)
    output_dir: str = config.DEFAULT_OUTPUT_DIR

    def override(self, **values: Any) -> "AnalysisConfig":
        """Return a copy with every non-None keyword applied."""
        merged = {f.name: getattr(self, f.name) for f in fields(self)}
        merged.update({k: v for k, v in values.items() if v is not None})
        return AnalysisConfig(**merged)


_SECTIONS = {
    "analysis": (
        "include_tests", "internal_only", "lexical_aliases", "nested_names", "jobs", "exclude_dirs",
    ),
    "render": ("prune", "output_dir"),
}


def load_toml(path: Path) -> Dict[str, Any]:
    """Load one TOML file; a missing or malformed file yields ``{}``."""
    if not path.is_file():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring config file %s: %s", path, exc)
        return {}


def _apply(settings: Dict[str, Any], data: Dict[str, Any], source: Path) -> None:
    for section, keys in _SECTIONS.items():
        values = data.get(section, {})
        if not isinstance(values, dict):
            logger.warning("Section [%s] in %s is not a table", section, source)
            continue
        for key, value in values.items():
            if key not in keys:
                logger.warning("Unknown setting %s.%s in %s", section, key, source)
                continue
            settings[key] = value


def load_config(project_root: Optional[Path] = None) -> AnalysisConfig:
    """Build the effective configuration for a project."""
    settings: Dict[str, Any] = {}
    sources = [config.CONFIG_FILE]
    if project_root is not None:
        root = project_root if project_root.is_dir() else project_root.parent
        sources.append(root / config.PROJECT_CONFIG_NAME)

    for path in sources:
        data = load_toml(path)
        if data:
            logger.debug("Loaded config from %s", path)
            _apply(settings, data, path)

    return AnalysisConfig().override(**settings)


def save_config(cfg: AnalysisConfig, path: Optional[Path] = None) -> bool:
    """Write ``cfg`` to ``path`` (the user config by default); False on I/O failure."""
    path = path or config.CONFIG_FILE
    data = {
        section: {key: getattr(cfg, key) for key in keys}
        for section, keys in _SECTIONS.items()
    }
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config file %s: %s", path, exc)
        return False
