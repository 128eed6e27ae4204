"""Static module dependency and call graphs for Elixir projects."""

from .analyzer import build_graphs, filter_internal
from .orchestrator import analyze, parse_files

__version__ = "0.3.0"

__all__ = ["analyze", "build_graphs", "filter_internal", "parse_files", "__version__"]
