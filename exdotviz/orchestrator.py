"""Coordinates scanning, parsing, extraction, and graph building."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional, Union

from .analyzer import build_graphs
from .config_manager import AnalysisConfig
from .extractor import extract_modules
from .models import GraphSet, ModuleRecord
from .parser import ParseFailure, Parser, TreeSitterElixirParser
from .scanner import scan

logger = logging.getLogger(__name__)

ParserFactory = Callable[[], Parser]


class AnalysisOrchestrator:
    """Runs the pipeline for one project.

    Each file is parsed and extracted independently; a file that cannot be
    read or parsed contributes no records and the batch continues.
    """

    def __init__(
        self,
        cfg: Optional[AnalysisConfig] = None,
        parser_factory: ParserFactory = TreeSitterElixirParser,
    ) -> None:
        self.cfg = cfg or AnalysisConfig()
        self._parser_factory = parser_factory
        self._local = threading.local()
        self.skipped: List[str] = []
        self._lock = threading.Lock()

    def _parser(self) -> Parser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = self._parser_factory()
            self._local.parser = parser
        return parser

    def _skip(self, file_path: Path, reason: object) -> List[ModuleRecord]:
        logger.warning("Skipping %s: %s", file_path, reason)
        with self._lock:
            self.skipped.append(str(file_path))
        return []

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract_string(self, source: Union[str, bytes], file: str) -> List[ModuleRecord]:
        tree = self._parser().parse(source, file)
        return extract_modules(
            tree,
            file,
            lexical_aliases=self.cfg.lexical_aliases,
            nested_names=self.cfg.nested_names,
        )

    def extract_file(self, file_path: Path) -> List[ModuleRecord]:
        try:
            source = file_path.read_bytes()
        except OSError as exc:
            return self._skip(file_path, exc)
        try:
            return self.extract_string(source, str(file_path))
        except ParseFailure as exc:
            return self._skip(file_path, exc.reason)

    def extract_files(self, files: List[Path]) -> List[ModuleRecord]:
        """Extract every file, keeping file order then record order."""
        jobs = max(1, int(self.cfg.jobs))
        if jobs == 1 or len(files) < 2:
            per_file = [self.extract_file(f) for f in files]
        else:
            with ThreadPoolExecutor(max_workers=jobs) as executor:
                per_file = list(executor.map(self.extract_file, files))
        records = [record for batch in per_file for record in batch]
        logger.info(
            "Extracted %d module(s) from %d file(s), %d skipped",
            len(records), len(files), len(self.skipped),
        )
        return records

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    def analyze(self, root: Path) -> GraphSet:
        files = scan(
            root,
            include_tests=self.cfg.include_tests,
            exclude_dirs=self.cfg.exclude_dirs,
        )
        records = self.extract_files(files)
        return build_graphs(records, internal_only=self.cfg.internal_only)


def analyze(
    root: Union[str, Path],
    include_tests: Optional[bool] = None,
    internal_only: Optional[bool] = None,
    jobs: Optional[int] = None,
    lexical_aliases: Optional[bool] = None,
    nested_names: Optional[bool] = None,
    cfg: Optional[AnalysisConfig] = None,
) -> GraphSet:
    """Analyze a directory (or a single file) and return all graphs.

    Keyword arguments that are given override the matching fields of ``cfg``.
    Without a ``cfg`` the graphs are not restricted to internal modules.
    """
    cfg = (cfg or AnalysisConfig(internal_only=False)).override(
        include_tests=include_tests,
        internal_only=internal_only,
        jobs=jobs,
        lexical_aliases=lexical_aliases,
        nested_names=nested_names,
    )
    return AnalysisOrchestrator(cfg).analyze(Path(root))


def parse_files(
    files: List[Path],
    lexical_aliases: bool = False,
    nested_names: bool = False,
) -> List[ModuleRecord]:
    """Extract module records from ``files`` without building graphs."""
    cfg = AnalysisConfig(lexical_aliases=lexical_aliases, nested_names=nested_names)
    return AnalysisOrchestrator(cfg).extract_files(list(files))
