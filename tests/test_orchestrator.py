"""Tests for the end-to-end analysis pipeline."""

from pathlib import Path

import pytest

from exdotviz import analyze, parse_files
from exdotviz.config_manager import AnalysisConfig
from exdotviz.json_export import to_json
from exdotviz.models import ModuleCallEdge, QualifiedName
from exdotviz.orchestrator import AnalysisOrchestrator
from exdotviz.parser import ParseFailure, Parser
from exdotviz.syntax import aliases, block, def_, defmodule, remote_call


class StubParser(Parser):
    """Maps file contents ``Name->Target`` to a module calling ``Target.f``."""

    def parse(self, source, file="nofile"):
        text = source.decode("utf-8") if isinstance(source, bytes) else source
        text = text.strip()
        if text == "broken":
            raise ParseFailure(file, "stub failure")
        name, _, target = text.partition("->")
        body = [remote_call(aliases(target), "f")] if target else []
        return block(defmodule(aliases(name), def_("run", (), *body)))


def _write(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _qn(dotted):
    return QualifiedName.parse(dotted)


def test_stub_pipeline(temp_dir):
    _write(temp_dir, "lib/a.ex", "A->B")
    _write(temp_dir, "lib/b.ex", "B->Ext")
    orchestrator = AnalysisOrchestrator(AnalysisConfig(), parser_factory=StubParser)
    graphs = orchestrator.analyze(temp_dir)

    assert [str(m.name) for m in graphs.modules] == ["A", "B"]
    assert graphs.module_call_edges == [ModuleCallEdge(_qn("A"), _qn("B"))]
    assert orchestrator.skipped == []


def test_parse_failure_skips_file(temp_dir):
    _write(temp_dir, "lib/a.ex", "A")
    bad = _write(temp_dir, "lib/bad.ex", "broken")
    orchestrator = AnalysisOrchestrator(AnalysisConfig(), parser_factory=StubParser)
    graphs = orchestrator.analyze(temp_dir)

    assert [str(m.name) for m in graphs.modules] == ["A"]
    assert orchestrator.skipped == [str(bad)]


def test_unreadable_file_is_skipped(temp_dir, caplog):
    orchestrator = AnalysisOrchestrator(AnalysisConfig(), parser_factory=StubParser)
    missing = temp_dir / "gone.ex"
    with caplog.at_level("WARNING"):
        assert orchestrator.extract_file(missing) == []
    assert orchestrator.skipped == [str(missing)]
    assert "gone.ex" in caplog.text


@pytest.mark.parametrize("jobs", [1, 4])
def test_file_order_is_kept_with_threads(temp_dir, jobs):
    names = [f"M{i:02d}" for i in range(12)]
    files = [_write(temp_dir, f"lib/{n.lower()}.ex", n) for n in names]
    cfg = AnalysisConfig(jobs=jobs)
    records = AnalysisOrchestrator(cfg, parser_factory=StubParser).extract_files(files)
    assert [str(r.name) for r in records] == names


def test_sample_project(sample_project_path):
    graphs = analyze(sample_project_path, internal_only=True)
    names = {str(m.name) for m in graphs.modules}
    assert names == {"Shop", "Shop.Cart", "Shop.Inventory", "Shop.Pricing"}

    module_calls = {(str(e.src), str(e.dst)) for e in graphs.module_call_edges}
    assert module_calls == {
        ("Shop", "Shop.Cart"),
        ("Shop", "Shop.Pricing"),
        ("Shop", "Shop.Inventory"),
        ("Shop.Pricing", "Shop.Cart"),
    }

    edges = {(str(e.src), str(e.dst), e.kind) for e in graphs.module_edges}
    assert ("Shop", "Shop.Inventory", "alias") in edges
    assert ("Shop.Pricing", "Shop.Cart", "alias") in edges
    assert all("Logger" not in str(e.dst) for e in graphs.module_edges)


def test_sample_project_without_filter(sample_project_path):
    graphs = analyze(sample_project_path)
    targets = {str(e.dst) for e in graphs.module_edges}
    assert {"Logger", "Enum", "Map", "GenServer"} <= targets

    calls = {(str(e.src), str(e.dst)) for e in graphs.call_edges}
    assert ("Shop.Inventory.reserve/1", "GenServer.call/2") in calls
    assert ("Shop.Cart.add/2", "Shop.Cart.new/1") in calls


def test_sample_project_with_tests(sample_project_path):
    graphs = analyze(sample_project_path, include_tests=True)
    assert "ShopTest" in {str(m.name) for m in graphs.modules}


def test_output_is_deterministic(sample_project_path):
    first = to_json(analyze(sample_project_path, jobs=1))
    second = to_json(analyze(sample_project_path, jobs=4))
    assert first == second


def test_parse_files(sample_project_path):
    files = [sample_project_path / "lib" / "shop" / "pricing.ex"]
    (rec,) = parse_files(files)
    assert str(rec.name) == "Shop.Pricing"
    assert [str(c.dst) for c in rec.calls] == ["Shop.Cart.items/0", "Enum.sum/0"]
