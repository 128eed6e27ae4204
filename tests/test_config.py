"""Tests for layered TOML configuration."""

from exdotviz import config
from exdotviz.config_manager import AnalysisConfig, load_config, load_toml, save_config


def test_defaults_without_files(temp_dir):
    cfg = load_config(temp_dir)
    assert cfg == AnalysisConfig()
    assert cfg.internal_only is True
    assert cfg.include_tests is False
    assert "deps" in cfg.exclude_dirs


def test_user_config_then_project_config(temp_dir):
    config.CONFIG_FILE.write_text(
        "[analysis]\njobs = 4\ninclude_tests = true\n\n[render]\nprune = [\"Logger\"]\n",
        encoding="utf-8",
    )
    (temp_dir / ".exdotviz.toml").write_text("[analysis]\njobs = 2\n", encoding="utf-8")

    cfg = load_config(temp_dir)
    assert cfg.jobs == 2
    assert cfg.include_tests is True
    assert cfg.prune == ["Logger"]


def test_project_config_found_from_file_path(temp_dir):
    (temp_dir / ".exdotviz.toml").write_text("[analysis]\nlexical_aliases = true\n", encoding="utf-8")
    source = temp_dir / "a.ex"
    source.write_text("", encoding="utf-8")
    assert load_config(source).lexical_aliases is True


def test_unknown_keys_are_ignored(temp_dir, caplog):
    (temp_dir / ".exdotviz.toml").write_text("[analysis]\ncolour = \"red\"\n", encoding="utf-8")
    with caplog.at_level("WARNING"):
        cfg = load_config(temp_dir)
    assert cfg == AnalysisConfig()
    assert "colour" in caplog.text


def test_malformed_file_is_ignored(temp_dir):
    path = temp_dir / "bad.toml"
    path.write_text("[analysis\njobs = ", encoding="utf-8")
    assert load_toml(path) == {}


def test_override_skips_none():
    cfg = AnalysisConfig().override(jobs=3, internal_only=None)
    assert cfg.jobs == 3
    assert cfg.internal_only is True


def test_save_and_reload():
    cfg = AnalysisConfig(jobs=8, prune=["Repo"])
    assert save_config(cfg)
    assert config.CONFIG_FILE.is_file()
    assert load_config() == cfg


def test_nested_names_setting(temp_dir):
    assert load_config(temp_dir).nested_names is False
    (temp_dir / ".exdotviz.toml").write_text("[analysis]\nnested_names = true\n", encoding="utf-8")
    assert load_config(temp_dir).nested_names is True
