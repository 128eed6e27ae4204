"""Pytest configuration and fixtures for exdotviz tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    """Point the user config at an empty directory so local settings never leak in."""
    home = tmp_path_factory.mktemp("exdotviz_home")
    monkeypatch.setattr("exdotviz.config.BASE_DIR", home)
    monkeypatch.setattr("exdotviz.config.CONFIG_FILE", home / "config.toml")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Path to the sample Elixir project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def shop_source() -> str:
    """A small module exercising aliases, remote and local calls."""
    return '''defmodule Shop do
  alias Shop.Cart

  def checkout(items) do
    cart = Cart.new(items)
    log(cart)
  end

  defp log(cart), do: IO.inspect(cart)
end
'''
