"""Fixtures for integration tests: an isolated config dir and a scripted CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

import frankie.cli as cli
from frankie.api.client import FrankieClient


@pytest.fixture()
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point FRANKIE_CONFIG_DIR at a fresh directory for the whole test."""
    for name in ("FRANKIE_OUTPUT", "FRANKIE_VERBOSE", "FRANKIE_COUNTRY", "FRANKIE_API_URL"):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "frankie"
    monkeypatch.setenv("FRANKIE_CONFIG_DIR", str(path))
    return path


@pytest.fixture()
def frankie_cli(config_dir: Path, fake_session, monkeypatch: pytest.MonkeyPatch) -> Callable[..., int]:
    """Run ``frankie`` with every request answered by ``fake_session``."""
    monkeypatch.setattr(
        cli,
        "_make_client",
        lambda settings: FrankieClient(settings.api_url, country=settings.country, session=fake_session),
    )
    return lambda *argv: cli.main(list(argv))
