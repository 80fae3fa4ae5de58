"""Shared fixtures."""

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's own config file and environment out of the tests."""
    config_dir = tmp_path_factory.mktemp("isolated-config")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("APPDATA", str(config_dir))
    monkeypatch.delenv("TODOLINE_FILE", raising=False)
    monkeypatch.delenv("TODOLINE_DEFAULT_PRIORITY", raising=False)
