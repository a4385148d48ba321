from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from dappsync.config import storage


def test_storage_config_prefers_explicit_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("DAPPSYNC_DATA_DIR", str(custom))

    config = storage.get_storage_config()

    assert config.resolve_data_dir() == custom.resolve()


def test_default_data_dir_follows_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DAPPSYNC_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    monkeypatch.setattr(storage.os, "name", "posix")

    config = storage.get_storage_config()

    assert config.data_dir == (tmp_path / storage.APP_DIR_NAME).resolve()


def test_http_cache_path_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DAPPSYNC_DATA_DIR", str(tmp_path / "data-dir"))

    path = storage.get_storage_config().http_cache_path()

    assert path == (tmp_path / "data-dir" / storage.HTTP_CACHE_FILENAME).resolve()
    assert path.parent.exists()


def test_http_cache_path_without_ensure(tmp_path: Path) -> None:
    config = storage.StorageConfig(data_dir=tmp_path / "lazy")

    path = config.http_cache_path(ensure=False)

    assert path.name == storage.HTTP_CACHE_FILENAME
    assert not path.parent.exists()
