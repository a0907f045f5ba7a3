"""Tests for the labcraft config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from labcraft.config import ConfigError, LabcraftConfig, load_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("LABCRAFT_DATA_DIR", raising=False)
    monkeypatch.delenv("LABCRAFT_OWNER", raising=False)


@pytest.fixture
def no_global(tmp_path) -> Path:
    return tmp_path / "nonexistent" / "config.yaml"


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def test_defaults_no_files(tmp_path, no_global):
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)

    assert isinstance(cfg, LabcraftConfig)
    assert cfg.storage.db_path == Path(".labcraft") / "labcraft.db"
    assert cfg.storage.prefix == "practical_manual_"
    assert cfg.draft.debounce_seconds == 1.0
    assert cfg.assets.max_width == 1200
    assert cfg.assets.quality == 0.8
    assert (cfg.export.page_width, cfg.export.page_height) == (210.0, 297.0)
    assert cfg.export.margin_top == 10.0
    assert cfg.export.scale == 2.0
    assert cfg.export.fit == "page"
    assert cfg.session.owner == "current_user"


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_global_config_applied(tmp_path):
    global_path = tmp_path / "global" / "config.yaml"
    _write_yaml(global_path, {"assets": {"max_width": 800}})
    cfg = load_config(project_dir=tmp_path, global_config_path=global_path)
    assert cfg.assets.max_width == 800
    assert cfg.assets.quality == 0.8


def test_project_overrides_global(tmp_path):
    global_path = tmp_path / "global" / "config.yaml"
    _write_yaml(global_path, {"export": {"fit": "page", "scale": 3.0}})
    _write_yaml(tmp_path / "labcraft.yaml", {"export": {"fit": "width"}})
    cfg = load_config(project_dir=tmp_path, global_config_path=global_path)
    assert cfg.export.fit == "width"
    assert cfg.export.scale == 3.0


def test_env_overrides_files(tmp_path, no_global, monkeypatch):
    _write_yaml(tmp_path / "labcraft.yaml", {"storage": {"data_dir": "from-file"}})
    monkeypatch.setenv("LABCRAFT_DATA_DIR", "from-env")
    monkeypatch.setenv("LABCRAFT_OWNER", "env@example.com")
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)
    assert cfg.storage.data_dir == "from-env"
    assert cfg.session.owner == "env@example.com"


def test_empty_section_keeps_defaults(tmp_path, no_global):
    (tmp_path / "labcraft.yaml").write_text("draft:\n", encoding="utf-8")
    cfg = load_config(project_dir=tmp_path, global_config_path=no_global)
    assert cfg.draft.debounce_seconds == 1.0


def test_empty_file_is_defaults(tmp_path, no_global):
    (tmp_path / "labcraft.yaml").write_text("", encoding="utf-8")
    assert load_config(project_dir=tmp_path, global_config_path=no_global) == LabcraftConfig()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "data",
    [
        {"session": {"password": "hunter2"}},
        {"storage": {"api_key": "abc"}},
        {"export": {"upload_token": "abc"}},
        {"secret": "x"},
    ],
)
def test_credentials_rejected(tmp_path, no_global, data):
    _write_yaml(tmp_path / "labcraft.yaml", data)
    with pytest.raises(ConfigError, match="forbidden key"):
        load_config(project_dir=tmp_path, global_config_path=no_global)


def test_credentials_rejected_in_global(tmp_path):
    global_path = tmp_path / "g" / "config.yaml"
    _write_yaml(global_path, {"session": {"owner": "x", "passwd": "y"}})
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=global_path)


def test_unknown_top_level_key_warns(tmp_path, no_global):
    _write_yaml(tmp_path / "labcraft.yaml", {"exporter": {"fit": "page"}})
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=no_global)
    assert any("exporter" in str(w.message) for w in caught)


@pytest.mark.parametrize(
    "data",
    [
        {"export": {"fit": "stretch"}},
        {"assets": {"quality": 1.5}},
        {"assets": {"max_width": 0}},
        {"draft": {"debounce_seconds": -1}},
        {"export": {"margin_top": 200}},
        {"assets": {"max_width": "wide"}},
    ],
)
def test_invalid_values_rejected(tmp_path, no_global, data):
    _write_yaml(tmp_path / "labcraft.yaml", data)
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=no_global)


def test_non_mapping_file_rejected(tmp_path, no_global):
    (tmp_path / "labcraft.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(project_dir=tmp_path, global_config_path=no_global)
