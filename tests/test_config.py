from pathlib import Path

import pytest

from pilot_store.config import DEFAULT_BASE_DIR, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("PILOT_STORE_DATA_DIR", "PILOT_STORE_DEBOUNCE_MS", "PILOT_STORE_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()
    assert config.base_dir == DEFAULT_BASE_DIR
    assert config.debounce_ms == 500
    assert config.debounce_seconds == 0.5
    assert config.log_file is None


def test_yaml_then_environment(tmp_path, monkeypatch):
    path = tmp_path / "pilot.yaml"
    path.write_text("base_dir: ~/pilot-data\ndebounce_ms: 250\nverbose: false\n", encoding="utf-8")
    config = load_config(str(path))
    assert config.base_dir == Path.home() / "pilot-data"
    assert config.debounce_ms == 250
    assert config.verbose is False

    monkeypatch.setenv("PILOT_STORE_DATA_DIR", str(tmp_path / "env-data"))
    monkeypatch.setenv("PILOT_STORE_DEBOUNCE_MS", "0")
    monkeypatch.setenv("PILOT_STORE_LOG_FILE", str(tmp_path / "log.jsonl"))
    config = load_config(str(path))
    assert config.base_dir == tmp_path / "env-data"
    assert config.debounce_seconds == 0
    assert config.log_file == str(tmp_path / "log.jsonl")


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(path))
