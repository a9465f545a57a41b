"""Tests for the JSON configuration layer."""

import json

import pytest

from meiunpack.utils.config import (
    Config, ExtractConfig, LoggingConfig, ensure_directories, load_config,
    save_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("MEIUNPACK_OUTPUT", "MEIUNPACK_WORKERS", "MEIUNPACK_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def test_defaults():
    config = Config()
    assert config.extract.output_dir == "unpacked"
    assert config.extract.workers == 0
    assert config.extract.search_chunk_size == 8192
    assert config.logging.level == "INFO"
    assert config.validate() == []


def test_validate():
    config = Config(
        extract=ExtractConfig(output_dir="", workers=-1, search_chunk_size=4),
        logging=LoggingConfig(level="LOUD"),
    )
    errors = config.validate()
    assert len(errors) == 4


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "missing.json")
    assert config == Config()


def test_save_and_load(tmp_path):
    path = tmp_path / "cfg" / "config.json"
    config = Config(extract=ExtractConfig(output_dir="out", workers=3))

    assert save_config(config, path)
    assert json.loads(path.read_text())["extract"]["workers"] == 3
    assert load_config(path) == config


def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"extract": {"workers": 2}}))

    config = load_config(path)
    assert config.extract.workers == 2
    assert config.extract.output_dir == "unpacked"
    assert config.logging.level == "INFO"


def test_broken_file_falls_back(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert load_config(path) == Config()


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("MEIUNPACK_OUTPUT", "/data/out")
    monkeypatch.setenv("MEIUNPACK_WORKERS", "6")
    monkeypatch.setenv("MEIUNPACK_LOG_LEVEL", "debug")

    config = load_config(tmp_path / "missing.json")
    assert config.extract.output_dir == "/data/out"
    assert config.extract.workers == 6
    assert config.logging.level == "DEBUG"


def test_bad_env_value_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("MEIUNPACK_WORKERS", "many")
    assert load_config(tmp_path / "missing.json").extract.workers == 0


def test_ensure_directories(tmp_path):
    log_dir = tmp_path / "logs"
    ensure_directories(Config(logging=LoggingConfig(log_dir=str(log_dir))))
    assert log_dir.is_dir()
