# tests/core/test_alloc_config.py
"""Tests for AllocConfig persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from hddgen.core.alloc_config import (
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_PROGRESS_INTERVAL_MS,
    DEFAULT_SIZE_GIB,
    SCHEMA_VERSION,
    AllocConfig,
    AllocConfigData,
)


def test_load_defaults_when_missing(tmp_path: Path) -> None:
    cfg_path = tmp_path / "alloc_config.json"
    cfg = AllocConfig.load(config_path=cfg_path)
    assert cfg.path == cfg_path
    assert cfg.data.schema_version == SCHEMA_VERSION
    assert cfg.get_attribute("poll_interval_ms") == DEFAULT_POLL_INTERVAL_MS
    assert cfg.get_attribute("progress_interval_ms") == DEFAULT_PROGRESS_INTERVAL_MS
    assert cfg.get_attribute("default_size_gib") == DEFAULT_SIZE_GIB
    assert not cfg_path.exists()


def test_intervals_in_seconds() -> None:
    data = AllocConfigData()
    assert data.poll_interval_s == pytest.approx(0.05)
    assert data.progress_interval_s == pytest.approx(0.1)


def test_create_if_missing_writes_defaults(tmp_path: Path) -> None:
    cfg_path = tmp_path / "sub" / "alloc_config.json"
    AllocConfig.load(config_path=cfg_path, create_if_missing=True)
    assert cfg_path.exists()

    loaded = json.loads(cfg_path.read_text(encoding="utf-8"))
    assert loaded["schema_version"] == SCHEMA_VERSION
    assert loaded["poll_interval_ms"] == DEFAULT_POLL_INTERVAL_MS


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    cfg_path = tmp_path / "alloc_config.json"
    cfg = AllocConfig.load(config_path=cfg_path)
    cfg.set_attribute("default_size_gib", 8)
    cfg.remember_directory(tmp_path / "images" / "disk.raw")
    cfg.save()

    cfg2 = AllocConfig.load(config_path=cfg_path)
    assert cfg2.get_attribute("default_size_gib") == 8
    assert Path(cfg2.get_attribute("last_directory")).name == "images"


def test_set_attribute_validates_bounds(tmp_path: Path) -> None:
    cfg = AllocConfig.load(config_path=tmp_path / "alloc_config.json")

    cfg.set_attribute("poll_interval_ms", "25")
    assert cfg.get_attribute("poll_interval_ms") == 25

    with pytest.raises(ValueError):
        cfg.set_attribute("poll_interval_ms", 0)
    with pytest.raises(ValueError):
        cfg.set_attribute("default_size_gib", "lots")
    with pytest.raises(AttributeError):
        cfg.set_attribute("nonexistent", 1)
    with pytest.raises(AttributeError):
        cfg.get_attribute("schema_version")


def test_tolerant_loader_replaces_bad_values(tmp_path: Path) -> None:
    cfg_path = tmp_path / "alloc_config.json"
    cfg_path.write_text(
        json.dumps(
            {
                "schema_version": SCHEMA_VERSION,
                "poll_interval_ms": -3,
                "progress_interval_ms": "250",
                "default_size_gib": True,
                "unknown_key": 1,
            }
        ),
        encoding="utf-8",
    )

    cfg = AllocConfig.load(config_path=cfg_path)
    assert cfg.data.poll_interval_ms == DEFAULT_POLL_INTERVAL_MS
    assert cfg.data.progress_interval_ms == 250
    assert cfg.data.default_size_gib == DEFAULT_SIZE_GIB


def test_version_mismatch_resets(tmp_path: Path) -> None:
    cfg_path = tmp_path / "alloc_config.json"
    cfg_path.write_text(json.dumps({"schema_version": 999, "default_size_gib": 8}), encoding="utf-8")

    cfg = AllocConfig.load(config_path=cfg_path)
    assert cfg.data.default_size_gib == DEFAULT_SIZE_GIB

    kept = AllocConfig.load(config_path=cfg_path, reset_on_version_mismatch=False)
    assert kept.data.default_size_gib == 8
    assert kept.data.schema_version == SCHEMA_VERSION


def test_corrupt_file_uses_defaults(tmp_path: Path) -> None:
    cfg_path = tmp_path / "alloc_config.json"
    cfg_path.write_text("{not json", encoding="utf-8")
    cfg = AllocConfig.load(config_path=cfg_path)
    assert cfg.data.default_size_gib == DEFAULT_SIZE_GIB

    cfg_path.write_text("[1, 2]", encoding="utf-8")
    cfg = AllocConfig.load(config_path=cfg_path)
    assert cfg.data.poll_interval_ms == DEFAULT_POLL_INTERVAL_MS


def test_progress_interval_cannot_go_below_100ms(tmp_path: Path) -> None:
    cfg_path = tmp_path / "alloc_config.json"
    cfg_path.write_text(
        json.dumps({"schema_version": SCHEMA_VERSION, "progress_interval_ms": 10}),
        encoding="utf-8",
    )
    cfg = AllocConfig.load(config_path=cfg_path)
    assert cfg.data.progress_interval_ms == DEFAULT_PROGRESS_INTERVAL_MS

    with pytest.raises(ValueError):
        cfg.set_attribute("progress_interval_ms", 99)
    cfg.set_attribute("progress_interval_ms", 100)
    assert cfg.data.progress_interval_s == pytest.approx(0.1)
