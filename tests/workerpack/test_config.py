from __future__ import annotations

import json
from pathlib import Path

import pytest

from workerpack import config
from workerpack.errors import ConfigInvalidError, IoFailedError


def _write_config(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_worker_config_parses_full_payload(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "wrangler.json",
        {
            "name": " site ",
            "main": "dist/index.js",
            "compatibility_date": "2025-01-01",
            "compatibility_flags": ["nodejs_compat"],
            "vars": {"MODE": "prod", "RETRIES": 3, "DEBUG": False},
            "assets": {"directory": "public", "binding": "ASSETS", "not_found_handling": "404-page"},
            "migrations": [
                {"tag": "v1", "new_classes": ["Room"]},
                {"tag": "v2", "renamed_classes": [{"from": "Room", "to": "Lobby"}]},
            ],
            "durable_objects": {"bindings": [{"name": "LOBBY", "class_name": "Lobby"}]},
            "kv_namespaces": [{"binding": "CACHE", "id": "kv-1"}],
            "r2_buckets": [{"binding": "FILES", "bucket_name": "files"}],
            "d1_databases": [{"binding": "DB", "database_id": "db-1", "database_name": "main"}],
        },
    )

    loaded = config.load_worker_config(path)

    assert loaded.name == "site"
    assert loaded.main == "dist/index.js"
    assert loaded.vars == {"MODE": "prod", "RETRIES": "3", "DEBUG": "false"}
    assert loaded.assets is not None
    assert loaded.assets.not_found_handling == "404-page"
    assert [directive.tag for directive in loaded.migrations] == ["v1", "v2"]
    assert [binding.to_wire() for binding in config.bindings_from_config(loaded)] == [
        {"type": "durable_object_namespace", "name": "LOBBY", "class_name": "Lobby"},
        {"type": "kv_namespace", "name": "CACHE", "namespace_id": "kv-1"},
        {"type": "r2_bucket", "name": "FILES", "bucket_name": "files"},
        {"type": "d1", "name": "DB", "id": "db-1"},
        {"type": "assets", "name": "ASSETS"},
    ]


def test_load_worker_config_defaults(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "wrangler.json",
        {"name": "api", "compatibility_date": "2025-01-01", "migrations": None},
    )

    loaded = config.load_worker_config(path)

    assert loaded.main == "index.js"
    assert loaded.migrations == []
    assert loaded.assets is None
    assert config.bindings_from_config(loaded) == []


def test_load_worker_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(IoFailedError) as excinfo:
        config.load_worker_config(tmp_path / "missing.json")

    assert excinfo.value.code == "io_failed"
    assert excinfo.value.recovery_hint


def test_load_worker_config_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "wrangler.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigInvalidError) as excinfo:
        config.load_worker_config(path)

    assert excinfo.value.code == "validation_failed"
    assert "not valid JSON" in str(excinfo.value)


def test_load_worker_config_rejects_non_object(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "wrangler.json", ["not", "an", "object"])

    with pytest.raises(ConfigInvalidError):
        config.load_worker_config(path)


def test_load_worker_config_reports_invalid_fields(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "wrangler.json",
        {"name": "", "compatibility_date": "2025-01-01", "migrations": [{"new_classes": ["A"]}]},
    )

    with pytest.raises(ConfigInvalidError) as excinfo:
        config.load_worker_config(path)

    message = str(excinfo.value)
    assert "name" in message
    assert "migrations.0.tag" in message


def test_write_json_round_trips(tmp_path: Path) -> None:
    path = tmp_path / "out.json"

    config.write_json(path, {"ok": True})

    assert path.read_text(encoding="utf-8").endswith("\n")
    assert config.load_json(path) == {"ok": True}
