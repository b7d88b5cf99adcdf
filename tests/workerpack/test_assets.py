from __future__ import annotations

from pathlib import Path

import pytest

from workerpack.assets import ASSET_HASH_LENGTH, asset_hash, collect_assets
from workerpack.errors import IoFailedError


def test_collect_assets_builds_rooted_manifest(tmp_path: Path) -> None:
    (tmp_path / "css").mkdir()
    (tmp_path / "index.html").write_bytes(b"<h1>hi</h1>")
    (tmp_path / "css" / "site.css").write_bytes(b"body{}")
    (tmp_path / ".assetsignore").write_text("*.map\n", encoding="utf-8")
    (tmp_path / ".cache").mkdir()
    (tmp_path / ".cache" / "blob").write_bytes(b"x")

    manifest, contents = collect_assets(tmp_path)

    assert list(manifest) == ["/css/site.css", "/index.html"]
    assert contents == {"/css/site.css": b"body{}", "/index.html": b"<h1>hi</h1>"}
    assert manifest["/index.html"].size == len(b"<h1>hi</h1>")
    assert len(manifest["/index.html"].hash) == ASSET_HASH_LENGTH
    assert manifest["/index.html"].hash == asset_hash(b"<h1>hi</h1>", "/index.html")


def test_collect_assets_empty_directory(tmp_path: Path) -> None:
    assert collect_assets(tmp_path) == ({}, {})


def test_collect_assets_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(IoFailedError) as excinfo:
        collect_assets(tmp_path / "public")

    assert excinfo.value.code == "io_failed"


def test_asset_hash_depends_on_content() -> None:
    assert asset_hash(b"a", "/x.js") != asset_hash(b"b", "/x.js")
    assert asset_hash(b"a", "/x.js") == asset_hash(b"a", "/y.js")
