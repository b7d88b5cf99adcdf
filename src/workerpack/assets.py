"""Collect static assets into a manifest and content map."""

from __future__ import annotations

import base64
import hashlib
from pathlib import Path

from . import log
from .errors import IoFailedError
from .models import AssetManifest, AssetManifestEntry

ASSET_HASH_LENGTH = 32


def asset_hash(content: bytes, path: str) -> str:
    """Return the manifest hash for an asset.

    The digest covers the base64 encoded content plus the file extension, so
    identical bytes served under different types hash differently.

    Example:
        >>> len(asset_hash(b"hello", "/index.html"))
        32
        >>> asset_hash(b"hello", "/a.html") == asset_hash(b"hello", "/a.txt")
        False
    """
    extension = Path(path).suffix.lstrip(".")
    encoded = base64.b64encode(content).decode("ascii") + extension
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:ASSET_HASH_LENGTH]


def _is_hidden(relative: Path) -> bool:
    return any(part.startswith(".") for part in relative.parts)


def collect_assets(directory: Path) -> tuple[AssetManifest, dict[str, bytes]]:
    """Walk an asset directory and build its manifest.

    Args:
        directory: Root of the static asset tree.

    Returns:
        ``(manifest, contents)`` keyed by ``/``-rooted POSIX served path.
        Hidden files and directories are skipped.

    Raises:
        IoFailedError: The directory is missing or a file cannot be read.
    """
    if not directory.is_dir():
        raise IoFailedError(
            f"asset directory not found: {directory}",
            recovery_hint="Build the static assets or fix assets.directory.",
        )
    manifest: AssetManifest = {}
    contents: dict[str, bytes] = {}
    for path in sorted(directory.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(directory)
        if _is_hidden(relative):
            continue
        served_path = "/" + relative.as_posix()
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise IoFailedError(f"failed to read asset {path}: {exc}") from exc
        manifest[served_path] = AssetManifestEntry(
            hash=asset_hash(content, served_path), size=len(content)
        )
        contents[served_path] = content
    log.debug("Collected assets", directory=directory, asset_count=len(manifest))
    return manifest, contents
