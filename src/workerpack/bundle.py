"""Write prepared deployments to disk for the publisher."""

from __future__ import annotations

from pathlib import Path

from . import log
from .config import write_json
from .errors import ConfigInvalidError, IoFailedError
from .models import PreparedDeployment

METADATA_FILENAME = "metadata.json"
MANIFEST_FILENAME = "manifest.json"
ASSETS_DIRNAME = "assets"


def _safe_target(root: Path, relative: str) -> Path:
    target = (root / relative.lstrip("/")).resolve()
    if not target.is_relative_to(root.resolve()):
        raise ConfigInvalidError(
            f"path escapes the output directory: {relative}",
            recovery_hint="Use module and asset paths relative to the worker root.",
        )
    return target


def _module_targets(prepared: PreparedDeployment, out_dir: Path) -> dict[Path, str]:
    root = out_dir.resolve()
    reserved = {
        root / METADATA_FILENAME,
        root / MANIFEST_FILENAME,
        _safe_target(out_dir, prepared.metadata.main_module),
    }
    assets_root = root / ASSETS_DIRNAME
    targets: dict[Path, str] = {}
    for module_path, source in (prepared.additional_modules or {}).items():
        target = _safe_target(out_dir, module_path)
        if target in reserved or target.is_relative_to(assets_root) or target in targets:
            raise ConfigInvalidError(
                f"module path collides with another bundle file: {module_path}",
                recovery_hint=(
                    f"Rename the module; {prepared.metadata.main_module}, "
                    f"{METADATA_FILENAME}, {MANIFEST_FILENAME} and {ASSETS_DIRNAME}/ "
                    "are reserved."
                ),
            )
        targets[target] = source
    return targets


def _write_bytes(path: Path, content: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    except OSError as exc:
        raise IoFailedError(f"failed to write {path}: {exc}") from exc


def _write_json(path: Path, payload: dict) -> None:
    try:
        write_json(path, payload)
    except OSError as exc:
        raise IoFailedError(f"failed to write {path}: {exc}") from exc


def write_prepared_deployment(prepared: PreparedDeployment, out_dir: Path) -> Path:
    """Write a prepared deployment as a directory tree.

    Layout::

        metadata.json      deploy API metadata payload
        index.js           worker entry module
        <module paths>     auxiliary modules
        manifest.json      asset manifest (asset deployments only)
        assets/<paths>     asset files (asset deployments only)

    Every target path is checked before anything is written, so a rejected
    deployment leaves no partial bundle behind.

    Args:
        prepared: Deployment to write.
        out_dir: Destination directory, created when missing.

    Returns:
        The output directory.

    Raises:
        ConfigInvalidError: A path escapes ``out_dir`` or a module collides
            with a reserved bundle file.
        IoFailedError: The bundle could not be written.
    """
    metadata = prepared.metadata
    entry_target = _safe_target(out_dir, metadata.main_module)
    module_targets = _module_targets(prepared, out_dir)
    assets_root = out_dir / ASSETS_DIRNAME
    asset_targets = {
        _safe_target(assets_root, served_path): content
        for served_path, content in (prepared.asset_contents or {}).items()
    }

    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IoFailedError(f"failed to create {out_dir}: {exc}") from exc

    _write_json(out_dir / METADATA_FILENAME, metadata.to_wire())
    _write_bytes(entry_target, prepared.worker_content.encode("utf-8"))
    for target, source in module_targets.items():
        _write_bytes(target, source.encode("utf-8"))

    if prepared.assets_manifest is not None:
        _write_json(
            out_dir / MANIFEST_FILENAME,
            {path: entry.model_dump() for path, entry in prepared.assets_manifest.items()},
        )
        for target, content in asset_targets.items():
            _write_bytes(target, content)

    log.debug(
        "Wrote prepared deployment",
        script_name=prepared.script_name,
        out_dir=out_dir,
        module_count=len(module_targets),
        asset_count=len(asset_targets),
    )
    return out_dir
