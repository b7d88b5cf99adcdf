"""Prepare a worker deployment from a project config behind a typed boundary."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from .. import assets, config
from ..deployer import WorkerDeployer
from ..errors import IoFailedError, PackagingError
from ..models import AssetManifest, PreparedDeployment
from .result import ServiceResult, failure_from_error, service_success


class LoadWorkerConfig(Protocol):
    """Typed callable for worker config loading."""

    def __call__(self, path: Path) -> config.WorkerConfig:
        """Load and validate the config at ``path``."""
        ...


class CollectAssets(Protocol):
    """Typed callable for asset collection."""

    def __call__(self, directory: Path) -> tuple[AssetManifest, dict[str, bytes]]:
        """Return the manifest and contents for ``directory``."""
        ...


class PrepareDeploymentRequest(BaseModel):
    """Input contract for deployment preparation.

    Attributes:
        config_path: Path to the worker config file.
        worker_path: Bundled entry module. Defaults to ``main`` from the
            config, relative to the config file.
        module_paths: Auxiliary module files, stored relative to the entry
            module's directory.
        assets_dir: Asset directory override; defaults to
            ``assets.directory`` from the config.
        include_assets: Package assets when the config declares them.
    """

    config_path: Path
    worker_path: Path | None = None
    module_paths: list[Path] = Field(default_factory=list)
    assets_dir: Path | None = None
    include_assets: bool = True

    model_config = ConfigDict(arbitrary_types_allowed=True)


@dataclass(frozen=True)
class PrepareDeploymentOutcome:
    """Outcome payload for deployment preparation.

    Args:
        prepared: The assembled deployment.
        worker_config: Config the deployment was built from.
    """

    prepared: PreparedDeployment
    worker_config: config.WorkerConfig


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise IoFailedError(
            f"failed to read {path}: {exc}",
            recovery_hint="Build the worker bundle before preparing the deployment.",
        ) from exc


def _module_key(path: Path, root: Path) -> str:
    resolved = path.resolve()
    if resolved.is_relative_to(root):
        return resolved.relative_to(root).as_posix()
    return path.name


class PrepareDeploymentService:
    """Prepare deployments and map expected failures to stable codes."""

    def __init__(
        self,
        *,
        load_config: LoadWorkerConfig = config.load_worker_config,
        collect_assets: CollectAssets = assets.collect_assets,
        deployer: WorkerDeployer | None = None,
    ) -> None:
        self._load_config = load_config
        self._collect_assets = collect_assets
        self._deployer = deployer or WorkerDeployer()

    def run(self, request: PrepareDeploymentRequest) -> ServiceResult[PrepareDeploymentOutcome]:
        """Prepare a deployment from a typed request.

        Args:
            request: Typed preparation request.

        Returns:
            ``ServiceSuccess`` with the prepared deployment or
            ``ServiceFailure`` with a deterministic failure code.
        """
        try:
            prepared, worker_config = self._prepare(request)
        except PackagingError as exc:
            return failure_from_error(exc)
        return service_success(
            PrepareDeploymentOutcome(prepared=prepared, worker_config=worker_config)
        )

    def _prepare(
        self, request: PrepareDeploymentRequest
    ) -> tuple[PreparedDeployment, config.WorkerConfig]:
        worker_config = self._load_config(request.config_path)
        base_dir = request.config_path.parent
        worker_path = request.worker_path or base_dir / worker_config.main
        worker_content = _read_text(worker_path)

        module_root = worker_path.parent.resolve()
        additional_modules = {
            _module_key(path, module_root): _read_text(path) for path in request.module_paths
        }
        bindings = config.bindings_from_config(worker_config)

        assets_dir = request.assets_dir
        if assets_dir is None and worker_config.assets and worker_config.assets.directory:
            assets_dir = base_dir / worker_config.assets.directory

        if request.include_assets and assets_dir is not None:
            manifest, contents = self._collect_assets(assets_dir)
            assets_section = worker_config.assets
            prepared = self._deployer.prepare_with_assets(
                worker_config.name,
                worker_content,
                worker_config.compatibility_date,
                manifest,
                contents,
                bindings=bindings,
                vars=worker_config.vars,
                assets_config={
                    "not_found_handling": (
                        assets_section.not_found_handling if assets_section else None
                    )
                },
                additional_modules=additional_modules,
                compatibility_flags=worker_config.compatibility_flags,
                migrations=worker_config.migrations,
            )
        else:
            prepared = self._deployer.prepare_without_assets(
                worker_config.name,
                worker_content,
                worker_config.compatibility_date,
                bindings=bindings,
                vars=worker_config.vars,
                additional_modules=additional_modules,
                compatibility_flags=worker_config.compatibility_flags,
                migrations=worker_config.migrations,
            )
        return prepared, worker_config
