"""Assemble prepared worker deployments for publication.

``WorkerDeployer`` never talks to the platform. It builds the metadata
descriptor and bundles it with worker code, assets and auxiliary modules
so a publisher can commit the result and submit it later.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from . import log
from .migrations import extract_actor_classes, merge_migrations
from .models import (
    MAIN_MODULE,
    AssetManifest,
    AssetsConfig,
    MigrationDirective,
    PreparedDeployment,
    WorkerAssets,
    WorkerBinding,
    WorkerMetadata,
)

MigrationInput = Sequence[MigrationDirective | Mapping[str, object]]
BindingInput = Sequence[WorkerBinding | Mapping[str, object]]


def _base_metadata(
    compatibility_date: str,
    bindings: BindingInput | None,
    compatibility_flags: Sequence[str] | None,
) -> dict[str, object]:
    return {
        "main_module": MAIN_MODULE,
        "compatibility_date": compatibility_date,
        "compatibility_flags": list(compatibility_flags) if compatibility_flags else None,
        "bindings": list(bindings or []),
    }


def _attach_migrations(metadata: dict[str, object], migrations: MigrationInput | None) -> None:
    merged = merge_migrations(migrations)
    if merged is None:
        return
    metadata["migrations"] = merged
    handlers = extract_actor_classes(merged)
    if handlers:
        metadata["exported_handlers"] = handlers


def _attach_vars(metadata: dict[str, object], vars: Mapping[str, str] | None) -> None:
    if vars:
        metadata["vars"] = dict(vars)


class WorkerDeployer:
    """Prepare worker deployment packages.

    Credentials are accepted so publishers can construct the deployer the
    same way they construct the platform client; only their presence is
    recorded.
    """

    def __init__(self, account_id: str | None = None, api_token: str | None = None) -> None:
        log.debug(
            "Initializing WorkerDeployer",
            account_id_present=bool(account_id),
            api_token_present=bool(api_token),
        )

    def prepare_with_assets(
        self,
        script_name: str,
        worker_content: str,
        compatibility_date: str,
        assets_manifest: AssetManifest,
        file_contents: Mapping[str, bytes],
        bindings: BindingInput | None = None,
        vars: Mapping[str, str] | None = None,
        assets_config: AssetsConfig | Mapping[str, object] | None = None,
        additional_modules: Mapping[str, str] | None = None,
        compatibility_flags: Sequence[str] | None = None,
        migrations: MigrationInput | None = None,
    ) -> PreparedDeployment:
        """Prepare a deployment that serves static assets.

        Args:
            script_name: Worker script name.
            worker_content: Bundled entry module source.
            compatibility_date: Platform compatibility date.
            assets_manifest: Served path to asset hash/size.
            file_contents: Served path to raw asset bytes.
            bindings: Binding descriptors.
            vars: Plain-text environment variables.
            assets_config: Asset serving policy (``not_found_handling``).
            additional_modules: Module path to source for auxiliary modules.
            compatibility_flags: Feature-flag tokens.
            migrations: Migration history, oldest first.

        Returns:
            The prepared deployment with an ``assets`` metadata block.
        """
        log.info(
            "Preparing deployment package with assets",
            script_name=script_name,
            asset_count=len(assets_manifest),
            additional_module_count=len(additional_modules or {}),
        )
        metadata = _base_metadata(compatibility_date, bindings, compatibility_flags)
        if isinstance(assets_config, AssetsConfig):
            config = assets_config
        else:
            config = AssetsConfig.model_validate(dict(assets_config or {}))
        metadata["assets"] = WorkerAssets(manifest=assets_manifest, config=config)
        _attach_migrations(metadata, migrations)
        _attach_vars(metadata, vars)

        prepared = PreparedDeployment(
            script_name=script_name,
            metadata=WorkerMetadata.model_validate(metadata),
            worker_content=worker_content,
            assets_manifest=assets_manifest,
            asset_contents=dict(file_contents),
            additional_modules=dict(additional_modules) if additional_modules else None,
        )
        log.info(
            "Deployment package prepared",
            script_name=script_name,
            asset_count=len(assets_manifest),
            additional_module_count=len(additional_modules or {}),
        )
        return prepared

    def prepare_without_assets(
        self,
        script_name: str,
        worker_content: str,
        compatibility_date: str,
        bindings: BindingInput | None = None,
        vars: Mapping[str, str] | None = None,
        additional_modules: Mapping[str, str] | None = None,
        compatibility_flags: Sequence[str] | None = None,
        migrations: MigrationInput | None = None,
    ) -> PreparedDeployment:
        """Prepare a deployment with no static assets.

        Takes the same arguments as ``prepare_with_assets`` minus the asset
        manifest, contents and serving policy. ``metadata.assets`` is never
        set.
        """
        log.info(
            "Preparing deployment package without assets",
            script_name=script_name,
            additional_module_count=len(additional_modules or {}),
        )
        metadata = _base_metadata(compatibility_date, bindings, compatibility_flags)
        _attach_migrations(metadata, migrations)
        _attach_vars(metadata, vars)

        prepared = PreparedDeployment(
            script_name=script_name,
            metadata=WorkerMetadata.model_validate(metadata),
            worker_content=worker_content,
            additional_modules=dict(additional_modules) if additional_modules else None,
        )
        log.info(
            "Deployment package prepared (no assets)",
            script_name=script_name,
            additional_module_count=len(additional_modules or {}),
        )
        return prepared
