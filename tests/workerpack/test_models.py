import pytest
from pydantic import ValidationError

from workerpack.models import (
    AssetManifestEntry,
    AssetsConfig,
    CumulativeMigration,
    MigrationDirective,
    PreparedDeployment,
    WorkerAssets,
    WorkerBinding,
    WorkerMetadata,
)


def test_migration_directive_reads_wire_aliases() -> None:
    directive = MigrationDirective.model_validate(
        {
            "tag": " v2 ",
            "new_classes": ["Room", " Room ", ""],
            "renamed_classes": [{"from": "Old", "to": "New"}],
            "deleted_classes": None,
        }
    )

    assert directive.tag == "v2"
    assert directive.new_classes == ("Room",)
    assert directive.renamed_classes[0].from_name == "Old"
    assert directive.renamed_classes[0].to_name == "New"
    assert directive.deleted_classes == ()


def test_migration_directive_requires_tag() -> None:
    with pytest.raises(ValidationError):
        MigrationDirective.model_validate({"new_classes": ["Room"]})


def test_cumulative_migration_wire_omits_empty_lists() -> None:
    migration = CumulativeMigration(tag="v1", deleted_classes=["Legacy"])

    assert migration.to_wire() == {"tag": "v1", "deleted_classes": ["Legacy"]}


def test_assets_config_normalizes_policy() -> None:
    assert AssetsConfig(not_found_handling=" Single-Page-Application ").not_found_handling == (
        "single-page-application"
    )
    assert AssetsConfig(not_found_handling="").not_found_handling is None
    with pytest.raises(ValidationError):
        AssetsConfig(not_found_handling="redirect")


def test_worker_metadata_minimal_wire_payload() -> None:
    metadata = WorkerMetadata(compatibility_date="2025-01-01")

    assert metadata.to_wire() == {
        "main_module": "index.js",
        "compatibility_date": "2025-01-01",
        "bindings": [],
    }


def test_worker_metadata_drops_empty_optional_collections() -> None:
    metadata = WorkerMetadata(
        compatibility_date="2025-01-01",
        compatibility_flags=[],
        exported_handlers=[],
        vars={},
    )

    assert metadata.compatibility_flags is None
    assert metadata.exported_handlers is None
    assert metadata.vars is None
    assert set(metadata.to_wire()) == {"main_module", "compatibility_date", "bindings"}


def test_worker_metadata_flags_are_an_ordered_set() -> None:
    metadata = WorkerMetadata(
        compatibility_date="2025-01-01",
        compatibility_flags=["nodejs_compat", "streams", "nodejs_compat"],
    )

    assert metadata.compatibility_flags == ("nodejs_compat", "streams")


def test_worker_metadata_full_wire_payload() -> None:
    manifest = {"/index.html": AssetManifestEntry(hash="a" * 32, size=12)}
    metadata = WorkerMetadata(
        compatibility_date="2025-01-01",
        compatibility_flags=["nodejs_compat"],
        bindings=[WorkerBinding(type="durable_object_namespace", name="ROOM", class_name="Room")],
        assets=WorkerAssets(manifest=manifest, config=AssetsConfig(not_found_handling="404-page")),
        migrations=CumulativeMigration(tag="v1", new_classes=["Room"]),
        exported_handlers=["Room"],
        vars={"MODE": "prod"},
    )

    assert metadata.to_wire() == {
        "main_module": "index.js",
        "compatibility_date": "2025-01-01",
        "compatibility_flags": ["nodejs_compat"],
        "bindings": [
            {"type": "durable_object_namespace", "name": "ROOM", "class_name": "Room"}
        ],
        "assets": {
            "manifest": {"/index.html": {"hash": "a" * 32, "size": 12}},
            "config": {"not_found_handling": "404-page"},
        },
        "migrations": {"tag": "v1", "new_classes": ["Room"]},
        "exported_handlers": ["Room"],
        "vars": {"MODE": "prod"},
    }


def test_assets_block_keeps_config_object_without_policy() -> None:
    assets = WorkerAssets(manifest={})

    assert assets.to_wire() == {"manifest": {}, "config": {}}


def test_prepared_deployment_rejects_blank_script_name() -> None:
    metadata = WorkerMetadata(compatibility_date="2025-01-01")

    with pytest.raises(ValidationError):
        PreparedDeployment(script_name="  ", metadata=metadata, worker_content="")


def test_prepared_deployment_is_frozen() -> None:
    prepared = PreparedDeployment(
        script_name="api",
        metadata=WorkerMetadata(compatibility_date="2025-01-01"),
        worker_content="export default {}",
    )

    with pytest.raises(ValidationError):
        prepared.script_name = "other"
