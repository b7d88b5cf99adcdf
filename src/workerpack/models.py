"""Pydantic models for worker deployment metadata and migrations."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAIN_MODULE = "index.js"

NOT_FOUND_HANDLING_VALUES = ("single-page-application", "404-page", "none")
NotFoundHandling = Literal["single-page-application", "404-page", "none"]


def _clean_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _normalize_names(value: object) -> object:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        return value
    names: list[str] = []
    seen: set[str] = set()
    for entry in value:
        if not isinstance(entry, str):
            names.append(entry)
            continue
        name = entry.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return tuple(names)


def _none_to_empty(value: object) -> object:
    if value is None:
        return ()
    return value


def _freeze_mapping(value: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if value is None:
        return None
    return MappingProxyType(dict(value))


class RenamedClass(BaseModel):
    """Rename of an actor class from ``from`` to ``to``.

    Attributes:
        from_name: Previous class name (``from`` on the wire).
        to_name: New class name (``to`` on the wire).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_name: str = Field(alias="from")
    to_name: str = Field(alias="to")

    def to_wire(self) -> dict[str, str]:
        return {"from": self.from_name, "to": self.to_name}


class TransferredClass(BaseModel):
    """Actor class moved into this script from another script."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_name: str = Field(alias="from")
    from_script: str
    to_name: str = Field(alias="to")

    def to_wire(self) -> dict[str, str]:
        return {"from": self.from_name, "from_script": self.from_script, "to": self.to_name}


class _MigrationLists(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    tag: str | None = None
    new_classes: tuple[str, ...] = ()
    new_sqlite_classes: tuple[str, ...] = ()
    renamed_classes: tuple[RenamedClass, ...] = ()
    deleted_classes: tuple[str, ...] = ()
    transferred_classes: tuple[TransferredClass, ...] = ()

    @field_validator("new_classes", "new_sqlite_classes", "deleted_classes", mode="before")
    @classmethod
    def _normalize_class_names(cls, value: object) -> object:
        return _normalize_names(value)

    @field_validator("renamed_classes", "transferred_classes", mode="before")
    @classmethod
    def _normalize_pairs(cls, value: object) -> object:
        return _none_to_empty(value)

    def to_wire(self) -> dict[str, Any]:
        """Return the deploy API payload, omitting empty lists."""
        payload: dict[str, Any] = {}
        if self.tag:
            payload["tag"] = self.tag
        if self.new_classes:
            payload["new_classes"] = list(self.new_classes)
        if self.new_sqlite_classes:
            payload["new_sqlite_classes"] = list(self.new_sqlite_classes)
        if self.renamed_classes:
            payload["renamed_classes"] = [entry.to_wire() for entry in self.renamed_classes]
        if self.deleted_classes:
            payload["deleted_classes"] = list(self.deleted_classes)
        if self.transferred_classes:
            payload["transferred_classes"] = [
                entry.to_wire() for entry in self.transferred_classes
            ]
        return payload


class MigrationDirective(_MigrationLists):
    """One release worth of actor-class lifecycle changes.

    Attributes:
        tag: Version tag of the release that introduced the directive.
        new_classes: Classes introduced with the default storage backend.
        new_sqlite_classes: Classes introduced with the SQLite storage backend.
        renamed_classes: Old-name to new-name pairs.
        deleted_classes: Classes removed in this release.
        transferred_classes: Classes moved in from another script.
    """

    tag: str

    @field_validator("tag", mode="before")
    @classmethod
    def _normalize_tag(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class CumulativeMigration(_MigrationLists):
    """Single folded migration submitted with a deploy.

    A class name appears in at most one of the declared, renamed-to and
    deleted groups.
    """


class AssetManifestEntry(BaseModel):
    """Content hash and size of one served asset."""

    model_config = ConfigDict(frozen=True)

    hash: str
    size: int = Field(ge=0)


AssetManifest = dict[str, AssetManifestEntry]


class WorkerBinding(BaseModel):
    """Binding descriptor attached to the worker at deploy time.

    Binding-specific keys (``class_name``, ``namespace_id``, ...) are kept
    as extra fields.

    Example:
        >>> binding = WorkerBinding(type="kv_namespace", name="CACHE", namespace_id="abc")
        >>> binding.to_wire()
        {'type': 'kv_namespace', 'name': 'CACHE', 'namespace_id': 'abc'}
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str
    name: str

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AssetsConfig(BaseModel):
    """Serving policy for static assets."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    not_found_handling: NotFoundHandling | None = None

    @field_validator("not_found_handling", mode="before")
    @classmethod
    def _normalize_not_found_handling(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, str):
            normalized = value.strip().lower()
            return normalized or None
        return value

    def to_wire(self) -> dict[str, str]:
        if self.not_found_handling is None:
            return {}
        return {"not_found_handling": self.not_found_handling}


class WorkerAssets(BaseModel):
    """Asset block of the worker metadata."""

    model_config = ConfigDict(frozen=True)

    manifest: AssetManifest
    config: AssetsConfig = Field(default_factory=AssetsConfig)

    def to_wire(self) -> dict[str, Any]:
        return {
            "manifest": {path: entry.model_dump() for path, entry in self.manifest.items()},
            "config": self.config.to_wire(),
        }


class WorkerMetadata(BaseModel):
    """Metadata descriptor submitted alongside the worker script.

    Optional collections normalize empty values to ``None`` so they never
    reach the wire as empty objects or arrays.

    Attributes:
        main_module: Entry module name, always ``index.js``.
        compatibility_date: Platform compatibility date.
        compatibility_flags: Ordered set of feature-flag tokens.
        bindings: Binding descriptors (always present, possibly empty).
        assets: Asset manifest and serving policy.
        migrations: Cumulative migration descriptor.
        exported_handlers: Actor classes exported as addressable handlers.
        vars: Plain-text environment variables.
    """

    model_config = ConfigDict(frozen=True)

    main_module: str = MAIN_MODULE
    compatibility_date: str
    compatibility_flags: tuple[str, ...] | None = None
    bindings: tuple[WorkerBinding, ...] = ()
    assets: WorkerAssets | None = None
    migrations: CumulativeMigration | None = None
    exported_handlers: tuple[str, ...] | None = None
    vars: Mapping[str, str] | None = None

    @field_validator("compatibility_flags", "exported_handlers", mode="before")
    @classmethod
    def _normalize_ordered_sets(cls, value: object) -> object:
        normalized = _normalize_names(value)
        if normalized == ():
            return None
        return normalized

    @field_validator("bindings", mode="before")
    @classmethod
    def _normalize_bindings(cls, value: object) -> object:
        return _none_to_empty(value)

    @field_validator("vars", mode="before")
    @classmethod
    def _normalize_vars(cls, value: object) -> object:
        if not value:
            return None
        return value

    @field_validator("vars")
    @classmethod
    def _freeze_vars(cls, value: Mapping[str, str] | None) -> Mapping[str, str] | None:
        return _freeze_mapping(value)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON payload the deploy API expects."""
        payload: dict[str, Any] = {
            "main_module": self.main_module,
            "compatibility_date": self.compatibility_date,
        }
        if self.compatibility_flags:
            payload["compatibility_flags"] = list(self.compatibility_flags)
        payload["bindings"] = [binding.to_wire() for binding in self.bindings]
        if self.assets is not None:
            payload["assets"] = self.assets.to_wire()
        if self.migrations is not None:
            payload["migrations"] = self.migrations.to_wire()
        if self.exported_handlers:
            payload["exported_handlers"] = list(self.exported_handlers)
        if self.vars:
            payload["vars"] = dict(self.vars)
        return payload


class PreparedDeployment(BaseModel):
    """Complete deployment artifact handed to the publisher.

    Mapping fields are exposed as read-only views.
    """

    model_config = ConfigDict(frozen=True)

    script_name: str = Field(min_length=1)
    metadata: WorkerMetadata
    worker_content: str
    assets_manifest: Mapping[str, AssetManifestEntry] | None = None
    asset_contents: Mapping[str, bytes] | None = None
    additional_modules: Mapping[str, str] | None = None

    @field_validator("assets_manifest", "asset_contents", "additional_modules")
    @classmethod
    def _freeze_mappings(cls, value: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        return _freeze_mapping(value)

    @field_validator("script_name", mode="before")
    @classmethod
    def _normalize_script_name(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value
