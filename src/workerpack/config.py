"""Worker project configuration.

This module reads a wrangler-style JSON config file, validates it with
Pydantic models, and derives the binding list the deploy API expects.

Example:
    >>> config = WorkerConfig.model_validate(
    ...     {
    ...         "name": "api",
    ...         "compatibility_date": "2025-01-01",
    ...         "kv_namespaces": [{"binding": "CACHE", "id": "ns-1"}],
    ...     }
    ... )
    >>> [binding.to_wire() for binding in bindings_from_config(config)]
    [{'type': 'kv_namespace', 'name': 'CACHE', 'namespace_id': 'ns-1'}]
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import log
from .errors import ConfigInvalidError, IoFailedError
from .models import MAIN_MODULE, MigrationDirective, NotFoundHandling, WorkerBinding


class AssetsSection(BaseModel):
    """Static asset settings.

    Attributes:
        directory: Directory holding the files to serve.
        binding: Optional binding name exposing the assets to the worker.
        not_found_handling: Serving policy for unmatched paths.
    """

    model_config = ConfigDict(extra="allow")

    directory: str | None = None
    binding: str | None = None
    not_found_handling: NotFoundHandling | None = None

    @field_validator("directory", "binding", mode="before")
    @classmethod
    def normalize_optional_strings(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("not_found_handling", mode="before")
    @classmethod
    def normalize_not_found_handling(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value


class DurableObjectBinding(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    class_name: str
    script_name: str | None = None


class DurableObjectsSection(BaseModel):
    model_config = ConfigDict(extra="allow")

    bindings: list[DurableObjectBinding] = Field(default_factory=list)


class KvNamespace(BaseModel):
    model_config = ConfigDict(extra="allow")

    binding: str
    id: str


class R2Bucket(BaseModel):
    model_config = ConfigDict(extra="allow")

    binding: str
    bucket_name: str


class D1Database(BaseModel):
    model_config = ConfigDict(extra="allow")

    binding: str
    database_id: str
    database_name: str | None = None


class WorkerConfig(BaseModel):
    """Worker project configuration.

    Attributes:
        name: Worker script name.
        main: Entry module path relative to the config file.
        compatibility_date: Platform compatibility date.
        compatibility_flags: Feature-flag tokens.
        vars: Plain-text environment variables; scalars are stringified.
        assets: Static asset settings.
        migrations: Actor-class migration history, oldest first.
        durable_objects: Actor namespace bindings.
        kv_namespaces: Key-value namespace bindings.
        r2_buckets: Object storage bindings.
        d1_databases: SQL database bindings.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    main: str = MAIN_MODULE
    compatibility_date: str = Field(min_length=1)
    compatibility_flags: list[str] = Field(default_factory=list)
    vars: dict[str, str] = Field(default_factory=dict)
    assets: AssetsSection | None = None
    migrations: list[MigrationDirective] = Field(default_factory=list)
    durable_objects: DurableObjectsSection = Field(default_factory=DurableObjectsSection)
    kv_namespaces: list[KvNamespace] = Field(default_factory=list)
    r2_buckets: list[R2Bucket] = Field(default_factory=list)
    d1_databases: list[D1Database] = Field(default_factory=list)

    @field_validator("name", "compatibility_date", mode="before")
    @classmethod
    def normalize_required_strings(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("compatibility_flags", "migrations", "kv_namespaces", mode="before")
    @classmethod
    def normalize_lists(cls, value: object) -> object:
        if value is None:
            return []
        return value

    @field_validator("vars", mode="before")
    @classmethod
    def normalize_vars(cls, value: object) -> object:
        if value is None:
            return {}
        if not isinstance(value, dict):
            return value
        normalized: dict[str, object] = {}
        for key, item in value.items():
            if isinstance(item, bool):
                normalized[key] = "true" if item else "false"
            elif isinstance(item, (int, float)):
                normalized[key] = str(item)
            else:
                normalized[key] = item
        return normalized


def bindings_from_config(config: WorkerConfig) -> list[WorkerBinding]:
    """Map config declarations to deploy API binding descriptors.

    Args:
        config: Validated worker configuration.

    Returns:
        Bindings in declaration order: actor namespaces, key-value
        namespaces, buckets, databases, then the assets binding.
    """
    bindings: list[WorkerBinding] = []
    for entry in config.durable_objects.bindings:
        bindings.append(
            WorkerBinding(
                type="durable_object_namespace",
                name=entry.name,
                class_name=entry.class_name,
                script_name=entry.script_name,
            )
        )
    for entry in config.kv_namespaces:
        bindings.append(
            WorkerBinding(type="kv_namespace", name=entry.binding, namespace_id=entry.id)
        )
    for entry in config.r2_buckets:
        bindings.append(
            WorkerBinding(type="r2_bucket", name=entry.binding, bucket_name=entry.bucket_name)
        )
    for entry in config.d1_databases:
        bindings.append(WorkerBinding(type="d1", name=entry.binding, id=entry.database_id))
    if config.assets is not None and config.assets.binding:
        bindings.append(WorkerBinding(type="assets", name=config.assets.binding))
    return bindings


def load_json(path: Path) -> dict | None:
    """Load a JSON file if it exists.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed payload, or ``None`` if the file does not exist.

    Example:
        >>> from pathlib import Path
        >>> load_json(Path("missing.json")) is None
        True
    """
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def write_json(path: Path, payload: dict | BaseModel) -> None:
    """Write a JSON payload to disk with a trailing newline."""
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True, exclude_none=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2)
        fh.write("\n")


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        problems.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(problems)


def load_worker_config(path: Path) -> WorkerConfig:
    """Load and validate a worker config file.

    Args:
        path: Path to the JSON config file.

    Returns:
        The validated ``WorkerConfig``.

    Raises:
        IoFailedError: The file is missing or unreadable.
        ConfigInvalidError: The file is not JSON or fails validation.
    """
    try:
        payload = load_json(path)
    except json.JSONDecodeError as exc:
        raise ConfigInvalidError(
            f"{path} is not valid JSON: {exc.msg} (line {exc.lineno})",
            recovery_hint="Fix the JSON syntax and retry.",
        ) from exc
    except OSError as exc:
        raise IoFailedError(f"failed to read {path}: {exc}") from exc
    if payload is None:
        raise IoFailedError(
            f"config file not found: {path}",
            recovery_hint="Pass the path to the worker's wrangler.json.",
        )
    if not isinstance(payload, dict):
        raise ConfigInvalidError(f"{path} must contain a JSON object")
    try:
        config = WorkerConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigInvalidError(
            f"invalid worker config {path}: {_format_validation_error(exc)}",
            recovery_hint="Review the reported fields in the config file.",
        ) from exc
    log.debug(
        "Loaded worker config",
        path=path,
        script_name=config.name,
        migration_count=len(config.migrations),
    )
    return config
