"""Command-line entrypoint for workerpack."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from . import __version__
from . import config as worker_config
from . import log as workerpack_log
from .bundle import write_prepared_deployment
from .errors import PackagingError
from .migrations import extract_actor_classes, merge_migrations
from .services import (
    PrepareDeploymentRequest,
    PrepareDeploymentService,
    ServiceFailure,
    failure_from_error,
)

OUTPUT_FORMATS = ("text", "json")

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Prepare worker deployment packages for publication.",
)


def _validate_log_level(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized not in workerpack_log.LOG_LEVEL_NAMES:
        choices = ", ".join(workerpack_log.LOG_LEVEL_NAMES)
        raise typer.BadParameter(f"expected one of: {choices}")
    return normalized


def _validate_format(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in OUTPUT_FORMATS:
        raise typer.BadParameter(f"expected one of: {', '.join(OUTPUT_FORMATS)}")
    return normalized


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _fail(failure: ServiceFailure) -> None:
    workerpack_log.error(failure.message)
    if failure.recovery_hint:
        workerpack_log.info(f"hint: {failure.recovery_hint}")
    raise typer.Exit(code=1)


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],
        typer.Option(
            "--log-level",
            callback=_validate_log_level,
            help="Log level: trace, debug, info, success, warning or error.",
        ),
    ] = None,
    no_color: Annotated[
        bool, typer.Option("--no-color", help="Disable colorized output.")
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=_version_callback, is_eager=True, help="Show the version."
        ),
    ] = False,
) -> None:
    """Prepare worker deployment packages for publication."""
    if log_level is not None:
        workerpack_log.set_level(log_level)
    if no_color:
        workerpack_log.set_no_color(True)


@app.command("prepare")
def prepare_cmd(
    config_path: Annotated[Path, typer.Argument(help="Path to the worker config file.")],
    out: Annotated[Path, typer.Option("--out", "-o", help="Output directory for the bundle.")],
    worker: Annotated[
        Optional[Path],
        typer.Option("--worker", help="Bundled entry module (defaults to config main)."),
    ] = None,
    module: Annotated[
        Optional[list[Path]],
        typer.Option("--module", "-m", help="Auxiliary module file; repeatable."),
    ] = None,
    assets_dir: Annotated[
        Optional[Path],
        typer.Option("--assets-dir", help="Static asset directory override."),
    ] = None,
    no_assets: Annotated[
        bool, typer.Option("--no-assets", help="Package without static assets.")
    ] = False,
) -> None:
    """Prepare a deployment package and write it to a directory."""
    request = PrepareDeploymentRequest(
        config_path=config_path,
        worker_path=worker,
        module_paths=list(module or []),
        assets_dir=assets_dir,
        include_assets=not no_assets,
    )
    result = PrepareDeploymentService().run(request)
    if isinstance(result, ServiceFailure):
        _fail(result)
        return
    prepared = result.outcome.prepared
    try:
        write_prepared_deployment(prepared, out)
    except PackagingError as exc:
        _fail(failure_from_error(exc))
        return
    workerpack_log.success(
        f"Prepared {prepared.script_name}",
        out_dir=out,
        exported_handlers=",".join(prepared.metadata.exported_handlers or ()) or "-",
    )


@app.command("migrations")
def migrations_cmd(
    config_path: Annotated[Path, typer.Argument(help="Path to the worker config file.")],
    output_format: Annotated[
        str,
        typer.Option("--format", callback=_validate_format, help="Output format: text or json."),
    ] = "text",
) -> None:
    """Show the cumulative migration and exported handlers for a config."""
    try:
        loaded = worker_config.load_worker_config(config_path)
    except PackagingError as exc:
        _fail(failure_from_error(exc))
        return
    merged = merge_migrations(loaded.migrations)
    handlers = extract_actor_classes(merged)

    if output_format == "json":
        payload = {
            "migrations": merged.to_wire() if merged is not None else None,
            "exported_handlers": handlers,
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    if merged is None:
        typer.echo("No migrations declared.")
        return
    typer.echo(f"tag: {merged.tag or '-'}")
    for label, names in (
        ("new_classes", merged.new_classes),
        ("new_sqlite_classes", merged.new_sqlite_classes),
        ("deleted_classes", merged.deleted_classes),
    ):
        if names:
            typer.echo(f"{label}: {', '.join(names)}")
    for rename in merged.renamed_classes:
        typer.echo(f"renamed: {rename.from_name} -> {rename.to_name}")
    for transfer in merged.transferred_classes:
        typer.echo(
            f"transferred: {transfer.from_script}:{transfer.from_name} -> {transfer.to_name}"
        )
    typer.echo(f"exported_handlers: {', '.join(handlers) if handlers else '-'}")


if __name__ == "__main__":  # pragma: no cover
    app()
