"""Fold actor-class migration history into one cumulative migration.

The deploy API accepts a single migration per deploy, so every historical
directive is replayed oldest to newest and collapsed. Within one directive
deletions apply first, then renames, then introductions. Swapping that
order changes the result for histories that rename and delete the same
class in one release.

Example:
    >>> merged = merge_migrations(
    ...     [
    ...         {"tag": "v1", "new_classes": ["Counter", "Room"]},
    ...         {"tag": "v2", "renamed_classes": [{"from": "Counter", "to": "Tally"}]},
    ...     ]
    ... )
    >>> merged.to_wire()
    {'tag': 'v2', 'new_classes': ['Room'], 'renamed_classes': [{'from': 'Counter', 'to': 'Tally'}]}
    >>> extract_actor_classes(merged)
    ['Room', 'Tally']
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from . import log
from .models import CumulativeMigration, MigrationDirective, RenamedClass, TransferredClass

IntroductionKind = Literal["new", "sqlite", "transferred"]


@dataclass
class _LiveClass:
    declared_name: str
    name: str
    kind: IntroductionKind
    transfer: TransferredClass | None = None


def _coerce_directive(value: MigrationDirective | Mapping[str, object]) -> MigrationDirective:
    if isinstance(value, MigrationDirective):
        return value
    return MigrationDirective.model_validate(value)


def _find_live(live: list[_LiveClass], name: str) -> _LiveClass | None:
    for entry in live:
        if entry.name == name:
            return entry
    return None


def _apply_deletions(live: list[_LiveClass], deleted: dict[str, None], names: Iterable[str]) -> None:
    for name in names:
        entry = _find_live(live, name)
        if entry is not None:
            live.remove(entry)
        deleted.setdefault(name, None)


def _apply_renames(
    live: list[_LiveClass], deleted: dict[str, None], renames: Iterable[RenamedClass]
) -> None:
    for rename in renames:
        entry = _find_live(live, rename.from_name)
        if entry is None or rename.from_name == rename.to_name:
            continue
        # Last writer wins when the target name is already taken.
        displaced = _find_live(live, rename.to_name)
        if displaced is not None:
            live.remove(displaced)
        entry.name = rename.to_name
        deleted.pop(rename.to_name, None)


def _introduce(
    live: list[_LiveClass],
    deleted: dict[str, None],
    name: str,
    kind: IntroductionKind,
    transfer: TransferredClass | None = None,
) -> None:
    if _find_live(live, name) is not None:
        return
    live.append(_LiveClass(declared_name=name, name=name, kind=kind, transfer=transfer))
    deleted.pop(name, None)


def _apply_introductions(
    live: list[_LiveClass], deleted: dict[str, None], directive: MigrationDirective
) -> None:
    for name in directive.new_classes:
        _introduce(live, deleted, name, "new")
    for name in directive.new_sqlite_classes:
        _introduce(live, deleted, name, "sqlite")
    for transfer in directive.transferred_classes:
        _introduce(live, deleted, transfer.to_name, "transferred", transfer)


def _fold(tag: str | None, live: list[_LiveClass], deleted: dict[str, None]) -> CumulativeMigration:
    new_classes: list[str] = []
    new_sqlite_classes: list[str] = []
    transferred_classes: list[TransferredClass] = []
    renamed_classes: list[RenamedClass] = []

    for entry in live:
        if entry.kind == "transferred" and entry.transfer is not None:
            # Transfers land directly under the class's current name.
            transferred_classes.append(entry.transfer.model_copy(update={"to_name": entry.name}))
        elif entry.name != entry.declared_name:
            rename = RenamedClass(from_name=entry.declared_name, to_name=entry.name)
            if rename not in renamed_classes:
                renamed_classes.append(rename)
        elif entry.kind == "sqlite":
            new_sqlite_classes.append(entry.name)
        else:
            new_classes.append(entry.name)

    current_names = {entry.name for entry in live}
    deleted_classes = [name for name in deleted if name not in current_names]
    return CumulativeMigration(
        tag=tag,
        new_classes=new_classes,
        new_sqlite_classes=new_sqlite_classes,
        renamed_classes=renamed_classes,
        deleted_classes=deleted_classes,
        transferred_classes=transferred_classes,
    )


def merge_migrations(
    directives: Sequence[MigrationDirective | Mapping[str, object]] | None,
) -> CumulativeMigration | None:
    """Fold ordered migration directives into one cumulative migration.

    Live classes that were never renamed are declared as new (or new SQLite)
    classes; renamed classes appear as one collapsed ``oldest -> latest``
    rename pair; deletions accumulate. Renames of classes that were never
    live and deletions of classes that are already gone are tolerated as
    no-ops, since histories may start after the first deploy of a script.

    Args:
        directives: Migration directives, oldest first. Mappings are
            validated into ``MigrationDirective`` values.

    Returns:
        The cumulative migration, or ``None`` when there is no history.
        Callers omit the migration field entirely for ``None``.
    """
    if not directives:
        return None

    live: list[_LiveClass] = []
    deleted: dict[str, None] = {}
    tag: str | None = None
    for value in directives:
        directive = _coerce_directive(value)
        tag = directive.tag or tag
        _apply_deletions(live, deleted, directive.deleted_classes)
        _apply_renames(live, deleted, directive.renamed_classes)
        _apply_introductions(live, deleted, directive)

    merged = _fold(tag, live, deleted)
    log.trace(
        "Merged migrations",
        directive_count=len(directives),
        tag=tag or "-",
        live_count=len(live),
        deleted_count=len(merged.deleted_classes),
    )
    return merged


def extract_actor_classes(migration: CumulativeMigration | None) -> list[str]:
    """Return the actor classes to export as handlers for a deploy.

    Classes are listed as declared: new, then new SQLite, then transferred,
    then rename targets. Deleted classes and repeated names are skipped.

    Args:
        migration: Cumulative migration produced by ``merge_migrations``.

    Returns:
        Class names, possibly empty.
    """
    if migration is None:
        return []

    deleted = set(migration.deleted_classes)
    candidates = [
        *migration.new_classes,
        *migration.new_sqlite_classes,
        *(entry.to_name for entry in migration.transferred_classes),
        *(entry.to_name for entry in migration.renamed_classes),
    ]

    classes: list[str] = []
    seen: set[str] = set()
    for name in candidates:
        if name in deleted or name in seen:
            continue
        seen.add(name)
        classes.append(name)
    return classes
