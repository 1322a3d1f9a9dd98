"""
Conversion of native Subversion records into domain objects.

Every function consumes the complete record stream before returning, so a
partially built collection never leaves this module. Sorting happens as a final
pass over the buffered records.
"""

from __future__ import annotations

import posixpath
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ...core.models import Annotate, AnnotateBuilder, Entries, Entry, Info, Kind, PathChange, Revision
from ..base import CommandFailed
from .backend import BlameRecord, ChangedPath, DirectoryItem, InfoRecord, LogRecord, NodeKind

KIND = {
    NodeKind.NONE: Kind.NONE,
    NodeKind.DIR: Kind.DIR,
    NodeKind.FILE: Kind.FILE,
    NodeKind.UNKNOWN: Kind.UNKNOWN,
}


def map_kind(kind: Optional[int]) -> Kind:
    try:
        return KIND[NodeKind(kind)]
    except (ValueError, TypeError):
        return Kind.UNKNOWN


def _identifier(revision: object) -> Optional[str]:
    if revision is None:
        return None
    text = str(revision)
    return text or None


def normalize_info(records: Iterable[InfoRecord], *, target: str) -> Info:
    for record in records:
        return Info(
            root_url=record.repos_root_url,
            lastrev=Revision(
                identifier=str(record.last_changed_rev),
                time=record.last_changed_date,
                author=record.last_changed_author,
            ),
        )
    raise CommandFailed(f"No repository information returned for {target}", operation="info", target=target)


def entry_path(parent: str, name: str) -> str:
    """Join a listed directory and an item name, dropping the leading slash."""

    return posixpath.join(parent or "", name).lstrip("/")


def normalize_entries(items: Iterable[DirectoryItem], *, path: str = "") -> Entries:
    entries: List[Entry] = []
    for item in items:
        if not item.name:
            continue
        identifier = _identifier(item.created_rev)
        entries.append(
            Entry(
                name=item.name,
                path=entry_path(path, item.name),
                kind=map_kind(item.kind),
                size=item.size,
                lastrev=Revision(identifier=identifier, time=item.time, author=item.last_author) if identifier else None,
            )
        )
    return Entries(entries)


def normalize_path_changes(changed_paths: Optional[Mapping[str, ChangedPath]]) -> Tuple[PathChange, ...]:
    if not changed_paths:
        return ()
    changes = [
        PathChange(
            path=path,
            action=change.action,
            from_path=change.copyfrom_path,
            from_revision=change.copyfrom_rev,
        )
        for path, change in changed_paths.items()
    ]
    return tuple(sorted(changes))


def log_record_to_revision(record: LogRecord, *, with_paths: bool = True) -> Revision:
    return Revision(
        identifier=str(record.revision),
        author=record.author,
        time=record.date,
        message=record.message,
        paths=normalize_path_changes(record.changed_paths) if with_paths else (),
    )


def normalize_blame(records: Iterable[BlameRecord]) -> Annotate:
    blame = AnnotateBuilder()
    for record in records:
        blame.add_line(
            record.line,
            Revision(identifier=str(int(record.revision)), author=record.author, time=record.date),
        )
    return blame.build()


def merge_properties(batches: Iterable[Tuple[str, Mapping[str, str]]]) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    for _path, props in batches:
        properties.update(props)
    return properties
