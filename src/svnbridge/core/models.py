"""
Backend-agnostic domain types returned by repository adapters.

Every object is built fresh for a single query and is read-only once the
adapter hands it back. Collections keep the ordering contract of the query
that produced them: entries by name, revisions in backend log order, path
changes by path and annotated lines in file order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, overload


class Kind(str, Enum):
    """Node kind of a repository entry."""

    NONE = "none"
    DIR = "dir"
    FILE = "file"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True, order=True)
class PathChange:
    """
    One path touched by a revision.

    Attributes
    ----------
    path:
        Repository path of the change. Ordering and equality use this field only.
    action:
        Single-letter action code reported by the backend (``A``, ``M``, ``D``, ``R``).
    from_path:
        Copy source path when the change is a copy.
    from_revision:
        Copy source revision when the change is a copy.
    """

    path: str
    action: str = field(default="M", compare=False)
    from_path: Optional[str] = field(default=None, compare=False)
    from_revision: Optional[int] = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Revision:
    """
    Metadata of a single revision.

    ``identifier`` is always a string, even though Subversion numbers revisions,
    so hosts can store it next to identifiers coming from other backends.
    """

    identifier: str
    author: Optional[str] = None
    time: Optional[datetime] = None
    message: Optional[str] = None
    paths: Tuple[PathChange, ...] = ()

    def __post_init__(self) -> None:
        if not self.identifier:
            raise ValueError("Revision identifier cannot be empty.")
        if self.paths is None:
            object.__setattr__(self, "paths", ())


class Revisions(List[Revision]):
    """Revisions in the order the backend reported them."""


@dataclass(frozen=True, slots=True)
class Entry:
    """A file or directory inside a repository listing."""

    name: str
    path: str
    kind: Kind
    size: Optional[int] = None
    lastrev: Optional[Revision] = None

    def is_dir(self) -> bool:
        return self.kind is Kind.DIR

    def is_file(self) -> bool:
        return self.kind is Kind.FILE


class Entries(Sequence[Entry]):
    """Immutable listing of entries, always sorted by name."""

    __slots__ = ("_items",)

    def __init__(self, entries: Iterable[Entry] = ()) -> None:
        self._items: Tuple[Entry, ...] = tuple(sorted(entries, key=lambda entry: entry.name))

    @overload
    def __getitem__(self, index: int) -> Entry: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[Entry, ...]: ...

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Entries):
            return self._items == other._items
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"Entries({list(self._items)!r})"

    def names(self) -> List[str]:
        return [entry.name for entry in self._items]


@dataclass(frozen=True, slots=True)
class Info:
    """Snapshot summary of the repository."""

    root_url: str
    lastrev: Revision


@dataclass(frozen=True, slots=True)
class AnnotatedLine:
    line: str
    revision: Revision


@dataclass(frozen=True, slots=True)
class Annotate:
    """
    Blame result for one file.

    Lines are zero-indexed in file order; ``annotate[0]`` is the first line of
    the file. Use :class:`AnnotateBuilder` to assemble one.
    """

    lines: Tuple[AnnotatedLine, ...] = ()

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[AnnotatedLine]:
        return iter(self.lines)

    def __getitem__(self, index: int) -> AnnotatedLine:
        return self.lines[index]

    @property
    def content(self) -> List[str]:
        return [item.line for item in self.lines]

    @property
    def revisions(self) -> List[Revision]:
        return [item.revision for item in self.lines]

    @property
    def empty(self) -> bool:
        return not self.lines


class AnnotateBuilder:
    """Append-only accumulator producing a frozen :class:`Annotate`."""

    __slots__ = ("_lines",)

    def __init__(self) -> None:
        self._lines: List[AnnotatedLine] = []

    def add_line(self, line: str, revision: Revision) -> None:
        self._lines.append(AnnotatedLine(line=line, revision=revision))

    def build(self) -> Annotate:
        return Annotate(lines=tuple(self._lines))


@dataclass(frozen=True, slots=True)
class RevisionQueryOptions:
    """
    Options for history queries.

    Attributes
    ----------
    limit:
        Maximum number of revisions to return. ``None`` or ``0`` means no limit.
    with_paths:
        Populate :attr:`Revision.paths` with the changed paths of each revision.
    """

    limit: Optional[int] = None
    with_paths: bool = False
