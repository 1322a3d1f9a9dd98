"""
Base protocols and errors for repository adapters.

An adapter exposes one version-control backend through the same small, read-only
query surface. Hosts depend on :class:`RepositoryAdapter` only; everything that
is backend-specific (sessions, native records, error codes) stays inside the
concrete adapter package.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Protocol, Union

from ..core.models import Annotate, Entries, Info, RevisionQueryOptions, Revisions

RevisionArg = Union[int, str, None]


class AdapterError(RuntimeError):
    """Raised when an adapter encounters a non-recoverable error."""


class CommandFailed(AdapterError):
    """
    Raised when a backend operation fails.

    ``operation`` and ``target`` identify the failing call; the backend error is
    chained as ``__cause__``.
    """

    def __init__(self, message: str, *, operation: Optional[str] = None, target: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.target = target


@dataclass(slots=True)
class VerificationResult:
    """
    Structured response returned by adapter verification routines.

    Attributes
    ----------
    success:
        Indicates whether the verification succeeded.
    message:
        Human-readable summary.
    details:
        Optional structured metadata, e.g. the repository root and HEAD revision.
    """

    success: bool
    message: str
    details: Optional[Mapping[str, object]] = None


class RepositoryAdapter(Protocol):
    """Query surface implemented by every repository adapter."""

    def info(self) -> Info:
        """Summary of the configured repository at HEAD."""

    def entries(self, path: Optional[str] = None, identifier: RevisionArg = None) -> Optional[Entries]:
        """Directory listing, or ``None`` when the path does not exist."""

    def properties(self, path: str, identifier: RevisionArg = None) -> Dict[str, str]:
        """Versioned properties of a single path."""

    def revisions(
        self,
        path: Optional[str] = None,
        identifier_from: RevisionArg = None,
        identifier_to: RevisionArg = None,
        options: Optional[RevisionQueryOptions] = None,
    ) -> Revisions:
        """History of a path between two revisions."""

    def diff(self, path: str, identifier_from: RevisionArg, identifier_to: RevisionArg = None, diff_format: str = "inline") -> List[str]:
        """Unified diff lines between two revisions."""

    def cat(self, path: str, identifier: RevisionArg = None) -> bytes:
        """Raw file content."""

    def annotate(self, path: str, identifier: RevisionArg = None) -> Annotate:
        """Per-line blame of a file."""

    def verify(self) -> VerificationResult:
        """Perform a lightweight connectivity check."""
