"""
Subversion repository adapter.

:class:`SubversionAdapter` answers the generic :class:`RepositoryAdapter`
queries against one repository URL. It owns a single authenticated backend
session, created on first use, and converts native records into the domain
model through :mod:`.normalizer`.

Two backend conditions are treated as soft results rather than failures: a
missing path while listing entries yields ``None`` and unrelated history while
reading a log yields the revisions gathered so far. Every other backend error is
re-raised as :class:`CommandFailed` naming the operation and target URL.
"""

from __future__ import annotations

import logging
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from logging import LoggerAdapter
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, TypeVar, Union

from ...config import RepositorySettings
from ...core.logging import get_logger, log_progress
from ...core.models import Annotate, Entries, Info, RevisionQueryOptions, Revisions
from ..base import AdapterError, CommandFailed, RepositoryAdapter, RevisionArg, VerificationResult
from .auth import CredentialProvider
from .backend import HEAD, BackendError, BackendErrorKind, Depth, RevisionSpec, SvnBackend, SvnSession
from .normalizer import log_record_to_revision, merge_properties, normalize_blame, normalize_entries, normalize_info
from .target import resolve_target

_T = TypeVar("_T")


def coerce_revision(value: RevisionArg) -> Optional[int]:
    """Integer revision for a user-supplied identifier, or ``None`` when absent or non-numeric."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def positive_revision(value: RevisionArg, default: _T) -> Union[int, _T]:
    revision = coerce_revision(value)
    return revision if revision is not None and revision > 0 else default


def non_negative_revision(value: RevisionArg, default: _T) -> Union[int, _T]:
    revision = coerce_revision(value)
    return revision if revision is not None and revision >= 0 else default


@dataclass(slots=True)
class SubversionAdapter(RepositoryAdapter):
    """
    Read-only adapter over a Subversion repository.

    Parameters
    ----------
    url:
        URL relative paths are resolved against.
    root_url:
        Repository root used for absolute paths. Defaults to ``url``.
    username, password:
        Credentials answered to the backend's prompts; never saved by the client.
    trust_server_cert:
        Accept invalid server certificates for this adapter's session.
    backend:
        Client library capability. Defaults to :class:`PysvnBackend`.

    The cached session is not synchronised for concurrent operations; callers
    sharing one adapter across threads must serialise their calls.
    """

    url: str
    root_url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    trust_server_cert: bool = False
    backend: Optional[SvnBackend] = field(default=None, repr=False)
    source_id: str = "subversion"
    logger: LoggerAdapter = field(init=False, repr=False)
    _session: Optional[SvnSession] = field(init=False, default=None, repr=False)
    _session_lock: threading.Lock = field(init=False, default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        self.logger = get_logger(
            f"{self.__class__.__module__}.{self.__class__.__name__}",
            extra={"url": self.url},
        )

    @classmethod
    def from_settings(cls, settings: RepositorySettings, *, backend: Optional[SvnBackend] = None) -> "SubversionAdapter":
        return cls(
            url=settings.url,
            root_url=settings.root_url,
            username=settings.username,
            password=settings.password,
            trust_server_cert=settings.trust_server_cert,
            backend=backend,
        )

    # -- plumbing -- #

    def target(self, path: str = "") -> str:
        return resolve_target(path, url=self.url, root_url=self.root_url or self.url)

    def _resolve_backend(self) -> SvnBackend:
        if self.backend is None:
            from .pysvn_client import PysvnBackend

            self.backend = PysvnBackend()
        return self.backend

    def client_version(self) -> Tuple[int, int, int]:
        """Version of the underlying client library as ``(major, minor, patch)``."""

        return self._resolve_backend().client_version()

    def session(self) -> SvnSession:
        """Return the authenticated session, creating it on first use."""

        if self._session is None:
            with self._session_lock:
                if self._session is None:
                    callbacks = CredentialProvider(
                        username=self.username,
                        password=self.password,
                        trust_server_cert=self.trust_server_cert,
                    )
                    self._session = self._resolve_backend().create_session(callbacks)
                    log_progress(self.logger, "Opened Subversion session", operation="session", status="created")
        return self._session

    @contextmanager
    def _backend_call(self, operation: str, target: str, revision: Optional[RevisionSpec] = None) -> Iterator[None]:
        log_progress(
            self.logger,
            "Calling Subversion backend",
            operation=operation,
            level=logging.DEBUG,
            extra={"target": target, "revision": revision},
        )
        try:
            yield
        except BackendError as exc:
            log_progress(
                self.logger,
                "Subversion operation failed",
                operation=operation,
                status="failed",
                level=logging.ERROR,
                extra={"target": target, "error": str(exc)},
            )
            raise CommandFailed(f"{operation} failed for {target}: {exc}", operation=operation, target=target) from exc

    # -- queries -- #

    def info(self) -> Info:
        url = self.target()
        with self._backend_call("info", url, HEAD):
            return normalize_info(self.session().info(url, HEAD), target=url)

    def entries(self, path: Optional[str] = None, identifier: RevisionArg = None) -> Optional[Entries]:
        """
        List a directory, sorted by name.

        Returns ``None`` when ``path`` does not exist at the requested revision.
        """

        path = path or ""
        revision: RevisionSpec = positive_revision(identifier, HEAD)
        url = self.target(path)
        with self._backend_call("entries", url, revision):
            try:
                entries = normalize_entries(self.session().list(url, revision), path=path)
            except BackendError as exc:
                if exc.kind is not BackendErrorKind.NOT_FOUND:
                    raise
                log_progress(
                    self.logger,
                    "Path not found, no entries",
                    operation="entries",
                    status="not_found",
                    level=logging.DEBUG,
                    extra={"target": url, "revision": revision},
                )
                return None
        if self.logger.isEnabledFor(logging.DEBUG):
            log_progress(
                self.logger,
                f"Found {len(entries)} entries in the repository for {url}",
                operation="entries",
                level=logging.DEBUG,
                extra={"target": url, "count": len(entries)},
            )
        return entries

    def properties(self, path: Optional[str], identifier: RevisionArg = None) -> Dict[str, str]:
        revision: RevisionSpec = positive_revision(identifier, HEAD)
        url = self.target(path or "")
        with self._backend_call("properties", url, revision):
            return merge_properties(self.session().proplist(url, revision, revision, Depth.EMPTY))

    def revisions(
        self,
        path: Optional[str] = None,
        identifier_from: RevisionArg = None,
        identifier_to: RevisionArg = None,
        options: Optional[RevisionQueryOptions] = None,
    ) -> Revisions:
        """
        History of ``path`` from ``identifier_from`` (HEAD by default) down to
        ``identifier_to`` (revision 0 by default), in backend log order.
        """

        options = options or RevisionQueryOptions()
        start: RevisionSpec = non_negative_revision(identifier_from, HEAD)
        end: RevisionSpec = non_negative_revision(identifier_to, 0)
        limit = max(options.limit or 0, 0)
        url = self.target(path or "")
        revisions = Revisions()
        with self._backend_call("revisions", url, start):
            try:
                for record in self.session().log(url, start, end, limit, options.with_paths, False, start):
                    revisions.append(log_record_to_revision(record, with_paths=options.with_paths))
                    if limit and len(revisions) >= limit:
                        break
            except BackendError as exc:
                if exc.kind is not BackendErrorKind.UNRELATED_RESOURCES:
                    raise
                log_progress(
                    self.logger,
                    "Unrelated history, returning revisions gathered so far",
                    operation="revisions",
                    status="partial",
                    level=logging.DEBUG,
                    extra={"target": url, "count": len(revisions)},
                )
        return revisions

    def diff(self, path: Optional[str], identifier_from: RevisionArg, identifier_to: RevisionArg = None, diff_format: str = "inline") -> List[str]:
        """
        Unified diff of ``path`` between ``identifier_to`` and ``identifier_from``.

        ``identifier_to`` defaults to the revision before ``identifier_from``. When
        ``identifier_from`` is unset the target's last changed revision is used.
        ``diff_format`` is a presentation hint for the host; the lines returned
        are always unified diff output with their line endings kept.
        """

        url = self.target(path or "")
        peg: Optional[int] = positive_revision(identifier_from, None)
        with self._backend_call("diff", url, peg):
            session = self.session()
            if peg is None:
                peg = int(normalize_info(session.info(url, HEAD), target=url).lastrev.identifier)
            start: int = positive_revision(identifier_to, peg - 1)
            with tempfile.TemporaryDirectory(prefix="svnbridge-diff-") as workdir:
                out_file = Path(workdir) / "diff.out"
                err_file = Path(workdir) / "diff.err"
                out_file.touch()
                err_file.touch()
                session.diff_peg([], url, start, peg, str(out_file), str(err_file), peg)
                errors = err_file.read_text(encoding="utf-8", errors="replace").strip()
                if errors:
                    log_progress(
                        self.logger,
                        "Subversion diff reported errors",
                        operation="diff",
                        level=logging.WARNING,
                        extra={"target": url, "error": errors, "format": diff_format},
                    )
                with out_file.open(encoding="utf-8", errors="replace", newline="") as handle:
                    return handle.readlines()

    def cat(self, path: Optional[str], identifier: RevisionArg = None) -> bytes:
        revision: RevisionSpec = positive_revision(identifier, HEAD)
        url = self.target(path or "")
        with self._backend_call("cat", url, revision):
            return self.session().cat(url, revision, revision)

    def annotate(self, path: Optional[str], identifier: RevisionArg = None) -> Annotate:
        revision: RevisionSpec = positive_revision(identifier, HEAD)
        url = self.target(path or "")
        with self._backend_call("annotate", url, revision):
            return normalize_blame(self.session().blame(url, None, revision))

    def verify(self) -> VerificationResult:
        try:
            info = self.info()
        except AdapterError as exc:
            return VerificationResult(success=False, message=f"Subversion verification failed: {exc}")
        return VerificationResult(
            success=True,
            message="Subversion repository reachable.",
            details={"root_url": info.root_url, "head_revision": info.lastrev.identifier},
        )
