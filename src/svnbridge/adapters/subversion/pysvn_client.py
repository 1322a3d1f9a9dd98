"""
:class:`SvnBackend` implementation on top of ``pysvn``.

``pysvn`` is imported when the backend is constructed so the adapter package
can be used with other backends without the native extension installed.
Install it with ``pip install svnbridge[pysvn]``.
"""

from __future__ import annotations

import importlib
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence, Tuple

from ..base import AdapterError
from .auth import CertificateTrustError
from .backend import (
    AuthCallbacks,
    BackendError,
    BackendErrorKind,
    BlameRecord,
    CertificateFailure,
    ChangedPath,
    CredentialRequest,
    Depth,
    DirectoryItem,
    InfoRecord,
    LogRecord,
    NodeKind,
    RevisionSpec,
    ServerTrustRequest,
)

_NODE_KINDS = {"none": NodeKind.NONE, "file": NodeKind.FILE, "dir": NodeKind.DIR, "unknown": NodeKind.UNKNOWN}
_CERTIFICATE_FIELDS = ("hostname", "finger_print", "valid_from", "valid_until", "issuer_dname")


def _import_pysvn() -> Any:
    try:
        return importlib.import_module("pysvn")
    except ImportError as exc:
        raise AdapterError("The pysvn backend requires the 'pysvn' package. Install it with 'pip install svnbridge[pysvn]'.") from exc


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _revision_number(value: Any) -> Optional[int]:
    if value is None:
        return None
    number = getattr(value, "number", value)
    try:
        return int(number)
    except (TypeError, ValueError):
        return None


@dataclass(slots=True)
class PysvnSession:
    """Adapts a ``pysvn.Client`` to :class:`SvnSession`."""

    pysvn: Any
    client: Any
    callbacks: AuthCallbacks
    _rejected: Optional[CertificateTrustError] = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        self.client.set_store_passwords(False)
        self.client.callback_get_login = self._get_login
        self.client.callback_ssl_server_trust_prompt = self._ssl_server_trust_prompt

    # pysvn answers both the simple and the username-only providers through callback_get_login.
    def _get_login(self, realm: str, username: Optional[str], may_save: bool) -> Tuple[bool, str, str, bool]:
        credential = self.callbacks.simple_prompt(CredentialRequest(realm=realm, username=username, may_save=may_save))
        return True, credential.username, credential.password, credential.may_save

    def _ssl_server_trust_prompt(self, trust_data: Mapping[str, Any]) -> Tuple[bool, int, bool]:
        request = ServerTrustRequest(
            realm=str(trust_data.get("realm", "")),
            failures=CertificateFailure(int(trust_data.get("failures", 0))),
            certificate={key: str(trust_data[key]) for key in _CERTIFICATE_FIELDS if trust_data.get(key) is not None},
        )
        try:
            decision = self.callbacks.server_trust_prompt(request)
        except CertificateTrustError as exc:
            self._rejected = exc
            return False, 0, False
        return True, int(decision.accepted_failures), decision.may_save

    def _revision(self, revision: Optional[RevisionSpec]) -> Any:
        kind = self.pysvn.opt_revision_kind
        if revision is None:
            return self.pysvn.Revision(kind.unspecified)
        if revision == "HEAD":
            return self.pysvn.Revision(kind.head)
        return self.pysvn.Revision(kind.number, int(revision))

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        self._rejected = None
        try:
            yield
        except self.pysvn.ClientError as exc:
            if self._rejected is not None:
                raise self._rejected from exc
            codes = [code for _message, code in exc.args[1]] if len(exc.args) > 1 else []
            kinds = [BackendErrorKind.from_code(code) for code in codes]
            for code, kind in zip(codes, kinds):
                if kind is not BackendErrorKind.OTHER:
                    raise BackendError(str(exc.args[0]), kind=kind, code=code) from exc
            raise BackendError(str(exc.args[0]) if exc.args else str(exc), code=codes[0] if codes else None) from exc

    def info(self, url: str, revision: RevisionSpec = "HEAD") -> Iterable[InfoRecord]:
        with self._translate_errors():
            results = self.client.info2(url, revision=self._revision(revision), recurse=False)
        for _path, info in results:
            yield InfoRecord(
                repos_root_url=info["repos_root_URL"],
                last_changed_rev=_revision_number(info["last_changed_rev"]) or 0,
                last_changed_date=_to_datetime(info["last_changed_date"]),
                last_changed_author=info["last_changed_author"],
            )

    def list(self, url: str, revision: RevisionSpec) -> Iterable[DirectoryItem]:
        pysvn_revision = self._revision(revision)
        with self._translate_errors():
            results = self.client.list(
                url,
                peg_revision=pysvn_revision,
                revision=pysvn_revision,
                recurse=False,
                dirent_fields=self.pysvn.SVN_DIRENT_ALL,
            )
        # The first record is the listed directory itself; names are relative to it.
        base_path = results[0][0]["repos_path"].rstrip("/") if results else ""
        for entry, _lock in results:
            name = entry["repos_path"][len(base_path):].lstrip("/")
            yield DirectoryItem(
                name=name,
                kind=_NODE_KINDS.get(str(entry["kind"]), NodeKind.UNKNOWN),
                size=entry["size"],
                created_rev=_revision_number(entry["created_rev"]),
                time=_to_datetime(entry["time"]),
                last_author=entry["last_author"],
            )

    def proplist(self, url: str, peg_revision: RevisionSpec, revision: RevisionSpec, depth: Depth) -> Iterable[Tuple[str, Mapping[str, str]]]:
        with self._translate_errors():
            results = self.client.proplist(
                url,
                revision=self._revision(revision),
                peg_revision=self._revision(peg_revision),
                depth=getattr(self.pysvn.depth, depth.value),
            )
        for path, props in results:
            yield path, {str(name): value.decode("utf-8", "replace") if isinstance(value, bytes) else str(value) for name, value in props.items()}

    def log(
        self,
        url: str,
        start: RevisionSpec,
        end: RevisionSpec,
        limit: int,
        discover_changed_paths: bool,
        strict_node_history: bool,
        peg_revision: RevisionSpec,
    ) -> Iterable[LogRecord]:
        with self._translate_errors():
            results = self.client.log(
                url,
                revision_start=self._revision(start),
                revision_end=self._revision(end),
                discover_changed_paths=discover_changed_paths,
                strict_node_history=strict_node_history,
                limit=limit,
                peg_revision=self._revision(peg_revision),
            )
        for entry in results:
            changed_paths = None
            if discover_changed_paths and entry.get("changed_paths"):
                changed_paths = {
                    change["path"]: ChangedPath(
                        action=change["action"],
                        copyfrom_path=change.get("copyfrom_path"),
                        copyfrom_rev=_revision_number(change.get("copyfrom_revision")),
                    )
                    for change in entry["changed_paths"]
                }
            yield LogRecord(
                revision=_revision_number(entry["revision"]) or 0,
                author=entry.get("author"),
                date=_to_datetime(entry.get("date")),
                message=entry.get("message"),
                changed_paths=changed_paths,
            )

    def diff_peg(
        self,
        options: Sequence[str],
        url: str,
        start: RevisionSpec,
        end: RevisionSpec,
        out_path: str,
        err_path: str,
        peg_revision: RevisionSpec,
    ) -> None:
        extra = {"diff_options": list(options)} if options else {}
        with self._translate_errors():
            output = self.client.diff_peg(
                str(Path(out_path).parent),
                url,
                peg_revision=self._revision(peg_revision),
                revision_start=self._revision(start),
                revision_end=self._revision(end),
                **extra,
            )
        if isinstance(output, bytes):
            Path(out_path).write_bytes(output)
        else:
            Path(out_path).write_text(output, encoding="utf-8")

    def cat(self, url: str, revision: RevisionSpec, peg_revision: RevisionSpec) -> bytes:
        with self._translate_errors():
            return self.client.cat(url, revision=self._revision(revision), peg_revision=self._revision(peg_revision))

    def blame(self, url: str, start: Optional[RevisionSpec], end: RevisionSpec) -> Iterable[BlameRecord]:
        with self._translate_errors():
            results = self.client.annotate(
                url,
                revision_start=self.pysvn.Revision(self.pysvn.opt_revision_kind.number, 0) if start is None else self._revision(start),
                revision_end=self._revision(end),
                peg_revision=self._revision(end),
            )
        for entry in results:
            yield BlameRecord(
                line_no=int(entry["number"]),
                revision=_revision_number(entry["revision"]) or 0,
                author=entry.get("author"),
                date=_to_datetime(entry.get("date")),
                line=entry["line"],
            )


@dataclass(slots=True)
class PysvnBackend:
    """Creates ``pysvn`` sessions; one ``pysvn.Client`` per session."""

    config_dir: str = ""
    pysvn: Any = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.pysvn = _import_pysvn()

    def create_session(self, callbacks: AuthCallbacks) -> PysvnSession:
        try:
            client = self.pysvn.Client(self.config_dir)
        except self.pysvn.ClientError as exc:
            raise BackendError(f"Failed to create pysvn client: {exc}") from exc
        return PysvnSession(pysvn=self.pysvn, client=client, callbacks=callbacks)

    def client_version(self) -> Tuple[int, int, int]:
        major, minor, patch = (int(part) for part in tuple(self.pysvn.svn_version)[:3])
        return major, minor, patch
