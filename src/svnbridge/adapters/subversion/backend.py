"""
Capability interface of the native Subversion client.

The adapter never talks to a client library directly. It drives an
:class:`SvnBackend`, which opens :class:`SvnSession` objects wired to the
adapter's :class:`AuthCallbacks`. Sessions stream native records (the
dataclasses below) and signal failures with :class:`BackendError`, tagged with
a :class:`BackendErrorKind` so callers can match on the recoverable cases
without knowing the library's exception types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum, IntFlag
from typing import Iterable, Literal, Mapping, Optional, Protocol, Sequence, Tuple, Union

from ..base import AdapterError

HEAD: Literal["HEAD"] = "HEAD"
RevisionSpec = Union[int, Literal["HEAD"]]

# Native Subversion error codes (svn_error_codes.h).
SVN_ERR_FS_NOT_FOUND = 160013
SVN_ERR_CLIENT_UNRELATED_RESOURCES = 195012


class NodeKind(IntEnum):
    """Values of ``svn_node_kind_t``."""

    NONE = 0
    FILE = 1
    DIR = 2
    UNKNOWN = 3


class Depth(str, Enum):
    EMPTY = "empty"
    FILES = "files"
    IMMEDIATES = "immediates"
    INFINITY = "infinity"


class CertificateFailure(IntFlag):
    """Bits of ``SVN_AUTH_SSL_*`` reported to the server trust prompt."""

    NOTYETVALID = 0x00000001
    EXPIRED = 0x00000002
    CNMISMATCH = 0x00000004
    UNKNOWNCA = 0x00000008
    OTHER = 0x40000000


class BackendErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UNRELATED_RESOURCES = "unrelated_resources"
    OTHER = "other"

    @classmethod
    def from_code(cls, code: Optional[int]) -> "BackendErrorKind":
        if code == SVN_ERR_FS_NOT_FOUND:
            return cls.NOT_FOUND
        if code == SVN_ERR_CLIENT_UNRELATED_RESOURCES:
            return cls.UNRELATED_RESOURCES
        return cls.OTHER


class BackendError(AdapterError):
    """Failure reported by the native client."""

    def __init__(self, message: str, *, kind: BackendErrorKind = BackendErrorKind.OTHER, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.code = code

    @classmethod
    def from_code(cls, message: str, code: Optional[int]) -> "BackendError":
        return cls(message, kind=BackendErrorKind.from_code(code), code=code)


# -- credential exchange -- #


@dataclass(frozen=True, slots=True)
class CredentialRequest:
    realm: str
    username: Optional[str] = None
    may_save: bool = False


@dataclass(frozen=True, slots=True)
class SimpleCredential:
    username: str
    password: str
    may_save: bool = False


@dataclass(frozen=True, slots=True)
class UsernameCredential:
    username: str
    may_save: bool = False


@dataclass(frozen=True, slots=True)
class ServerTrustRequest:
    """
    Server certificate presented during a connection.

    ``certificate`` carries whatever descriptive fields the backend exposes
    (hostname, fingerprint, validity window, issuer).
    """

    realm: str
    failures: CertificateFailure
    certificate: Mapping[str, str] = field(default_factory=dict)
    may_save: bool = False


@dataclass(frozen=True, slots=True)
class ServerTrustDecision:
    accepted_failures: CertificateFailure
    may_save: bool = False


class AuthCallbacks(Protocol):
    """Prompts a backend invokes while it negotiates a connection."""

    def simple_prompt(self, request: CredentialRequest) -> SimpleCredential: ...

    def username_prompt(self, request: CredentialRequest) -> UsernameCredential: ...

    def server_trust_prompt(self, request: ServerTrustRequest) -> ServerTrustDecision: ...


# -- native records -- #


@dataclass(frozen=True, slots=True)
class InfoRecord:
    repos_root_url: str
    last_changed_rev: int
    last_changed_date: Optional[datetime] = None
    last_changed_author: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DirectoryItem:
    """One item reported by a non-recursive listing. ``name`` is relative to the listed URL."""

    name: str
    kind: int
    size: Optional[int] = None
    created_rev: Optional[int] = None
    time: Optional[datetime] = None
    last_author: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ChangedPath:
    action: str
    copyfrom_path: Optional[str] = None
    copyfrom_rev: Optional[int] = None


@dataclass(frozen=True, slots=True)
class LogRecord:
    revision: int
    author: Optional[str] = None
    date: Optional[datetime] = None
    message: Optional[str] = None
    changed_paths: Optional[Mapping[str, ChangedPath]] = None


@dataclass(frozen=True, slots=True)
class BlameRecord:
    line_no: int
    revision: Union[int, str]
    author: Optional[str] = None
    date: Optional[datetime] = None
    line: str = ""


class SvnSession(Protocol):
    """An authenticated client handle. Not safe for concurrent use."""

    def info(self, url: str, revision: RevisionSpec = HEAD) -> Iterable[InfoRecord]: ...

    def list(self, url: str, revision: RevisionSpec) -> Iterable[DirectoryItem]: ...

    def proplist(self, url: str, peg_revision: RevisionSpec, revision: RevisionSpec, depth: Depth) -> Iterable[Tuple[str, Mapping[str, str]]]: ...

    def log(
        self,
        url: str,
        start: RevisionSpec,
        end: RevisionSpec,
        limit: int,
        discover_changed_paths: bool,
        strict_node_history: bool,
        peg_revision: RevisionSpec,
    ) -> Iterable[LogRecord]: ...

    def diff_peg(
        self,
        options: Sequence[str],
        url: str,
        start: RevisionSpec,
        end: RevisionSpec,
        out_path: str,
        err_path: str,
        peg_revision: RevisionSpec,
    ) -> None: ...

    def cat(self, url: str, revision: RevisionSpec, peg_revision: RevisionSpec) -> bytes: ...

    def blame(self, url: str, start: Optional[RevisionSpec], end: RevisionSpec) -> Iterable[BlameRecord]: ...


class SvnBackend(Protocol):
    """Factory for sessions against a Subversion client library."""

    def create_session(self, callbacks: AuthCallbacks) -> SvnSession: ...

    def client_version(self) -> Tuple[int, int, int]: ...
