from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pytest
from typer.testing import CliRunner

from svnbridge.adapters.subversion import SubversionAdapter
from svnbridge.adapters.subversion.backend import (
    AuthCallbacks,
    BackendError,
    BlameRecord,
    CertificateFailure,
    CredentialRequest,
    DirectoryItem,
    InfoRecord,
    LogRecord,
    ServerTrustRequest,
)
from svnbridge.cli.main import app

ROOT_URL = "https://svn.example.com/repo"
REALM = "<https://svn.example.com:443> Example Repository"


def ts(day: int) -> datetime:
    return datetime(2024, 1, day, 12, 0, tzinfo=timezone.utc)


@dataclass
class FakeSession:
    """In-memory stand-in for a native client session keyed by target URL."""

    callbacks: AuthCallbacks
    certificate_failures: CertificateFailure = CertificateFailure(0)
    info_records: List[InfoRecord] = field(default_factory=list)
    listings: Dict[str, Any] = field(default_factory=dict)
    props: Dict[str, List[Tuple[str, Mapping[str, str]]]] = field(default_factory=dict)
    logs: Dict[str, List[LogRecord]] = field(default_factory=dict)
    log_errors: Dict[str, BackendError] = field(default_factory=dict)
    diffs: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, bytes] = field(default_factory=dict)
    blames: Dict[str, List[BlameRecord]] = field(default_factory=dict)
    calls: List[Tuple[str, Tuple[Any, ...]]] = field(default_factory=list)
    diff_paths: List[Path] = field(default_factory=list)
    logins: List[Any] = field(default_factory=list)

    def _connect(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        self.logins.append(self.callbacks.simple_prompt(CredentialRequest(realm=REALM)))
        if self.certificate_failures:
            self.callbacks.server_trust_prompt(ServerTrustRequest(realm=REALM, failures=self.certificate_failures))

    def info(self, url: str, revision: Any = "HEAD") -> Iterable[InfoRecord]:
        self._connect("info", url, revision)
        return list(self.info_records)

    def list(self, url: str, revision: Any) -> Iterable[DirectoryItem]:
        self._connect("list", url, revision)
        listing = self.listings[url]
        if isinstance(listing, Exception):
            raise listing
        return list(listing)

    def proplist(self, url: str, peg_revision: Any, revision: Any, depth: Any) -> Iterable[Tuple[str, Mapping[str, str]]]:
        self._connect("proplist", url, peg_revision, revision, depth)
        return list(self.props.get(url, []))

    def log(self, url, start, end, limit, discover_changed_paths, strict_node_history, peg_revision) -> Iterable[LogRecord]:
        self._connect("log", url, start, end, limit, discover_changed_paths, strict_node_history, peg_revision)
        yield from self.logs.get(url, [])
        if url in self.log_errors:
            raise self.log_errors[url]

    def diff_peg(self, options: Sequence[str], url: str, start, end, out_path: str, err_path: str, peg_revision) -> None:
        self._connect("diff_peg", options, url, start, end, peg_revision)
        self.diff_paths.extend([Path(out_path), Path(err_path)])
        outcome = self.diffs[url]
        if isinstance(outcome, Exception):
            Path(out_path).write_text("partial\n", encoding="utf-8")
            raise outcome
        Path(out_path).write_text(outcome, encoding="utf-8")

    def cat(self, url: str, revision: Any, peg_revision: Any) -> bytes:
        self._connect("cat", url, revision, peg_revision)
        return self.files[url]

    def blame(self, url: str, start: Any, end: Any) -> Iterable[BlameRecord]:
        self._connect("blame", url, start, end)
        return list(self.blames[url])


@dataclass
class FakeBackend:
    """Backend whose sessions share the fixture data configured on ``template``."""

    template: Dict[str, Any] = field(default_factory=dict)
    sessions: List[FakeSession] = field(default_factory=list)
    version: Tuple[int, int, int] = (1, 14, 3)

    def create_session(self, callbacks: AuthCallbacks) -> FakeSession:
        session = FakeSession(callbacks=callbacks, **self.template)
        self.sessions.append(session)
        return session

    def client_version(self) -> Tuple[int, int, int]:
        return self.version

    @property
    def session(self) -> FakeSession:
        assert len(self.sessions) == 1, "expected exactly one session"
        return self.sessions[0]


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend(
        template={
            "info_records": [
                InfoRecord(repos_root_url=ROOT_URL, last_changed_rev=42, last_changed_date=ts(5), last_changed_author="alice"),
            ],
        }
    )


@pytest.fixture()
def make_adapter(backend: FakeBackend):
    def factory(url: str = f"{ROOT_URL}/trunk", **kwargs: Any) -> SubversionAdapter:
        kwargs.setdefault("root_url", ROOT_URL)
        return SubversionAdapter(url=url, backend=backend, **kwargs)

    return factory


@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_app():
    return app


@pytest.fixture(autouse=True)
def isolated_secrets(monkeypatch, tmp_path):
    for name in ("URL", "ROOT_URL", "USERNAME", "PASSWORD", "TRUST_SERVER_CERT"):
        monkeypatch.delenv(f"SVNBRIDGE_{name}", raising=False)
    monkeypatch.setenv("SVNBRIDGE_SECRETS_PATH", str(tmp_path / "missing-secrets.toml"))
    monkeypatch.chdir(tmp_path)
