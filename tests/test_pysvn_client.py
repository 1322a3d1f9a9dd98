from __future__ import annotations

from types import SimpleNamespace

import pytest

from svnbridge.adapters.base import AdapterError
from svnbridge.adapters.subversion import pysvn_client
from svnbridge.adapters.subversion.auth import CertificateTrustError, CredentialProvider
from svnbridge.adapters.subversion.backend import (
    SVN_ERR_CLIENT_UNRELATED_RESOURCES,
    SVN_ERR_FS_NOT_FOUND,
    BackendError,
    BackendErrorKind,
    Depth,
    NodeKind,
)
from svnbridge.adapters.subversion.pysvn_client import PysvnBackend, PysvnSession


class FakeClientError(Exception):
    pass


def make_pysvn() -> SimpleNamespace:
    return SimpleNamespace(
        ClientError=FakeClientError,
        opt_revision_kind=SimpleNamespace(unspecified="unspecified", head="head", number="number"),
        Revision=lambda kind, number=None: (kind, number),
        depth=SimpleNamespace(empty="depth-empty", files="depth-files", immediates="depth-immediates", infinity="depth-infinity"),
        SVN_DIRENT_ALL="dirent-all",
    )


class FakeClient:
    def __init__(self, **responses):
        self.responses = responses
        self.calls = []
        self.store_passwords = None

    def set_store_passwords(self, value):
        self.store_passwords = value

    def _respond(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        response = self.responses[name]
        if isinstance(response, Exception):
            raise response
        return response

    def info2(self, *args, **kwargs):
        return self._respond("info2", *args, **kwargs)

    def list(self, *args, **kwargs):
        return self._respond("list", *args, **kwargs)

    def proplist(self, *args, **kwargs):
        return self._respond("proplist", *args, **kwargs)

    def log(self, *args, **kwargs):
        return self._respond("log", *args, **kwargs)

    def cat(self, *args, **kwargs):
        return self._respond("cat", *args, **kwargs)

    def annotate(self, *args, **kwargs):
        return self._respond("annotate", *args, **kwargs)


def make_session(client: FakeClient, **provider) -> PysvnSession:
    return PysvnSession(pysvn=make_pysvn(), client=client, callbacks=CredentialProvider(**provider))


def test_session_disables_password_store_and_answers_login():
    client = FakeClient()
    make_session(client, username="alice", password="s3cret")

    assert client.store_passwords is False
    assert client.callback_get_login("realm", None, True) == (True, "alice", "s3cret", False)


def test_info_converts_records():
    client = FakeClient(
        info2=[
            (
                "trunk",
                {
                    "repos_root_URL": "https://svn.example.com/repo",
                    "last_changed_rev": SimpleNamespace(number=42),
                    "last_changed_date": 1704456000.0,
                    "last_changed_author": "alice",
                },
            )
        ]
    )
    session = make_session(client)

    (record,) = list(session.info("https://svn.example.com/repo/trunk"))

    assert record.repos_root_url == "https://svn.example.com/repo"
    assert record.last_changed_rev == 42
    assert record.last_changed_date.year == 2024
    assert client.calls[0][2]["revision"] == ("head", None)


def test_list_names_are_relative_to_listed_directory():
    client = FakeClient(
        list=[
            ({"repos_path": "/trunk/src", "kind": "dir", "size": 0, "created_rev": SimpleNamespace(number=7), "time": 0, "last_author": "bob"}, None),
            ({"repos_path": "/trunk/src/util.c", "kind": "file", "size": 12, "created_rev": SimpleNamespace(number=5), "time": 0, "last_author": "bob"}, None),
        ]
    )
    session = make_session(client)

    items = list(session.list("https://svn.example.com/repo/trunk/src", 9))

    assert [item.name for item in items] == ["", "util.c"]
    assert items[1].kind is NodeKind.FILE
    assert items[1].created_rev == 5
    assert client.calls[0][2]["revision"] == ("number", 9)
    assert client.calls[0][2]["dirent_fields"] == "dirent-all"


def test_proplist_maps_depth_and_decodes_values():
    client = FakeClient(proplist=[("url", {"svn:mime-type": b"text/plain"})])
    session = make_session(client)

    batches = list(session.proplist("url", "HEAD", "HEAD", Depth.EMPTY))

    assert batches == [("url", {"svn:mime-type": "text/plain"})]
    assert client.calls[0][2]["depth"] == "depth-empty"


def test_log_includes_changed_paths_when_requested():
    client = FakeClient(
        log=[
            {
                "revision": SimpleNamespace(number=3),
                "author": "alice",
                "date": 0,
                "message": "copy",
                "changed_paths": [{"path": "/b", "action": "A", "copyfrom_path": "/a", "copyfrom_revision": SimpleNamespace(number=2)}],
            }
        ]
    )
    session = make_session(client)

    (record,) = list(session.log("url", "HEAD", 0, 0, True, False, "HEAD"))

    assert record.revision == 3
    assert record.changed_paths["/b"].copyfrom_rev == 2


@pytest.mark.parametrize(
    ("code", "kind"),
    [
        (SVN_ERR_FS_NOT_FOUND, BackendErrorKind.NOT_FOUND),
        (SVN_ERR_CLIENT_UNRELATED_RESOURCES, BackendErrorKind.UNRELATED_RESOURCES),
        (170001, BackendErrorKind.OTHER),
    ],
)
def test_client_errors_are_classified(code, kind):
    client = FakeClient(cat=FakeClientError("boom", [("boom", code)]))
    session = make_session(client)

    with pytest.raises(BackendError) as excinfo:
        session.cat("url", 1, 1)

    assert excinfo.value.kind is kind
    assert excinfo.value.code == code


def test_rejected_certificate_replaces_client_error():
    client = FakeClient()
    session = make_session(client)

    def failing_cat(*args, **kwargs):
        accepted = client.callback_ssl_server_trust_prompt({"realm": "https://svn.example.com:443", "failures": 8})
        assert accepted == (False, 0, False)
        raise FakeClientError("cancelled", [("cancelled", 200015)])

    client.cat = failing_cat

    with pytest.raises(CertificateTrustError) as excinfo:
        session.cat("url", 1, 1)

    assert "not issued by a trusted authority" in str(excinfo.value)


def test_backend_reports_missing_package(monkeypatch):
    def missing(name):
        raise ImportError(name)

    monkeypatch.setattr(pysvn_client.importlib, "import_module", missing)

    with pytest.raises(AdapterError, match="pysvn"):
        PysvnBackend()
