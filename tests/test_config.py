from __future__ import annotations

import pytest

from svnbridge.config import RepositorySettings, coerce_flag, load_secrets


def _write_secrets(path, body: str):
    path.write_text(body, encoding="utf-8")
    return path


def test_load_secrets_reads_subversion_table(tmp_path, monkeypatch):
    secrets = _write_secrets(
        tmp_path / "secret.toml",
        """
[subversion]
url = "https://svn.example.com/repo/trunk"
root_url = "https://svn.example.com/repo"
username = "alice"
password = "pw"
trust_server_cert = 1
""",
    )
    monkeypatch.setenv("SVNBRIDGE_SECRETS_PATH", str(secrets))

    bundle = load_secrets()

    assert bundle.source_path == secrets
    settings = bundle.subversion
    assert settings.url == "https://svn.example.com/repo/trunk"
    assert settings.resolve_root_url() == "https://svn.example.com/repo"
    assert (settings.username, settings.password) == ("alice", "pw")
    assert settings.trust_server_cert is True


def test_environment_overrides_file_values(tmp_path, monkeypatch):
    secrets = _write_secrets(tmp_path / "secret.toml", '[subversion]\nurl = "https://a.example.com/repo"\ntrust_server_cert = true\n')
    monkeypatch.setenv("SVNBRIDGE_SECRETS_PATH", str(secrets))
    monkeypatch.setenv("SVNBRIDGE_URL", "https://b.example.com/repo")
    monkeypatch.setenv("SVNBRIDGE_TRUST_SERVER_CERT", "0")

    settings = load_secrets().subversion

    assert settings.url == "https://b.example.com/repo"
    assert settings.trust_server_cert is False


def test_missing_secrets_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("SVNBRIDGE_USERNAME", "carol")

    bundle = load_secrets()

    assert bundle.source_path is None
    assert bundle.subversion.username == "carol"
    assert bundle.subversion.url == ""
    assert bundle.subversion.trust_server_cert is False


def test_missing_secrets_strict_raises():
    with pytest.raises(FileNotFoundError):
        load_secrets(strict=True)


def test_secrets_discovered_from_working_directory(tmp_path, monkeypatch):
    (tmp_path / ".secrets").mkdir()
    _write_secrets(tmp_path / ".secrets" / "secret.toml", '[subversion]\nurl = "https://c.example.com/repo"\n')
    monkeypatch.delenv("SVNBRIDGE_SECRETS_PATH")

    bundle = load_secrets()

    assert bundle.subversion.url == "https://c.example.com/repo"
    assert bundle.subversion.resolve_root_url() == "https://c.example.com/repo"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(True, True), (False, False), (1, True), (0, False), ("1", True), ("true", True), ("yes", True), ("0", False), ("nope", False), (None, False)],
)
def test_coerce_flag(value, expected):
    assert coerce_flag(value) is expected


def test_repository_settings_repr_hides_password():
    assert "pw" not in repr(RepositorySettings(url="u", password="pw"))
