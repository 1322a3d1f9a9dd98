"""
Configuration helpers for svnbridge.

Repository settings are loaded from ``.secrets/secret.toml`` by default. The lookup order is:

1. Explicit ``SVNBRIDGE_SECRETS_PATH`` environment variable.
2. Project-relative ``.secrets/secret.toml`` (both from CWD and the package root).
3. Project-relative ``.secrets/secrets.toml``.
4. Fallback to ``.secrets/secrets.example.toml`` for scaffolding values.

Values from the ``[subversion]`` table can be overridden with ``SVNBRIDGE_URL``,
``SVNBRIDGE_ROOT_URL``, ``SVNBRIDGE_USERNAME``, ``SVNBRIDGE_PASSWORD`` and
``SVNBRIDGE_TRUST_SERVER_CERT``. Call :func:`load_secrets` to retrieve a
:class:`SecretsBundle`.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, Optional

_ENV_PREFIX = "SVNBRIDGE_"


@dataclass(slots=True)
class RepositorySettings:
    """
    Connection settings for one Subversion repository.

    Attributes
    ----------
    url:
        URL relative paths are resolved against.
    root_url:
        Repository root used for absolute paths. Defaults to ``url``.
    username, password:
        Credentials supplied to the client's prompts.
    trust_server_cert:
        Accept invalid server certificates for the session instead of failing.
    """

    url: str = ""
    root_url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    trust_server_cert: bool = False

    def resolve_root_url(self) -> str:
        return self.root_url or self.url


@dataclass(slots=True)
class SecretsBundle:
    """Lightweight container for parsed secret values."""

    source_path: Optional[Path]
    data: Dict[str, Dict[str, object]]
    subversion: RepositorySettings = field(default_factory=RepositorySettings)


def coerce_flag(value: object) -> bool:
    """Interpret booleans written as ``true``, ``1``, ``"yes"`` or positive integers."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value > 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "on"}:
            return True
        try:
            return int(lowered) > 0
        except ValueError:
            return False
    return False


def _discover_project_root() -> Optional[Path]:
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").is_file():
            return parent
    return None


def _candidate_paths() -> Iterable[Path]:
    env_override = os.getenv(f"{_ENV_PREFIX}SECRETS_PATH")
    if env_override:
        yield Path(env_override).expanduser()

    package_root = _discover_project_root()
    cwd = Path.cwd()

    def secrets_paths(base: Path) -> Iterable[Path]:
        secrets_dir = base / ".secrets"
        for filename in ("secret.toml", "secrets.toml"):
            yield secrets_dir / filename
        yield secrets_dir / "secrets.example.toml"

    seen: set[Path] = set()
    search_roots = [cwd]
    if package_root and package_root not in search_roots:
        search_roots.append(package_root)
    for base in search_roots:
        for candidate in secrets_paths(base):
            if candidate not in seen:
                seen.add(candidate)
                yield candidate


def _load_toml(path: Path) -> Dict[str, Dict[str, object]]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _extract_subversion_settings(raw: Dict[str, Dict[str, object]]) -> RepositorySettings:
    section = raw.get("subversion", {}) if isinstance(raw, dict) else {}
    if not isinstance(section, dict):
        section = {}

    def _extract(key: str) -> Optional[str]:
        value = section.get(key)
        return str(value) if isinstance(value, str) and value else None

    return RepositorySettings(
        url=_extract("url") or "",
        root_url=_extract("root_url"),
        username=_extract("username"),
        password=_extract("password"),
        trust_server_cert=coerce_flag(section.get("trust_server_cert", False)),
    )


def apply_environment(settings: RepositorySettings) -> RepositorySettings:
    """Return a copy of ``settings`` with ``SVNBRIDGE_*`` environment overrides applied."""

    overrides: Dict[str, object] = {}
    for key in ("url", "root_url", "username", "password"):
        value = os.getenv(f"{_ENV_PREFIX}{key.upper()}")
        if value:
            overrides[key] = value
    trust = os.getenv(f"{_ENV_PREFIX}TRUST_SERVER_CERT")
    if trust:
        overrides["trust_server_cert"] = coerce_flag(trust)
    return replace(settings, **overrides) if overrides else settings


def load_secrets(strict: bool = False) -> SecretsBundle:
    """
    Attempt to load repository settings from the configured locations.

    Parameters
    ----------
    strict:
        When ``True`` the function raises ``FileNotFoundError`` if no secrets file is
        discovered. Defaults to ``False`` so environment variables alone are enough.
    """

    for path in _candidate_paths():
        if path.is_file():
            data = _load_toml(path)
            return SecretsBundle(
                source_path=path,
                data=data,
                subversion=apply_environment(_extract_subversion_settings(data)),
            )

    if strict:
        raise FileNotFoundError("No secrets file found. Configure SVNBRIDGE_SECRETS_PATH or .secrets/secret.toml.")

    return SecretsBundle(source_path=None, data={}, subversion=apply_environment(RepositorySettings()))
