"""
Helpers for resolving repository adapters in CLI contexts.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ..adapters.subversion import SubversionAdapter
from ..config import RepositorySettings, load_secrets


def resolve_settings(
    *,
    url: Optional[str] = None,
    root_url: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    trust_server_cert: Optional[bool] = None,
) -> RepositorySettings:
    """
    Merge command line overrides on top of the configured repository settings.

    Options left unset on the command line keep the value from ``.secrets`` or
    the ``SVNBRIDGE_*`` environment.
    """

    settings = load_secrets().subversion
    overrides = {
        key: value
        for key, value in (
            ("url", url),
            ("root_url", root_url),
            ("username", username),
            ("password", password),
            ("trust_server_cert", trust_server_cert),
        )
        if value is not None
    }
    return replace(settings, **overrides) if overrides else settings


def resolve_adapter(settings: RepositorySettings) -> SubversionAdapter:
    """Build the adapter for the configured repository."""

    return SubversionAdapter.from_settings(settings)
