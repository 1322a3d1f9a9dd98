"""
Backend-agnostic access to Subversion repositories.

:class:`SubversionAdapter` answers the listing, history, diff, content, blame and
property queries of a repository browser and returns the immutable domain types
from :mod:`svnbridge.core.models`.
"""

from .adapters import AdapterError, CertificateTrustError, CommandFailed, RepositoryAdapter, SubversionAdapter, VerificationResult
from .config import RepositorySettings, load_secrets
from .core.models import Annotate, Entries, Entry, Info, Kind, PathChange, Revision, RevisionQueryOptions, Revisions

__version__ = "0.1.0"

__all__ = [
    "AdapterError",
    "Annotate",
    "CertificateTrustError",
    "CommandFailed",
    "Entries",
    "Entry",
    "Info",
    "Kind",
    "PathChange",
    "RepositoryAdapter",
    "RepositorySettings",
    "Revision",
    "RevisionQueryOptions",
    "Revisions",
    "SubversionAdapter",
    "VerificationResult",
    "load_secrets",
]
