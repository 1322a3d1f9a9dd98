"""
Repository adapters exposing version-control backends through one query surface.

Each backend lives in its own subpackage. Hosts depend on
:class:`RepositoryAdapter` and the domain model in :mod:`svnbridge.core`.
"""

from .base import AdapterError, CommandFailed, RepositoryAdapter, VerificationResult
from .subversion import CertificateTrustError, SubversionAdapter

__all__ = [
    "AdapterError",
    "CertificateTrustError",
    "CommandFailed",
    "RepositoryAdapter",
    "SubversionAdapter",
    "VerificationResult",
]
