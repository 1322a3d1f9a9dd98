"""
Subversion adapter.

The adapter drives an :class:`SvnBackend`; :class:`PysvnBackend` (imported on
demand) is the default implementation.
"""

from .adapter import SubversionAdapter, coerce_revision
from .auth import CertificateTrustError, CredentialProvider, describe_certificate_failures
from .backend import HEAD, BackendError, BackendErrorKind, CertificateFailure, NodeKind, SvnBackend, SvnSession
from .target import resolve_target

__all__ = [
    "HEAD",
    "BackendError",
    "BackendErrorKind",
    "CertificateFailure",
    "CertificateTrustError",
    "CredentialProvider",
    "NodeKind",
    "SubversionAdapter",
    "SvnBackend",
    "SvnSession",
    "coerce_revision",
    "describe_certificate_failures",
    "resolve_target",
]
