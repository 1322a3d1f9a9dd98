"""
Credential and server-certificate prompts handed to the Subversion backend.

Credentials come from configuration only and are never cached to disk by the
client: every response carries ``may_save=False``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import LoggerAdapter
from typing import List, Optional, Tuple

from ...core.logging import get_logger, log_progress
from ..base import CommandFailed
from .backend import (
    CertificateFailure,
    CredentialRequest,
    ServerTrustDecision,
    ServerTrustRequest,
    SimpleCredential,
    UsernameCredential,
)

_FAILURE_REASONS: Tuple[Tuple[CertificateFailure, str], ...] = (
    (CertificateFailure.UNKNOWNCA, "the certificate is not issued by a trusted authority"),
    (CertificateFailure.CNMISMATCH, "the certificate hostname does not match"),
    (CertificateFailure.NOTYETVALID, "the certificate is not yet valid"),
    (CertificateFailure.EXPIRED, "the certificate has expired"),
    (CertificateFailure.OTHER, "the certificate has an unknown error"),
)


class CertificateTrustError(CommandFailed):
    """Raised when a server certificate is rejected by the trust policy."""

    def __init__(self, realm: str, failures: CertificateFailure) -> None:
        reasons = describe_certificate_failures(failures)
        super().__init__(f"Invalid certificate for '{realm}': {', '.join(reasons)}.", operation="connect", target=realm)
        self.realm = realm
        self.failures = failures
        self.reasons = reasons


def describe_certificate_failures(failures: int) -> List[str]:
    """Human-readable reasons for each failure bit set in ``failures``."""

    return [reason for flag, reason in _FAILURE_REASONS if failures & flag]


@dataclass(slots=True)
class CredentialProvider:
    """
    Answers backend prompts from configured values.

    Parameters
    ----------
    username, password:
        Configured credentials; unset values are answered with an empty string.
    trust_server_cert:
        When ``True`` every certificate failure is accepted for the current
        session. Otherwise certificate failures abort the connection.
    """

    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    trust_server_cert: bool = False
    logger: LoggerAdapter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.logger = get_logger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def simple_prompt(self, request: CredentialRequest) -> SimpleCredential:
        return SimpleCredential(username=self.username or "", password=self.password or "", may_save=False)

    def username_prompt(self, request: CredentialRequest) -> UsernameCredential:
        return UsernameCredential(username=self.username or "", may_save=False)

    def server_trust_prompt(self, request: ServerTrustRequest) -> ServerTrustDecision:
        failures = CertificateFailure(request.failures)
        if self.trust_server_cert:
            log_progress(
                self.logger,
                "Accepting server certificate for this session",
                operation="connect",
                status="trusted",
                extra={"realm": request.realm, "failures": describe_certificate_failures(failures)},
            )
            return ServerTrustDecision(accepted_failures=failures, may_save=False)
        raise CertificateTrustError(request.realm, failures)
