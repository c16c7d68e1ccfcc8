"""
credtrust.credentials — Credential issuance, revocation and validity.

Verified institutions issue credentials through their delegated admins.
Authorization is asked of a VerificationOracle (normally the
InstitutionRegistry) before the ledger touches its own state; the ledger
never reaches into institution records directly.

Validity is derived on every call from the revocation flag, the
expiration height and the issuing institution's verification status.
Nothing about validity is cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict, replace
from typing import Optional, Protocol

from credtrust.audit import AuditEventType
from credtrust.base import BaseRegistry
from credtrust.results import Result, TrustError
from credtrust.storage import counter_record

logger = logging.getLogger(__name__)

CREDENTIAL_PREFIX = "credential:"
CREDENTIAL_COUNTER = "credential"


class VerificationOracle(Protocol):
    """Read-only institution checks the ledger depends on."""

    def is_institution_verified(self, id: int) -> bool: ...

    def is_institution_admin(self, id: int, address: str) -> bool: ...


@dataclass
class Credential:
    """A credential issued by an institution to a student."""
    credential_id: int
    institution_id: int
    student_id: str
    credential_type: str
    credential_name: str
    issue_date: int
    expiration_date: Optional[int] = None  # None = never expires
    metadata: str = ""
    revoked: bool = False

    def is_expired(self, height: int) -> bool:
        if self.expiration_date is None:
            return False
        return self.expiration_date < height

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Credential":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


class CredentialLedger(BaseRegistry):
    """Ledger of issued credentials, keyed by a global sequential id."""

    ERROR_CODES = {
        TrustError.UNAUTHORIZED: 1,
        TrustError.INVALID_INSTITUTION: 2,
        TrustError.NOT_FOUND: 3,
        TrustError.ALREADY_REVOKED: 4,
    }

    def __init__(self, institutions: VerificationOracle, admin, clock=None,
                 backend=None, audit=None):
        if institutions is None:
            raise ValueError("CredentialLedger requires an institution verification oracle")
        super().__init__(admin, clock=clock, backend=backend, audit=audit)
        self._institutions = institutions
        self._credentials: dict[int, Credential] = {}
        self._counter = 0
        self._hydrate()

    def _hydrate(self) -> None:
        for data in self._backend.load_prefix(CREDENTIAL_PREFIX).values():
            cred = Credential.from_dict(data)
            self._credentials[cred.credential_id] = cred
        self._counter = max(
            self._backend.load_counter(CREDENTIAL_COUNTER),
            max(self._credentials, default=0),
        )
        if self._credentials:
            logger.info("Loaded %d credentials (counter=%d)", len(self._credentials), self._counter)

    # ── mutations ──

    def issue_credential(self, caller: str, institution_id: int, student_id: str,
                         credential_type: str, credential_name: str,
                         expiration_date: Optional[int] = None,
                         metadata: str = "") -> Result:
        """Issue a credential on behalf of a verified institution.

        Returns the new credential id. The caller must hold an active admin
        grant for the institution. Rejected calls never consume an id.
        """
        with self._lock:
            height = self._clock.current()
            if not self._institutions.is_institution_verified(institution_id):
                return self._deny(TrustError.INVALID_INSTITUTION, "issue_credential",
                                  caller, height, institution_id=institution_id)
            if not self._institutions.is_institution_admin(institution_id, caller):
                return self._deny(TrustError.UNAUTHORIZED, "issue_credential",
                                  caller, height, institution_id=institution_id)

            credential_id = self._counter + 1
            cred = Credential(
                credential_id=credential_id,
                institution_id=institution_id,
                student_id=student_id,
                credential_type=credential_type,
                credential_name=credential_name,
                issue_date=height,
                expiration_date=expiration_date,
                metadata=metadata,
                revoked=False,
            )
            self._backend.save_many({
                f"{CREDENTIAL_PREFIX}{credential_id}": cred.to_dict(),
                **counter_record(CREDENTIAL_COUNTER, credential_id),
            })
            self._credentials[credential_id] = cred
            self._counter = credential_id

            logger.info("Credential %d issued by institution %d to %s",
                        credential_id, institution_id, student_id)
            self._record(AuditEventType.CREDENTIAL_ISSUED, caller, height, {
                "credential_id": credential_id,
                "institution_id": institution_id,
                "student_id": student_id,
            })
        return self._ok(credential_id)

    def revoke_credential(self, caller: str, credential_id: int) -> Result:
        """Revoke a credential. Only an admin of the issuing institution may."""
        with self._lock:
            height = self._clock.current()
            cred = self._credentials.get(credential_id)
            if cred is None:
                return self._deny(TrustError.NOT_FOUND, "revoke_credential",
                                  caller, height, credential_id=credential_id)
            if not self._institutions.is_institution_admin(cred.institution_id, caller):
                return self._deny(TrustError.UNAUTHORIZED, "revoke_credential",
                                  caller, height, credential_id=credential_id)
            if cred.revoked:
                return self._deny(TrustError.ALREADY_REVOKED, "revoke_credential",
                                  caller, height, credential_id=credential_id)
            updated = replace(cred, revoked=True)
            self._backend.save(f"{CREDENTIAL_PREFIX}{credential_id}", updated.to_dict())
            self._credentials[credential_id] = updated

            logger.info("Credential %d revoked", credential_id)
            self._record(AuditEventType.CREDENTIAL_REVOKED, caller, height,
                         {"credential_id": credential_id, "institution_id": cred.institution_id})
        return self._ok()

    # ── queries ──

    def get_credential(self, credential_id: int) -> Optional[Credential]:
        with self._lock:
            cred = self._credentials.get(credential_id)
            return replace(cred) if cred is not None else None

    def credential_exists(self, credential_id: int) -> bool:
        with self._lock:
            return credential_id in self._credentials

    def is_credential_valid(self, credential_id: int) -> bool:
        """True unless unknown, revoked, expired or from an unverified institution."""
        with self._lock:
            height = self._clock.current()
            cred = self._credentials.get(credential_id)
            if cred is None or cred.revoked:
                return False
            if cred.is_expired(height):
                return False
            return self._institutions.is_institution_verified(cred.institution_id)

    def credentials_for_student(self, student_id: str) -> list[Credential]:
        with self._lock:
            return [replace(c) for _, c in sorted(self._credentials.items())
                    if c.student_id == student_id]

    def credentials_for_institution(self, institution_id: int) -> list[Credential]:
        with self._lock:
            return [replace(c) for _, c in sorted(self._credentials.items())
                    if c.institution_id == institution_id]

    @property
    def credential_count(self) -> int:
        with self._lock:
            return self._counter

    def __len__(self):
        return len(self._credentials)

    def __contains__(self, credential_id: int) -> bool:
        return self.credential_exists(credential_id)

    def __repr__(self):
        return f"CredentialLedger({len(self._credentials)} credentials)"
