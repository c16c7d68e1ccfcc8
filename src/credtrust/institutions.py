"""
credtrust.institutions — Institution registration, verification and admin grants.

The leaf of the network: it answers "is this institution verified?" and
"may this address act for it?" for the credential ledger, and depends on
nothing else.

    registry = InstitutionRegistry(admin="ST1ADMIN")
    registry.register_institution("ST1ADMIN", 1, "Harvard University", "USA", "https://harvard.edu")
    registry.verify_institution("ST1ADMIN", 1)
    registry.add_institution_admin("ST1ADMIN", 1, "ST2REGISTRAR")
    registry.is_institution_admin(1, "ST2REGISTRAR")  # True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict, replace
from typing import Optional

from credtrust.audit import AuditEventType
from credtrust.base import BaseRegistry
from credtrust.results import Result, TrustError

logger = logging.getLogger(__name__)

INSTITUTION_PREFIX = "institution:"
GRANT_PREFIX = "institution_admin:"


@dataclass
class Institution:
    """A registered issuer of credentials."""
    id: int
    name: str
    country: str
    website: str
    verified: bool = False
    registration_date: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Institution":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class InstitutionAdminGrant:
    """Delegated right for `address` to act on behalf of an institution."""
    institution_id: int
    address: str
    active: bool = True

    @property
    def key(self) -> tuple[int, str]:
        return (self.institution_id, self.address)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "InstitutionAdminGrant":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


class InstitutionRegistry(BaseRegistry):
    """Registry of institutions and their delegated admins."""

    ERROR_CODES = {
        TrustError.UNAUTHORIZED: 1,
        TrustError.ALREADY_REGISTERED: 2,
        TrustError.NOT_FOUND: 3,
    }

    def __init__(self, admin, clock=None, backend=None, audit=None):
        super().__init__(admin, clock=clock, backend=backend, audit=audit)
        self._institutions: dict[int, Institution] = {}
        self._grants: dict[tuple[int, str], InstitutionAdminGrant] = {}
        self._hydrate()

    def _hydrate(self) -> None:
        """Load institutions and grants from the backend."""
        for data in self._backend.load_prefix(INSTITUTION_PREFIX).values():
            inst = Institution.from_dict(data)
            self._institutions[inst.id] = inst
        for data in self._backend.load_prefix(GRANT_PREFIX).values():
            grant = InstitutionAdminGrant.from_dict(data)
            self._grants[grant.key] = grant
        if self._institutions:
            logger.info("Loaded %d institutions, %d admin grants",
                        len(self._institutions), len(self._grants))

    def _persist_institution(self, inst: Institution) -> None:
        self._backend.save(f"{INSTITUTION_PREFIX}{inst.id}", inst.to_dict())

    def _persist_grant(self, grant: InstitutionAdminGrant) -> None:
        self._backend.save(
            f"{GRANT_PREFIX}{grant.institution_id}:{grant.address}", grant.to_dict()
        )

    # ── mutations ──

    def register_institution(self, caller: str, id: int, name: str,
                             country: str, website: str) -> Result:
        """Register a new, unverified institution. Admin-only."""
        with self._lock:
            height = self._clock.current()
            if not self.is_admin(caller):
                return self._deny(TrustError.UNAUTHORIZED, "register_institution",
                                  caller, height, institution_id=id)
            if id in self._institutions:
                return self._deny(TrustError.ALREADY_REGISTERED, "register_institution",
                                  caller, height, institution_id=id)
            inst = Institution(
                id=id,
                name=name,
                country=country,
                website=website,
                verified=False,
                registration_date=height,
            )
            self._persist_institution(inst)
            self._institutions[id] = inst
            logger.info("Institution %d registered: %s (%s)", id, name, country)
            self._record(AuditEventType.INSTITUTION_REGISTERED, caller, height,
                         {"institution_id": id, "name": name})
        return self._ok()

    def verify_institution(self, caller: str, id: int) -> Result:
        """Mark an institution verified. Admin-only; repeating it is harmless."""
        with self._lock:
            height = self._clock.current()
            if not self.is_admin(caller):
                return self._deny(TrustError.UNAUTHORIZED, "verify_institution",
                                  caller, height, institution_id=id)
            inst = self._institutions.get(id)
            if inst is None:
                return self._deny(TrustError.NOT_FOUND, "verify_institution",
                                  caller, height, institution_id=id)
            if not inst.verified:
                updated = replace(inst, verified=True)
                self._persist_institution(updated)
                self._institutions[id] = updated
            logger.info("Institution %d verified", id)
            self._record(AuditEventType.INSTITUTION_VERIFIED, caller, height,
                         {"institution_id": id})
        return self._ok()

    def add_institution_admin(self, caller: str, id: int, address: str) -> Result:
        """Grant (or re-activate) `address` as admin of institution `id`."""
        with self._lock:
            height = self._clock.current()
            if not self.is_admin(caller):
                return self._deny(TrustError.UNAUTHORIZED, "add_institution_admin",
                                  caller, height, institution_id=id, address=address)
            if id not in self._institutions:
                return self._deny(TrustError.NOT_FOUND, "add_institution_admin",
                                  caller, height, institution_id=id, address=address)
            grant = InstitutionAdminGrant(institution_id=id, address=address, active=True)
            self._persist_grant(grant)
            self._grants[grant.key] = grant
            logger.info("Granted %s admin of institution %d", address, id)
            self._record(AuditEventType.INSTITUTION_ADMIN_GRANTED, caller, height,
                         {"institution_id": id, "address": address})
        return self._ok()

    def revoke_institution_admin(self, caller: str, id: int, address: str) -> Result:
        """Deactivate an existing grant. The record is kept with active=False."""
        with self._lock:
            height = self._clock.current()
            if not self.is_admin(caller):
                return self._deny(TrustError.UNAUTHORIZED, "revoke_institution_admin",
                                  caller, height, institution_id=id, address=address)
            grant = self._grants.get((id, address))
            if grant is None:
                return self._deny(TrustError.NOT_FOUND, "revoke_institution_admin",
                                  caller, height, institution_id=id, address=address)
            updated = replace(grant, active=False)
            self._persist_grant(updated)
            self._grants[updated.key] = updated
            logger.info("Revoked %s admin of institution %d", address, id)
            self._record(AuditEventType.INSTITUTION_ADMIN_REVOKED, caller, height,
                         {"institution_id": id, "address": address})
        return self._ok()

    # ── queries ──

    def is_institution_admin(self, id: int, address: str) -> bool:
        with self._lock:
            grant = self._grants.get((id, address))
            return grant is not None and grant.active

    def is_institution_verified(self, id: int) -> bool:
        with self._lock:
            inst = self._institutions.get(id)
            return inst is not None and inst.verified

    def get_institution(self, id: int) -> Optional[Institution]:
        with self._lock:
            inst = self._institutions.get(id)
            return replace(inst) if inst is not None else None

    def get_institution_admin(self, id: int, address: str) -> Optional[InstitutionAdminGrant]:
        with self._lock:
            grant = self._grants.get((id, address))
            return replace(grant) if grant is not None else None

    def list_institutions(self, verified: Optional[bool] = None) -> list[Institution]:
        """All institutions ordered by id, optionally filtered by verification."""
        with self._lock:
            return [
                replace(inst) for _, inst in sorted(self._institutions.items())
                if verified is None or inst.verified == verified
            ]

    def __len__(self):
        return len(self._institutions)

    def __contains__(self, id: int) -> bool:
        return id in self._institutions

    def __repr__(self):
        return f"InstitutionRegistry({len(self._institutions)} institutions)"
