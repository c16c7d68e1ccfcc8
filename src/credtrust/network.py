"""
credtrust.network — Wire the three registries into one trust network.

    network = TrustNetwork(admin="ST1ADMIN")
    network.institutions.register_institution("ST1ADMIN", 1, "Harvard University", "USA", "https://harvard.edu")
    network.institutions.verify_institution("ST1ADMIN", 1)
    network.institutions.add_institution_admin("ST1ADMIN", 1, "ST2REGISTRAR")
    cred_id = network.credentials.issue_credential(
        "ST2REGISTRAR", 1, "ST3STUDENT", "Degree", "B.Sc CS", None, "{}"
    ).unwrap()
    network.clock.advance()
    network.fraud.report_fraud("ST4EMPLOYER", cred_id, "diploma mill")
"""

from __future__ import annotations

import logging
from typing import Optional

from credtrust.admin import AdminRole
from credtrust.audit import AuditTrail
from credtrust.clock import HeightClock
from credtrust.config import Settings, setup_logging
from credtrust.credentials import CredentialLedger
from credtrust.fraud import FraudRegistry
from credtrust.institutions import InstitutionRegistry
from credtrust.storage import MemoryBackend, SQLiteBackend, StorageBackend

logger = logging.getLogger(__name__)


class TrustNetwork:
    """InstitutionRegistry <- CredentialLedger <- FraudRegistry, sharing
    one admin role, one height clock, one backend and one audit trail."""

    def __init__(
        self,
        admin: str,
        clock: Optional[HeightClock] = None,
        backend: Optional[StorageBackend] = None,
        audit: Optional[AuditTrail] = None,
    ):
        self.clock = clock if clock is not None else HeightClock()
        self.backend = backend if backend is not None else MemoryBackend()
        self.audit = audit if audit is not None else AuditTrail()
        self.admin_role = AdminRole(admin, backend=self.backend)

        shared = dict(admin=self.admin_role, clock=self.clock,
                      backend=self.backend, audit=self.audit)
        self.institutions = InstitutionRegistry(**shared)
        self.credentials = CredentialLedger(self.institutions, **shared)
        self.fraud = FraudRegistry(self.credentials, **shared)
        logger.info("Trust network ready (admin=%s, height=%d)",
                    self.admin_role.admin, self.clock.current())

    @classmethod
    def from_settings(cls, settings: Settings) -> "TrustNetwork":
        clock = HeightClock(settings.start_height)
        setup_logging(settings.log_level, clock=clock)
        backend = SQLiteBackend(settings.db_path) if settings.db_path else MemoryBackend()
        return cls(settings.admin, clock=clock, backend=backend)

    @property
    def admin(self) -> str:
        return self.admin_role.admin

    def stats(self) -> dict:
        """Counts across all partitions."""
        return {
            "height": self.clock.current(),
            "admin": self.admin,
            "institutions": len(self.institutions),
            "verified_institutions": len(self.institutions.list_institutions(verified=True)),
            "credentials": self.credentials.credential_count,
            "fraud_reports": self.fraud.report_count,
            "pending_reports": len(self.fraud.pending_reports()),
            "suspicious_patterns": self.fraud.pattern_count,
            "audit_entries": self.audit.size,
        }
