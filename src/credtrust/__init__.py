"""credtrust — Credential trust network: institutions, credentials, fraud review."""

from credtrust.results import Result, TrustError, TrustOperationError
from credtrust.clock import HeightClock
from credtrust.admin import AdminRole
from credtrust.audit import AuditTrail, AuditEntry, AuditEventType
from credtrust.storage import StorageBackend, MemoryBackend, SQLiteBackend
from credtrust.institutions import Institution, InstitutionAdminGrant, InstitutionRegistry
from credtrust.credentials import Credential, CredentialLedger, VerificationOracle
from credtrust.fraud import (
    FraudReport, SuspiciousPattern, ReportStatus, FraudRegistry, CredentialOracle,
)
from credtrust.config import Settings, setup_logging
from credtrust.network import TrustNetwork

__all__ = [
    "Result",
    "TrustError",
    "TrustOperationError",
    "HeightClock",
    "AdminRole",
    "AuditTrail",
    "AuditEntry",
    "AuditEventType",
    "StorageBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "Institution",
    "InstitutionAdminGrant",
    "InstitutionRegistry",
    "Credential",
    "CredentialLedger",
    "VerificationOracle",
    "FraudReport",
    "SuspiciousPattern",
    "ReportStatus",
    "FraudRegistry",
    "CredentialOracle",
    "Settings",
    "setup_logging",
    "TrustNetwork",
]
