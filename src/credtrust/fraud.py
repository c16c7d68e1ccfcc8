"""
credtrust.fraud — Fraud reports and suspicious-pattern definitions.

Anyone may flag an existing credential. The admin reviews each report once,
moving it from "pending" to a terminal status of their choosing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Optional, Protocol

from credtrust.audit import AuditEventType
from credtrust.base import BaseRegistry
from credtrust.results import Result, TrustError
from credtrust.storage import counter_record

logger = logging.getLogger(__name__)

REPORT_PREFIX = "fraud_report:"
PATTERN_PREFIX = "suspicious_pattern:"
REPORT_COUNTER = "fraud_report"
PATTERN_COUNTER = "suspicious_pattern"


class CredentialOracle(Protocol):
    """Existence check the fraud registry depends on."""

    def credential_exists(self, credential_id: int) -> bool: ...


class ReportStatus(str, Enum):
    """Common report statuses. Any string is accepted as a review outcome."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@dataclass
class FraudReport:
    """A claim that a credential is fraudulent, awaiting admin review."""
    report_id: int
    reporter: str
    credential_id: int
    reason: str
    report_date: int
    status: str = ReportStatus.PENDING.value

    @property
    def is_pending(self) -> bool:
        return self.status == ReportStatus.PENDING.value

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "FraudReport":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class SuspiciousPattern:
    pattern_id: int
    pattern_type: str
    description: str
    severity: int
    created_by: str
    creation_date: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "SuspiciousPattern":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


class FraudRegistry(BaseRegistry):
    """Registry of fraud reports and the patterns reviewers look for."""

    ERROR_CODES = {
        TrustError.UNAUTHORIZED: 1,
        TrustError.NOT_FOUND: 2,
        TrustError.ALREADY_PROCESSED: 3,
    }

    def __init__(self, credentials: CredentialOracle, admin, clock=None,
                 backend=None, audit=None):
        if credentials is None:
            raise ValueError("FraudRegistry requires a credential existence oracle")
        super().__init__(admin, clock=clock, backend=backend, audit=audit)
        self._credentials = credentials
        self._reports: dict[int, FraudReport] = {}
        self._patterns: dict[int, SuspiciousPattern] = {}
        self._report_counter = 0
        self._pattern_counter = 0
        self._hydrate()

    def _hydrate(self) -> None:
        for data in self._backend.load_prefix(REPORT_PREFIX).values():
            report = FraudReport.from_dict(data)
            self._reports[report.report_id] = report
        for data in self._backend.load_prefix(PATTERN_PREFIX).values():
            pattern = SuspiciousPattern.from_dict(data)
            self._patterns[pattern.pattern_id] = pattern
        self._report_counter = max(self._backend.load_counter(REPORT_COUNTER),
                                   max(self._reports, default=0))
        self._pattern_counter = max(self._backend.load_counter(PATTERN_COUNTER),
                                    max(self._patterns, default=0))

    # ── mutations ──

    def report_fraud(self, caller: str, credential_id: int, reason: str) -> Result:
        """File a fraud report against an existing credential. Open to anyone."""
        with self._lock:
            height = self._clock.current()
            if not self._credentials.credential_exists(credential_id):
                return self._deny(TrustError.NOT_FOUND, "report_fraud",
                                  caller, height, credential_id=credential_id)
            report_id = self._report_counter + 1
            report = FraudReport(
                report_id=report_id,
                reporter=caller,
                credential_id=credential_id,
                reason=reason,
                report_date=height,
                status=ReportStatus.PENDING.value,
            )
            self._backend.save_many({
                f"{REPORT_PREFIX}{report_id}": report.to_dict(),
                **counter_record(REPORT_COUNTER, report_id),
            })
            self._reports[report_id] = report
            self._report_counter = report_id

            logger.info("Fraud report %d filed against credential %d by %s",
                        report_id, credential_id, caller)
            self._record(AuditEventType.FRAUD_REPORTED, caller, height,
                         {"report_id": report_id, "credential_id": credential_id})
        return self._ok(report_id)

    def process_fraud_report(self, caller: str, report_id: int,
                             new_status: ReportStatus | str) -> Result:
        """Close a pending report with the admin's verdict. Single transition."""
        status = new_status.value if isinstance(new_status, ReportStatus) else new_status
        with self._lock:
            height = self._clock.current()
            if not self.is_admin(caller):
                return self._deny(TrustError.UNAUTHORIZED, "process_fraud_report",
                                  caller, height, report_id=report_id)
            report = self._reports.get(report_id)
            if report is None:
                return self._deny(TrustError.NOT_FOUND, "process_fraud_report",
                                  caller, height, report_id=report_id)
            if not report.is_pending:
                return self._deny(TrustError.ALREADY_PROCESSED, "process_fraud_report",
                                  caller, height, report_id=report_id, status=report.status)
            updated = replace(report, status=status)
            self._backend.save(f"{REPORT_PREFIX}{report_id}", updated.to_dict())
            self._reports[report_id] = updated

            logger.info("Fraud report %d processed: %s", report_id, status)
            self._record(AuditEventType.FRAUD_PROCESSED, caller, height,
                         {"report_id": report_id, "status": status})
        return self._ok()

    def add_suspicious_pattern(self, caller: str, pattern_type: str,
                               description: str, severity: int) -> Result:
        """Define a new suspicious pattern. Admin-only."""
        with self._lock:
            height = self._clock.current()
            if not self.is_admin(caller):
                return self._deny(TrustError.UNAUTHORIZED, "add_suspicious_pattern",
                                  caller, height, pattern_type=pattern_type)
            pattern_id = self._pattern_counter + 1
            pattern = SuspiciousPattern(
                pattern_id=pattern_id,
                pattern_type=pattern_type,
                description=description,
                severity=severity,
                created_by=caller,
                creation_date=height,
            )
            self._backend.save_many({
                f"{PATTERN_PREFIX}{pattern_id}": pattern.to_dict(),
                **counter_record(PATTERN_COUNTER, pattern_id),
            })
            self._patterns[pattern_id] = pattern
            self._pattern_counter = pattern_id

            logger.info("Suspicious pattern %d added: %s (severity %d)",
                        pattern_id, pattern_type, severity)
            self._record(AuditEventType.PATTERN_ADDED, caller, height,
                         {"pattern_id": pattern_id, "pattern_type": pattern_type})
        return self._ok(pattern_id)

    # ── queries ──

    def get_fraud_report(self, report_id: int) -> Optional[FraudReport]:
        with self._lock:
            report = self._reports.get(report_id)
            return replace(report) if report is not None else None

    def get_suspicious_pattern(self, pattern_id: int) -> Optional[SuspiciousPattern]:
        with self._lock:
            pattern = self._patterns.get(pattern_id)
            return replace(pattern) if pattern is not None else None

    def reports_for_credential(self, credential_id: int) -> list[FraudReport]:
        with self._lock:
            return [replace(r) for _, r in sorted(self._reports.items())
                    if r.credential_id == credential_id]

    def pending_reports(self) -> list[FraudReport]:
        """Review queue, oldest first."""
        with self._lock:
            return [replace(r) for _, r in sorted(self._reports.items()) if r.is_pending]

    @property
    def report_count(self) -> int:
        with self._lock:
            return self._report_counter

    @property
    def pattern_count(self) -> int:
        with self._lock:
            return self._pattern_counter

    def __repr__(self):
        return f"FraudRegistry({len(self._reports)} reports, {len(self._patterns)} patterns)"
