"""Base registry: shared admin, height clock, persistence and audit plumbing."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from credtrust.admin import AdminRole
from credtrust.audit import AuditEventType, AuditTrail
from credtrust.clock import HeightClock
from credtrust.results import Result, TrustError
from credtrust.storage import MemoryBackend, StorageBackend


class BaseRegistry:
    """Common state for every registry.

    Subclasses own their record maps and set ERROR_CODES to their numeric
    error table. All mutations, their height read and their audit entry run under
    self._lock. Rejections are logged to the subclass module's logger.
    """

    ERROR_CODES: dict[TrustError, int] = {}

    def __init__(
        self,
        admin: AdminRole | str,
        clock: Optional[HeightClock] = None,
        backend: Optional[StorageBackend] = None,
        audit: Optional[AuditTrail] = None,
    ):
        self._backend = backend if backend is not None else MemoryBackend()
        if isinstance(admin, AdminRole):
            self._admin = admin
        else:
            self._admin = AdminRole(admin, backend=self._backend)
        self._clock = clock if clock is not None else HeightClock()
        self._audit = audit
        self._lock = threading.RLock()

    @property
    def admin(self) -> str:
        return self._admin.admin

    @property
    def admin_role(self) -> AdminRole:
        return self._admin

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def is_admin(self, caller: str) -> bool:
        return self._admin.is_admin(caller)

    def transfer_admin(self, caller: str, new_admin: str) -> Result:
        """Replace the process-wide admin. Admin-only."""
        with self._lock:
            height = self._clock.current()
            result = self._admin.transfer(caller, new_admin, self.ERROR_CODES)
            if result.ok:
                self._record(AuditEventType.ADMIN_TRANSFERRED, caller, height,
                             {"new_admin": new_admin})
            else:
                self._record(AuditEventType.ACCESS_DENIED, caller, height,
                             {"operation": "transfer_admin", "error": result.error.value})
        return result

    # ── helpers ──

    def _ok(self, value=True) -> Result:
        return Result.success(value)

    def _deny(self, error: TrustError, operation: str, caller: str, height: int,
              **details) -> Result:
        """Build a failure result, log it and record the denial."""
        logging.getLogger(type(self).__module__).warning(
            "%s rejected for %s: %s %s", operation, caller, error.value, details)
        self._record(AuditEventType.ACCESS_DENIED, caller, height,
                     {"operation": operation, "error": error.value, **details})
        return Result.failure(error, self.ERROR_CODES)

    def _record(self, event_type: AuditEventType, actor: str, height: int,
                details: dict) -> None:
        if self._audit is not None:
            self._audit.log(event_type, actor=actor, height=height, details=details)
