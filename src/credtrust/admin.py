"""credtrust.admin — The process-wide administrator identity.

One AdminRole is shared by every registry in a network, so transferring
admin through any registry moves it for all of them.
"""

import logging
import threading
from typing import Optional

from credtrust.results import Result, TrustError
from credtrust.storage import StorageBackend

logger = logging.getLogger(__name__)

ADMIN_KEY = "config:admin"


def _check_identity(identity) -> None:
    if not isinstance(identity, str) or not identity:
        raise ValueError("admin identity must be a non-empty string")


class AdminRole:
    """Holds the single admin identity gating administrative operations."""

    def __init__(self, admin: str, backend: Optional[StorageBackend] = None):
        _check_identity(admin)
        self._backend = backend
        self._lock = threading.Lock()
        self._admin = admin
        if backend is not None:
            stored = backend.load(ADMIN_KEY)
            if stored and stored.get("admin"):
                self._admin = stored["admin"]
            else:
                backend.save(ADMIN_KEY, {"admin": admin})

    @property
    def admin(self) -> str:
        with self._lock:
            return self._admin

    def is_admin(self, caller: str) -> bool:
        with self._lock:
            return caller == self._admin

    def transfer(self, caller: str, new_admin: str, codes: Optional[dict] = None) -> Result:
        """Hand admin to new_admin. Only the current admin may do this."""
        _check_identity(new_admin)
        with self._lock:
            if caller != self._admin:
                logger.warning("admin transfer denied for %s", caller)
                return Result.failure(TrustError.UNAUTHORIZED, codes)
            if self._backend is not None:
                self._backend.save(ADMIN_KEY, {"admin": new_admin})
            previous, self._admin = self._admin, new_admin
        logger.info("admin transferred from %s to %s", previous, new_admin)
        return Result.success(True)

    def reset(self, admin: str) -> None:
        """Force the admin identity. Intended for test harnesses only."""
        _check_identity(admin)
        with self._lock:
            self._admin = admin
            if self._backend is not None:
                self._backend.save(ADMIN_KEY, {"admin": admin})

    def __repr__(self):
        return f"AdminRole({self._admin})"
