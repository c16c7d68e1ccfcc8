"""
credtrust Audit Trail — tamper-evident log of trust decisions.

Hash-chained audit entries ensure integrity. Each entry includes the hash
of the previous entry, creating a verifiable chain. Any modification to
historical entries breaks the chain and is detectable.

Registries append an entry for every accepted mutation and every denied
call, stamped with the caller and the height the operation ran at.
"""

import hashlib
import json
import threading
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional


class AuditEventType(str, Enum):
    """Types of auditable events in the credential network."""
    INSTITUTION_REGISTERED = "institution.registered"
    INSTITUTION_VERIFIED = "institution.verified"
    INSTITUTION_ADMIN_GRANTED = "institution_admin.granted"
    INSTITUTION_ADMIN_REVOKED = "institution_admin.revoked"
    CREDENTIAL_ISSUED = "credential.issued"
    CREDENTIAL_REVOKED = "credential.revoked"
    FRAUD_REPORTED = "fraud.reported"
    FRAUD_PROCESSED = "fraud.processed"
    PATTERN_ADDED = "pattern.added"
    ADMIN_TRANSFERRED = "admin.transferred"
    ACCESS_DENIED = "access.denied"


@dataclass
class AuditEntry:
    """A single audit log entry with hash-chain integrity."""
    event_type: str
    actor: str
    height: int
    details: dict
    entry_hash: str = ""
    prev_hash: str = ""
    sequence: int = 0

    def compute_hash(self) -> str:
        """Compute SHA-256 hash of this entry's content + prev_hash."""
        content = json.dumps({
            "event_type": self.event_type,
            "actor": self.actor,
            "height": self.height,
            "details": self.details,
            "prev_hash": self.prev_hash,
            "sequence": self.sequence,
        }, sort_keys=True)
        return hashlib.sha256(content.encode()).hexdigest()

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        return cls(**data)


class AuditTrail:
    """
    Tamper-evident audit trail for registry operations.

    Usage:
        trail = AuditTrail()
        trail.log(AuditEventType.CREDENTIAL_ISSUED, actor="ST1...", height=120,
                  details={"credential_id": 1})

        assert trail.verify_integrity()[0]

        entries = trail.query(actor="ST1...")
        entries = trail.query(event_type=AuditEventType.ACCESS_DENIED)
        entries = trail.query(since_height=100)
    """

    def __init__(self):
        self._entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    def log(self, event_type: AuditEventType, actor: str, height: int,
            details: Optional[dict] = None) -> AuditEntry:
        """Append an audit entry to the trail."""
        with self._lock:
            prev_hash = self._entries[-1].entry_hash if self._entries else "genesis"
            entry = AuditEntry(
                event_type=event_type.value if isinstance(event_type, AuditEventType) else event_type,
                actor=actor,
                height=height,
                details=details or {},
                prev_hash=prev_hash,
                sequence=len(self._entries),
            )
            entry.entry_hash = entry.compute_hash()
            self._entries.append(entry)
        return entry

    def verify_integrity(self) -> tuple[bool, Optional[int]]:
        """
        Verify the entire chain. Returns (True, None) if intact,
        or (False, index) of first corrupted entry.
        """
        with self._lock:
            entries = list(self._entries)

        for i, entry in enumerate(entries):
            if entry.entry_hash != entry.compute_hash():
                return False, i
            expected_prev = "genesis" if i == 0 else entries[i - 1].entry_hash
            if entry.prev_hash != expected_prev:
                return False, i

        return True, None

    def query(self, actor: Optional[str] = None,
              event_type: Optional[AuditEventType] = None,
              since_height: Optional[int] = None,
              until_height: Optional[int] = None,
              limit: int = 100) -> list[AuditEntry]:
        """Query audit entries with filters, most recent `limit` in log order."""
        results = []
        event_val = event_type.value if isinstance(event_type, AuditEventType) else event_type

        with self._lock:
            entries = list(self._entries)

        for entry in reversed(entries):
            if actor and entry.actor != actor:
                continue
            if event_val and entry.event_type != event_val:
                continue
            if since_height is not None and entry.height < since_height:
                continue
            if until_height is not None and entry.height > until_height:
                continue
            results.append(entry)
            if len(results) >= limit:
                break

        return list(reversed(results))

    def export_json(self) -> str:
        """Export full trail as JSON."""
        with self._lock:
            return json.dumps([e.to_dict() for e in self._entries], indent=2)

    @classmethod
    def from_json(cls, data: str) -> "AuditTrail":
        """Import trail from JSON. Verifies integrity after import."""
        trail = cls()
        for entry_data in json.loads(data):
            trail._entries.append(AuditEntry.from_dict(entry_data))

        ok, bad_idx = trail.verify_integrity()
        if not ok:
            raise ValueError(f"Imported trail has corrupted entry at index {bad_idx}")

        return trail

    @property
    def size(self) -> int:
        return len(self._entries)

    def summary(self) -> dict:
        """Get a summary of the audit trail."""
        event_counts: dict[str, int] = {}
        actors: set[str] = set()

        with self._lock:
            entries = list(self._entries)

        for entry in entries:
            event_counts[entry.event_type] = event_counts.get(entry.event_type, 0) + 1
            actors.add(entry.actor)

        return {
            "total_entries": len(entries),
            "unique_actors": len(actors),
            "event_counts": event_counts,
            "first_height": entries[0].height if entries else None,
            "last_height": entries[-1].height if entries else None,
            "integrity_verified": self.verify_integrity()[0],
        }
