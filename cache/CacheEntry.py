# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-21
# Description: CacheEntry
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class CacheEntry:
    """One cached value. Times are clock seconds; expires_at None means no expiry."""
    data: Any
    created_at: float
    expires_at: Optional[float]
    last_accessed_at: float
    size: int
    persist: bool = False

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "last_accessed_at": self.last_accessed_at,
            "size": self.size,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "CacheEntry":
        return CacheEntry(
            data=d["data"],
            created_at=float(d["created_at"]),
            expires_at=None if d.get("expires_at") is None else float(d["expires_at"]),
            last_accessed_at=float(d.get("last_accessed_at", d["created_at"])),
            size=int(d["size"]),
            persist=True,
        )
