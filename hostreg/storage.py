# hostreg/storage.py
import threading
from typing import Dict, Optional, Tuple

from hostreg.utils import gen_id


class HostnameRegistry:
    """In-memory hostname -> value mapping shared by every connection.

    Each entry remembers the owner nonce minted by the POST that wrote it,
    so a later DELETE can be checked against the current entry only.
    All access goes through one lock, held for a single operation.
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[str, str]] = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, hostname):
        with self._lock:
            return hostname in self._entries

    def get(self, hostname: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(hostname)
        return entry[0] if entry else None

    def owner_of(self, hostname: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(hostname)
        return entry[1] if entry else None

    def put(self, hostname: str, value: str) -> str:
        """Insert or overwrite an entry and return its fresh owner nonce."""
        nonce = gen_id("owner")
        with self._lock:
            self._entries[hostname] = (value, nonce)
        return nonce

    def remove(self, hostname: str, owner: Optional[str] = None) -> bool:
        # compare-and-delete: a stale owner nonce leaves the entry alone
        with self._lock:
            entry = self._entries.get(hostname)
            if entry is None:
                return False
            if owner is not None and entry[1] != owner:
                return False
            del self._entries[hostname]
            return True

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return {k: v for k, (v, _) in self._entries.items()}
