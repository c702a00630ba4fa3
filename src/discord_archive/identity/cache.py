from typing import Dict, Optional

from ..models.archive_models import Identity

class IdentityCache:
    """Append-only id -> Identity store, shared by every request in the process.

    Entries are never evicted or invalidated. A later write for the same id
    replaces the earlier one; concurrent lookups of one id converge on
    equivalent identities, so last write wins.
    """

    def __init__(self):
        self._identities: Dict[str, Identity] = {}

    def get(self, user_id: str) -> Optional[Identity]:
        return self._identities.get(user_id)

    def set(self, user_id: str, identity: Identity) -> Identity:
        self._identities[user_id] = identity
        return identity

    def __len__(self) -> int:
        return len(self._identities)
