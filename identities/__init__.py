"""Named Git author identities and per-workspace switching."""

from identities.manager import IdentityManager
from identities.models import Identity
from identities.store import IdentityStore, MemoryIdentityStore, YamlIdentityStore

__all__ = [
    "Identity",
    "IdentityManager",
    "IdentityStore",
    "MemoryIdentityStore",
    "YamlIdentityStore",
]
