"""Process-scoped cache of user type configuration per scope key."""
from __future__ import annotations
import threading
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

UserTypeConfig = Mapping[str, Tuple[str, ...]]

EMPTY_CONFIG: UserTypeConfig = MappingProxyType({})


def freeze_config(config: Mapping[str, List[str]]) -> UserTypeConfig:
    """Return a read-only copy so readers never observe a partially built map."""
    return MappingProxyType({user_type: tuple(sub_types or ()) for user_type, sub_types in config.items()})


class TaxonomyCache:
    """Thread-safe scope key -> user type configuration store.

    Entries are only added: an empty configuration is never stored and a
    stored configuration is never replaced. Fetches for the same scope key
    are serialized by a per-key lock; other scope keys are not blocked.

    Usage:
        cache = TaxonomyCache()
        config = cache.get_or_fetch("ka", lambda scope: provider.get_user_type_config(scope))
    """

    def __init__(self):
        self._entries: Dict[str, UserTypeConfig] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, scope_key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(scope_key)
            if lock is None:
                lock = self._locks[scope_key] = threading.Lock()
            return lock

    def get(self, scope_key: str) -> Optional[UserTypeConfig]:
        return self._entries.get(scope_key)

    def __contains__(self, scope_key: str) -> bool:
        return scope_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def put_if_absent(self, scope_key: str, config: Mapping[str, List[str]]) -> UserTypeConfig:
        """Store a non-empty configuration unless the scope already has one.

        Returns:
            The configuration held for the scope after the call (may be empty)
        """
        with self._lock_for(scope_key):
            return self._store(scope_key, config)

    def _store(self, scope_key: str, config: Mapping[str, List[str]]) -> UserTypeConfig:
        existing = self._entries.get(scope_key)
        if existing:
            return existing
        if not config:
            return EMPTY_CONFIG
        frozen = freeze_config(config)
        self._entries[scope_key] = frozen
        return frozen

    def get_or_fetch(
        self,
        scope_key: str,
        fetch: Callable[[str], Mapping[str, List[str]]],
    ) -> UserTypeConfig:
        """Return the cached configuration, fetching it on a miss.

        An empty fetch result is returned as an empty mapping and not cached,
        so the next call fetches again.
        """
        cached = self._entries.get(scope_key)
        if cached:
            return cached
        with self._lock_for(scope_key):
            cached = self._entries.get(scope_key)
            if cached:
                return cached
            return self._store(scope_key, fetch(scope_key) or {})

    def snapshot(self) -> Dict[str, UserTypeConfig]:
        return dict(self._entries)
