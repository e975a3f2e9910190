# fieldgallery/services/query_cache.py
# Small query cache keyed by tuples, e.g. ("/api/projects", 7, "files").
# Invalidating a key marks it stale and refetches it right away when
# somebody is subscribed; otherwise the next get() refetches.

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

QueryKey = Tuple[Any, ...]
Fetcher = Callable[[], Any]
Listener = Callable[[QueryKey, Any], None]


def project_files_key(project_id: Any) -> QueryKey:
    return ("/api/projects", project_id, "files")


@dataclass
class _Entry:
    fetcher: Fetcher
    data: Any = None
    stale: bool = True
    fetch_count: int = 0


class QueryCache:
    def __init__(self) -> None:
        self._entries: Dict[QueryKey, _Entry] = {}
        self._listeners: Dict[QueryKey, List[Listener]] = {}

    def register(self, key: QueryKey, fetcher: Fetcher) -> None:
        """Attach (or replace) the fetcher for a key; existing data is kept but marked stale."""
        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = _Entry(fetcher)
        else:
            entry.fetcher = fetcher
            entry.stale = True

    def subscribe(self, key: QueryKey, listener: Listener) -> Callable[[], None]:
        """listener(key, data) runs after every successful fetch; returns an unsubscribe callable."""
        self._listeners.setdefault(key, []).append(listener)

        def _unsubscribe() -> None:
            subs = self._listeners.get(key, [])
            if listener in subs:
                subs.remove(listener)
        return _unsubscribe

    def get(self, key: QueryKey) -> Any:
        entry = self._entry(key)
        if entry.stale:
            return self.refetch(key)
        return entry.data

    def peek(self, key: QueryKey) -> Any:
        """Cached data without fetching (None if never fetched)."""
        entry = self._entries.get(key)
        return entry.data if entry else None

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale

    def fetch_count(self, key: QueryKey) -> int:
        entry = self._entries.get(key)
        return entry.fetch_count if entry else 0

    def refetch(self, key: QueryKey) -> Any:
        """Run the fetcher now. Fetcher errors propagate; previous data is kept."""
        entry = self._entry(key)
        logger.debug(f"fetching {key}")
        data = entry.fetcher()
        entry.data = data
        entry.stale = False
        entry.fetch_count += 1
        for listener in list(self._listeners.get(key, [])):
            listener(key, data)
        return data

    def invalidate(self, key: QueryKey) -> List[QueryKey]:
        """
        Mark every registered key starting with `key` stale; refetch the
        ones with subscribers. Returns the keys that were invalidated.
        """
        hit = [k for k in self._entries if k[:len(key)] == key]
        for k in hit:
            self._entries[k].stale = True
        logger.debug(f"invalidated {hit or key}")
        for k in hit:
            if self._listeners.get(k):
                self.refetch(k)
        return hit

    def _entry(self, key: QueryKey) -> _Entry:
        try:
            return self._entries[key]
        except KeyError:
            raise KeyError(f"no fetcher registered for query key {key!r}") from None
