"""
Equipment Resolver

Fuzzy-matches spoken equipment references against a cached corpus of equipment
summaries. The corpus cache is an explicit object with its own TTL and clock, owned by
the command pipeline; a stale snapshot is acceptable for up to one TTL window because
low-scoring matches are never acted on without disambiguation.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from equiptrack.buisness.core.equipment_store import EquipmentStore, EquipmentSummary
from equiptrack.buisness.commands.intents import EquipmentRef, FreeText, Entity
from equiptrack.buisness.commands.similarity import similarity
from equiptrack.utils.clock import utcnow
from equiptrack.utils.logger import get_logger

logger = get_logger("equiptrack.buisness.commands.resolver")

# Scores above this are confident enough to fill an equipment entity
CONFIDENT_MATCH_THRESHOLD = 0.6
EXACT_CODE_SCORE = 1.0
EXACT_NAME_SCORE = 0.95


@dataclass(frozen=True)
class EquipmentMatch:
    equipment: Optional[EquipmentSummary]
    score: float


class EquipmentCorpusCache:
    """
    Per-tenant snapshot of live equipment, refreshed lazily once older than the TTL.

    ``None`` as tenant id caches the corpus across all tenants.
    """

    def __init__(self, loader: Callable[[Optional[int]], List[EquipmentSummary]],
                 ttl_seconds: int = 300, clock: Callable[[], datetime] = utcnow):
        self._loader = loader
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock
        self._entries: Dict[Optional[int], Tuple[datetime, List[EquipmentSummary]]] = {}
        self._lock = threading.Lock()

    def get(self, tenant_id: Optional[int] = None) -> List[EquipmentSummary]:
        now = self.clock()
        with self._lock:
            entry = self._entries.get(tenant_id)
            if entry is not None and now - entry[0] < self.ttl:
                return entry[1]

        corpus = self._loader(tenant_id)
        with self._lock:
            self._entries[tenant_id] = (now, corpus)
        logger.debug(f"Equipment corpus refreshed for tenant {tenant_id}: {len(corpus)} items")
        return corpus

    def invalidate(self, tenant_id: Optional[int] = None) -> None:
        """Drop one tenant's snapshot, or every snapshot when no tenant is given."""
        with self._lock:
            if tenant_id is None:
                self._entries.clear()
            else:
                self._entries.pop(tenant_id, None)
                self._entries.pop(None, None)

    def stats(self) -> Dict[str, object]:
        now = self.clock()
        with self._lock:
            return {
                'ttl_seconds': int(self.ttl.total_seconds()),
                'tenants': {
                    str(tenant_id): {
                        'items': len(corpus),
                        'age_seconds': int((now - loaded_at).total_seconds()),
                    }
                    for tenant_id, (loaded_at, corpus) in self._entries.items()
                },
            }


class EquipmentResolver:

    def __init__(self, cache: EquipmentCorpusCache, store: Optional[EquipmentStore] = None):
        self.cache = cache
        self.store = store or EquipmentStore()

    def resolve(self, query: str, tenant_id: Optional[int] = None) -> EquipmentMatch:
        """
        Best equipment for ``query``.

        An exact code match scores 1.0 and an exact name match 0.95, both returned
        immediately. Otherwise every candidate scores the better of its code and name
        similarity and the best candidate wins. An empty corpus scores 0.
        """
        text = ' '.join((query or '').strip().lower().split())
        corpus = self.cache.get(tenant_id)
        if not text or not corpus:
            return EquipmentMatch(None, 0.0)

        for candidate in corpus:
            if candidate.code.lower() == text:
                return EquipmentMatch(candidate, EXACT_CODE_SCORE)

        for candidate in corpus:
            if candidate.name.lower() == text:
                return EquipmentMatch(candidate, EXACT_NAME_SCORE)

        best, best_score = None, 0.0
        for candidate in corpus:
            score = max(
                similarity(text, candidate.code.lower()),
                similarity(text, candidate.name.lower()),
            )
            if best is None or score > best_score:
                best, best_score = candidate, score

        return EquipmentMatch(best, best_score)

    def resolve_entity(self, query: str, tenant_id: Optional[int] = None) -> Entity:
        """EquipmentRef when the match is confident, otherwise the raw text."""
        match = self.resolve(query, tenant_id)
        if match.equipment is not None and match.score > CONFIDENT_MATCH_THRESHOLD:
            return EquipmentRef(match.equipment, match.score)
        return FreeText(query.strip())

    def search(self, query: str, tenant_id: Optional[int] = None, limit: int = 10):
        """Substring candidates for explicit disambiguation."""
        return self.store.search(query, tenant_id=tenant_id, limit=limit)
