import logging
import uuid
from typing import Optional

from django.conf import settings
from django.core.cache import cache as default_cache

from trilhas.services.walker import WalkerState

log = logging.getLogger(__name__)


class RunStore:
    """
    Ephemeral walker state keyed by run id. Entries expire after `ttl`
    seconds; a lost run just means the client restarts the trilha.
    """
    prefix = "trilha-run"

    def __init__(self, cache=None, ttl: Optional[int] = None):
        self.cache = cache if cache is not None else default_cache
        self.ttl = ttl if ttl is not None else getattr(settings, "TRILHA_RUN_TTL", 60 * 60)

    def _key(self, run_id: str) -> str:
        return f"{self.prefix}:{run_id}"

    def create(self, state: WalkerState) -> str:
        run_id = uuid.uuid4().hex
        self.save(run_id, state)
        return run_id

    def get(self, run_id: str) -> Optional[WalkerState]:
        data = self.cache.get(self._key(run_id))
        if data is None:
            return None
        try:
            return WalkerState.from_dict(data)
        except (TypeError, ValueError):
            log.warning("dropping unreadable run %s", run_id)
            self.discard(run_id)
            return None

    def save(self, run_id: str, state: WalkerState) -> None:
        self.cache.set(self._key(run_id), state.to_dict(), self.ttl)

    def discard(self, run_id: str) -> None:
        self.cache.delete(self._key(run_id))
