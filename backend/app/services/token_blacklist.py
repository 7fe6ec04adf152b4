"""Revoked bearer tokens, kept until the token would have expired anyway.

With the memory backend the store is bounded by
``TOKEN_BLACKLIST_MAX_ENTRIES`` and evicts least recently used entries when
full, so a revoked token can be accepted again once that many newer
revocations push it out. The Redis backend holds every entry until its TTL
elapses.
"""

import hashlib
import logging

from app.services.cache import TTLStore

logger = logging.getLogger(__name__)


class TokenBlacklist:
    def __init__(self, store: TTLStore) -> None:
        self._store = store

    @staticmethod
    def _key(token: str) -> str:
        return "quizhub:blacklist:" + hashlib.sha256(token.encode()).hexdigest()

    def revoke(self, token: str, ttl: int) -> None:
        """Reject *token* for the next *ttl* seconds. Expired tokens need no entry."""
        if ttl <= 0:
            return
        self._store.set(self._key(token), True, ttl)
        logger.debug("Token revoked for %ds", ttl)

    def is_revoked(self, token: str) -> bool:
        return bool(self._store.get(self._key(token)))
