"""
Local persisted state for the client-side stores.

Two independent entries are kept: the session identity and the post
cache. Both live in a Django cache backend chosen by LOCAL_STATE_CACHE;
point it at a FileBasedCache (or any persistent backend) to keep them
across restarts.
"""
import logging

from django.core.cache import caches

from ..conf import blog_settings

logger = logging.getLogger(__name__)


class LocalState:
    """Small key-value wrapper over a Django cache alias."""

    def __init__(self, alias=None):
        self.alias = alias or blog_settings.LOCAL_STATE_CACHE

    @property
    def cache(self):
        return caches[self.alias]

    def load(self, key, default=None):
        return self.cache.get(key, default)

    def save(self, key, value):
        # Entries never expire; they are replaced or cleared explicitly.
        self.cache.set(key, value, timeout=None)

    def clear(self, key):
        self.cache.delete(key)
        logger.debug("Cleared local state entry %s", key)
