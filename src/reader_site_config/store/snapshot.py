"""Guarded holder for swapping the live configuration store."""

import logging
import threading
from typing import Optional

from .configuration_store import ConfigurationStore


logger = logging.getLogger(__name__)


class StoreSnapshot:
    """
    Reference to the store readers should query.

    Replacement stores are built completely before ``swap`` publishes
    them, so readers see either the old table or the new one.
    """

    def __init__(self, store: Optional[ConfigurationStore] = None):
        self._lock = threading.Lock()
        self._store = store if store is not None else ConfigurationStore()

    def current(self) -> ConfigurationStore:
        """Get the store currently in service."""
        with self._lock:
            return self._store

    def swap(self, store: ConfigurationStore) -> ConfigurationStore:
        """Publish ``store`` and return the one it replaces."""
        with self._lock:
            previous, self._store = self._store, store
        logger.info(
            f"Swapped configuration store: {len(previous)} -> {len(store)} domains"
        )
        return previous

    def reload(self, payload: bytes) -> ConfigurationStore:
        """
        Deserialize ``payload`` and publish the result.

        The live store is left untouched if decoding fails.
        """
        store = ConfigurationStore.deserialize(payload)
        self.swap(store)
        return store
