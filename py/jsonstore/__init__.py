"""jsonstore - A single-file JSON key-value store with TTL expiry and self-repair."""

import logging

from .config import StoreConfig, DEFAULT_TTL
from .errors import StoreError, CorruptedStoreError, RepairError, ReservedKeyError
from .store import Store, StoreMetadata, open_store

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Store", "StoreMetadata", "open_store",
    "StoreConfig", "DEFAULT_TTL",
    "StoreError", "CorruptedStoreError", "RepairError", "ReservedKeyError",
]
