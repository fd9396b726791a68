"""Core Store implementation: a JSON file with store-wide TTL expiry."""

import json
import logging
import os
import threading
import weakref
from pathlib import Path
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from .config import StoreConfig
from .errors import CorruptedStoreError, RepairError, ReservedKeyError
from .repair import repair
from .utils import (
    RESERVED_KEYS, TIMESTAMP_KEY, TTL_KEY,
    current_timestamp, is_expired, new_document, read_number, user_items,
)

logger = logging.getLogger(__name__)

# One lock per backing file, shared by every live handle in this process.
_path_locks = weakref.WeakValueDictionary()
_path_locks_guard = threading.Lock()


def _lock_key(path: Path) -> str:
    return os.path.normcase(os.path.normpath(str(path)))


def _lock_for(path: Path) -> threading.RLock:
    key = _lock_key(path)
    with _path_locks_guard:
        lock = _path_locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _path_locks[key] = lock
        return lock


def _check_key(key: str) -> None:
    if not isinstance(key, str):
        raise TypeError(f"Keys must be strings, got {type(key).__name__}")
    if key in RESERVED_KEYS:
        raise ReservedKeyError(key)


class StoreMetadata(NamedTuple):
    """Reserved fields of the current document."""
    timestamp: int
    ttl: int


class Store:
    """Key-value store persisted as a single JSON object.

    Every operation reads the whole file, changes it in memory and writes it
    back; nothing is cached between calls. Handles for the same path share an
    in-process lock, so threads never interleave a read-modify-write. Other
    processes writing the same file are not coordinated with.
    """

    def __init__(self, config: StoreConfig, clock: Optional[Callable[[], int]] = None):
        """Bind a handle to a backing file without touching it. Use Store.open()."""
        self._config = config
        self._path = config.path
        self._clock = clock or current_timestamp
        self._lock = _lock_for(self._path)

    @classmethod
    def open(cls, config: Optional[StoreConfig] = None, *, path=None,
             ttl: Optional[int] = None, reset_on_failure: Optional[bool] = None,
             clock: Optional[Callable[[], int]] = None) -> 'Store':
        """Open a store, creating, repairing or resetting its file as needed.

        Args:
            config: Base configuration (default: StoreConfig.from_env())
            path: Backing file, overrides config.path
            ttl: Expiry window in milliseconds, overrides config.ttl
            reset_on_failure: Overrides config.reset_on_failure
            clock: Callable returning the current time in milliseconds

        Returns:
            Store whose file holds a valid, non-expired document

        Raises:
            CorruptedStoreError: If the file cannot be repaired and
                reset_on_failure is False. The file is left untouched.
            OSError: If the file cannot be created, read or written
        """
        if config is None:
            config = StoreConfig.from_env()
        config = config.with_overrides(path=path, ttl=ttl, reset_on_failure=reset_on_failure)
        store = cls(config, clock=clock)
        store._initialize()
        return store

    @property
    def path(self) -> Path:
        return self._path

    @property
    def config(self) -> StoreConfig:
        return self._config

    # Open state machine

    def _initialize(self) -> None:
        with self._lock:
            if self._create():
                logger.info('Created store at %s', self._path)
                return
            document = self._load_or_repair()
            now = self._clock()
            if is_expired(document, now):
                logger.info('Store at %s expired (timestamp=%s, ttl=%s), resetting',
                            self._path, document.get(TIMESTAMP_KEY), document.get(TTL_KEY))
                self._reset(now)

    def _create(self) -> bool:
        """Create the file with a fresh document only if it does not exist yet.

        Returns:
            True if the file was created, False if it already existed
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(new_document(self._config.ttl, self._clock()), indent=2)
        try:
            with open(self._path, 'x', encoding='utf-8') as f:
                f.write(payload)
        except FileExistsError:
            return False
        return True

    def _load_or_repair(self) -> Dict[str, Any]:
        try:
            return self._load()
        except ValueError as e:
            logger.info('Store at %s is unreadable (%s), attempting repair', self._path, e)

        text = self._path.read_text(encoding='utf-8', errors='replace')
        try:
            document = repair(text)
        except RepairError as e:
            if not self._config.reset_on_failure:
                raise CorruptedStoreError(self._path, str(e)) from e
            logger.warning('Could not repair store at %s (%s), resetting', self._path, e)
            return self._reset()

        self._write(document)
        logger.info('Repaired store at %s', self._path)
        return self._load()

    def _reset(self, now: Optional[int] = None) -> Dict[str, Any]:
        document = new_document(self._config.ttl, self._clock() if now is None else now)
        self._write(document)
        return document

    # File access

    def _load(self) -> Dict[str, Any]:
        """Parse the backing file.

        Raises:
            ValueError: If the contents are not valid UTF-8 JSON or not an object
            OSError: If the file cannot be read
        """
        with open(self._path, 'r', encoding='utf-8') as f:
            document = json.load(f)
        if not isinstance(document, dict):
            raise ValueError(f'expected a JSON object, got {type(document).__name__}')
        return document

    def _read(self) -> Dict[str, Any]:
        try:
            return self._load()
        except ValueError as e:
            raise CorruptedStoreError(self._path, str(e)) from e

    def _write(self, document: Dict[str, Any]) -> None:
        # Serialize first so an unserializable value never truncates the file.
        # NaN and Infinity are not JSON.
        payload = json.dumps(document, ensure_ascii=False, indent=2, allow_nan=False)
        tmp = self._path.with_name(self._path.name + '.tmp')
        try:
            with open(tmp, 'w', encoding='utf-8') as f:
                f.write(payload)
            os.replace(tmp, self._path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    # Operations

    def set(self, key: str, value: Any) -> None:
        """Set a key to a JSON-serializable value, adding or overwriting it.

        Raises:
            TypeError: If the value cannot be serialized; the file is unchanged
            ValueError: If the value holds NaN or Infinity; the file is unchanged
            ReservedKeyError: If key is a metadata field
        """
        _check_key(key)
        with self._lock:
            document = self._read()
            document[key] = value
            self._write(document)
        logger.debug('set %r in %s', key, self._path)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by key.

        Args:
            key: The key to retrieve
            default: Returned when the key is absent

        Returns:
            The stored value (None for a stored null), or default if absent
        """
        _check_key(key)
        with self._lock:
            document = self._read()
        return document[key] if key in document else default

    def has(self, key: str) -> bool:
        """Check whether a key is present, whatever its value."""
        _check_key(key)
        with self._lock:
            return key in self._read()

    def delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key does nothing."""
        _check_key(key)
        with self._lock:
            document = self._read()
            if key not in document:
                return
            del document[key]
            self._write(document)
        logger.debug('deleted %r from %s', key, self._path)

    def clear(self) -> None:
        """Remove every user key. The timestamp and TTL are kept."""
        with self._lock:
            document = self._read()
            self._write({k: v for k, v in document.items() if k in RESERVED_KEYS})
        logger.debug('cleared %s', self._path)

    # Inspection

    def keys(self) -> List[str]:
        """List user keys in sorted order."""
        return sorted(self.items())

    def items(self) -> Dict[str, Any]:
        """Return all user key/value pairs."""
        with self._lock:
            return user_items(self._read())

    @property
    def metadata(self) -> StoreMetadata:
        with self._lock:
            document = self._read()
        return StoreMetadata(read_number(document, TIMESTAMP_KEY), read_number(document, TTL_KEY))

    @property
    def expires_at(self) -> int:
        """Timestamp in milliseconds after which the next open resets the store."""
        meta = self.metadata
        return meta.timestamp + meta.ttl

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self.items())

    def __repr__(self) -> str:
        return f'{type(self).__name__}(path={str(self._path)!r}, ttl={self._config.ttl})'


def open_store(config: Optional[StoreConfig] = None, **kwargs) -> Store:
    """Open a store. Shorthand for Store.open()."""
    return Store.open(config, **kwargs)
