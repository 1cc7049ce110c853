"""Type cache keyed by generation signature."""

import logging
import threading
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from typing import Literal

from interpose.options import ProxyGenerationOptions

logger = logging.getLogger(__name__)

ProxyKind = Literal[
    "class",
    "class_with_target",
    "interface_with_target",
    "interface_without_target",
]


@dataclass(frozen=True)
class CacheKey:
    """Structural identity of one generated proxy type."""

    kind: ProxyKind
    target: object
    interfaces: frozenset[type]
    options_signature: tuple[object, ...]
    target_for_invocation: type | None = field(default=None)

    @classmethod
    def create(
        cls,
        kind: ProxyKind,
        target: object,
        interfaces: Iterable[type],
        options: ProxyGenerationOptions,
        target_for_invocation: type | None = None,
    ) -> "CacheKey":
        """Build a key from generation inputs.

        :param kind: Proxy kind.
        :param target: Target class, interface or generic alias.
        :param interfaces: Additional interfaces, in any order.
        :param options: Generation options.
        :param target_for_invocation: Concrete class of the proxy target, for with-target kinds.
        :returns: Cache key.
        """
        return cls(
            kind=kind,
            target=target,
            interfaces=frozenset(interfaces),
            options_signature=options.signature(),
            target_for_invocation=target_for_invocation,
        )


@dataclass
class _KeyLock:
    """Lock serializing synthesis of one key, with the number of requests holding it."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class TypeCache:
    """Store generated types so each signature is synthesized at most once.

    Synthesis runs under a lock owned by its key: concurrent requests for the
    same key wait for the first one, requests for different keys do not wait
    on each other. A failed synthesis stores nothing and may be retried. A key
    lock is released once no request holds it, whether synthesis succeeded or not.
    """

    _lock: threading.Lock
    _types: dict[CacheKey, type]
    _key_locks: dict[CacheKey, _KeyLock]

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._lock = threading.Lock()
        self._types = {}
        self._key_locks = {}

    def get(self, key: CacheKey) -> type | None:
        """Return a cached type.

        :param key: Cache key.
        :returns: Generated type or ``None``.
        """
        with self._lock:
            return self._types.get(key)

    def get_or_create(self, key: CacheKey, factory: Callable[[], type]) -> type:
        """Return the type for ``key``, synthesizing it on a miss.

        :param key: Cache key.
        :param factory: Synthesis routine; invoked at most once per stored key.
        :returns: Generated type.
        :raises Exception: Whatever ``factory`` raises; nothing is stored in that case.
        """
        with self._lock:
            existing: type | None = self._types.get(key)
            if existing is not None:
                logger.debug("Type cache hit for %r", key)
                return existing
            key_lock: _KeyLock | None = self._key_locks.get(key)
            if key_lock is None:
                key_lock = _KeyLock()
                self._key_locks[key] = key_lock
            key_lock.holders += 1

        try:
            with key_lock.lock:
                return self._create_under_key_lock(key, factory)
        finally:
            self._release_key_lock(key, key_lock)

    def _create_under_key_lock(self, key: CacheKey, factory: Callable[[], type]) -> type:
        """Synthesize and store the type for ``key`` unless a previous holder already did.

        :param key: Cache key.
        :param factory: Synthesis routine.
        :returns: Generated type.
        """
        with self._lock:
            existing: type | None = self._types.get(key)
        if existing is not None:
            logger.debug("Type cache hit for %r after waiting on synthesis", key)
            return existing

        logger.debug("Type cache miss for %r", key)
        created: type = factory()
        with self._lock:
            self._types[key] = created
        logger.debug("Stored %s for %r", created.__qualname__, key)
        return created

    def _release_key_lock(self, key: CacheKey, key_lock: _KeyLock) -> None:
        """Drop one hold on ``key_lock``; the last holder removes it.

        :param key: Cache key.
        :param key_lock: Lock taken for ``key``.
        """
        with self._lock:
            key_lock.holders -= 1
            if key_lock.holders == 0 and self._key_locks.get(key) is key_lock:
                del self._key_locks[key]

    @property
    def pending_keys(self) -> int:
        """Return the number of keys with a synthesis in progress or waited on.

        :returns: Count of live key locks.
        """
        with self._lock:
            return len(self._key_locks)

    def clear(self) -> None:
        """Drop every cached type."""
        with self._lock:
            self._types.clear()

    def __len__(self) -> int:
        """Return the number of cached types.

        :returns: Cached type count.
        """
        with self._lock:
            return len(self._types)

    def __contains__(self, key: object) -> bool:
        """Return whether a type is cached for ``key``.

        :param key: Cache key.
        :returns: ``True`` when a type is stored.
        """
        with self._lock:
            return key in self._types
