"""Per-key locks.

Cart adds are serialized per (user, item), checkouts per user and signups per
email. With ``REDIS_URL`` set, every worker process shares the same locks
through Redis; otherwise they only hold within this process.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from functools import lru_cache
from uuid import uuid4

import redis
import structlog
from redis.exceptions import RedisError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.config import get_settings
from storefront.exceptions import ConflictError

logger = structlog.get_logger(__name__)

# Delete the key only while it still carries our token
_RELEASE_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockTimeout(ConflictError):
    """Raised when a keyed lock could not be acquired in time."""


class LockFamily(ABC):
    name: str

    @abstractmethod
    def hold(self, key: Hashable, timeout: float):
        """Context manager holding the lock for ``key``, waiting at most ``timeout`` seconds."""


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLocks(LockFamily):
    """In-process locks, created on first use and dropped once nobody holds or waits."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _Entry] = {}

    def _checkout(self, key: Hashable) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: Hashable, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(key, None)

    @contextmanager
    def hold(self, key: Hashable, timeout: float) -> Iterator[None]:
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(timeout=timeout):
                logger.warning("Lock acquisition timed out", lock=self.name, key=str(key), timeout=timeout)
                raise LockTimeout()
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(key, entry)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


def _redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception_type(RedisError),
    )


class RedisKeyedLocks(LockFamily):
    """Locks shared by every process talking to the same Redis.

    Each hold is ``SET NX PX`` with a random token. The key expires after
    ``ttl_seconds`` so a crashed worker cannot hold it forever, which means
    the TTL must outlast the longest critical section.
    """

    def __init__(self, name: str, client, ttl_seconds: float, poll_interval: float = 0.05) -> None:
        self.name = name
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.poll_interval = poll_interval

    def key_for(self, key: Hashable) -> str:
        parts = key if isinstance(key, tuple) else (key,)
        return ":".join(["lock", self.name, *(str(part) for part in parts)])

    @_redis_retry()
    def _acquire(self, name: str, token: str) -> bool:
        return bool(self.client.set(name=name, value=token, nx=True, px=int(self.ttl_seconds * 1000)))

    @_redis_retry()
    def _release(self, name: str, token: str) -> bool:
        return bool(self.client.eval(_RELEASE_SCRIPT, 1, name, token))

    @contextmanager
    def hold(self, key: Hashable, timeout: float) -> Iterator[None]:
        name = self.key_for(key)
        token = uuid4().hex
        deadline = time.monotonic() + timeout
        while not self._acquire(name, token):
            if time.monotonic() >= deadline:
                logger.warning("Lock acquisition timed out", lock=self.name, key=name, timeout=timeout)
                raise LockTimeout()
            time.sleep(self.poll_interval)
        try:
            yield
        finally:
            if not self._release(name, token):
                logger.error("Lock expired before it was released", lock=self.name, key=name, ttl=self.ttl_seconds)


@lru_cache(maxsize=4)
def redis_client(url: str):
    return redis.Redis.from_url(url, decode_responses=True)


class ConfiguredLocks(LockFamily):
    """A lock family backed by Redis when ``REDIS_URL`` is set, in-process otherwise."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.local = KeyedLocks(name)

    def backend(self) -> LockFamily:
        settings = get_settings()
        if settings.redis_url:
            return RedisKeyedLocks(self.name, redis_client(settings.redis_url), ttl_seconds=settings.lock_ttl_seconds)
        return self.local

    def hold(self, key: Hashable, timeout: float):
        return self.backend().hold(key, timeout)


cart_line_locks = ConfiguredLocks("cart-line")
checkout_locks = ConfiguredLocks("checkout")
signup_locks = ConfiguredLocks("signup")
