import heapq
import logging
import threading
import time
from typing import Callable, Dict, List, Tuple

import redis
from werkzeug.security import generate_password_hash, check_password_hash

from .uid_generator import generate_otp

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600


class OtpStore:
    """
    One-time email verification codes.
    Codes are stored hashed, keyed by the lowercased email, and expire after
    `ttl_seconds`. A successful verify consumes the code.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds

    def issue(self, email: str) -> str:
        """Generate and store a new code for `email`, replacing any previous one."""
        code = generate_otp()
        self._put(self._key(email), generate_password_hash(code))
        return code

    def verify(self, email: str, code: str) -> bool:
        if not email or not code:
            return False
        return self._consume(self._key(email), lambda hashed: check_password_hash(hashed, str(code)))

    @staticmethod
    def _key(email: str) -> str:
        return email.strip().lower()

    def _put(self, key: str, value: str):
        raise NotImplementedError

    def _consume(self, key: str, matches: Callable[[str], bool]) -> bool:
        """Delete the stored hash if `matches` accepts it, as one atomic step."""
        raise NotImplementedError


class MemoryOtpStore(OtpStore):
    """Process-local store with an expiry heap; eviction runs on every access."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        super().__init__(ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._expiry_heap: List[Tuple[float, str]] = []
        self._lock = threading.Lock()

    def evict_expired(self) -> int:
        """Drop every expired entry. Returns the number evicted."""
        now = self._clock()
        evicted = 0
        with self._lock:
            while self._expiry_heap and self._expiry_heap[0][0] <= now:
                expires_at, key = heapq.heappop(self._expiry_heap)
                entry = self._entries.get(key)
                # A reissued code leaves a stale heap entry behind
                if entry is not None and entry[1] == expires_at:
                    del self._entries[key]
                    evicted += 1
        return evicted

    def __len__(self):
        self.evict_expired()
        return len(self._entries)

    def _put(self, key: str, value: str):
        self.evict_expired()
        expires_at = self._clock() + self.ttl_seconds
        with self._lock:
            self._entries[key] = (value, expires_at)
            heapq.heappush(self._expiry_heap, (expires_at, key))

    def _consume(self, key: str, matches: Callable[[str], bool]) -> bool:
        self.evict_expired()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not matches(entry[0]):
                return False
            del self._entries[key]
        return True


class RedisOtpStore(OtpStore):
    """Redis-backed store; expiry is enforced by Redis key TTLs."""

    KEY_PREFIX = 'otp:'

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        super().__init__(ttl_seconds)
        self.redis = redis_client

    def _put(self, key: str, value: str):
        self.redis.setex(self.KEY_PREFIX + key, self.ttl_seconds, value)

    def _consume(self, key: str, matches: Callable[[str], bool]) -> bool:
        name = self.KEY_PREFIX + key
        with self.redis.pipeline() as pipe:
            try:
                # WATCH aborts the DEL if another verify or a reissue touches the key first
                pipe.watch(name)
                hashed = pipe.get(name)
                if isinstance(hashed, bytes):
                    hashed = hashed.decode('utf-8')
                if hashed is None or not matches(hashed):
                    return False
                pipe.multi()
                pipe.delete(name)
                pipe.execute()
            except redis.WatchError:
                logger.info(f"Verification code for {key} changed during verify")
                return False
        return True


def create_otp_store(backend: str = 'memory', redis_url: str = None, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> OtpStore:
    if backend == 'memory':
        return MemoryOtpStore(ttl_seconds=ttl_seconds)
    if backend == 'redis':
        client = redis.from_url(
            redis_url or 'redis://localhost:6379',
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5
        )
        return RedisOtpStore(client, ttl_seconds=ttl_seconds)
    raise ValueError(f"Unknown OTP backend: {backend}")


def deliver_otp(email: str, code: str) -> bool:
    """
    Deliver a verification code.
    Only a log-based channel exists; wire an email provider in here.
    """
    logger.info(f"Verification code for {email}: {code}")
    return True
