"""Storage for storefront sessions (one cart plus one checkout draft each).

Sessions live in a process-local TTL cache. When ``REDIS_URL`` is set every
save is written to Redis and every read comes from it, so a restarted
process or a sibling replica sees the shopper's latest cart. The local cache
then only serves reads while Redis is failing.
"""

import json
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import redis
from cachetools import TTLCache

from app.domain.cart import Cart
from app.domain.checkout import CheckoutDraft
from app.domain.errors import SessionNotFoundError
from shared.core import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "storefront:session:"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StorefrontSession:
    id: str
    cart: Cart = field(default_factory=Cart)
    draft: CheckoutDraft = field(default_factory=CheckoutDraft)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_json(self) -> str:
        return json.dumps({
            "id": self.id,
            "cart": self.cart.to_dict(),
            "draft": self.draft.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        })

    @classmethod
    def from_json(cls, raw: str) -> "StorefrontSession":
        data = json.loads(raw)
        return cls(
            id=data["id"],
            cart=Cart.from_dict(data.get("cart", {})),
            draft=CheckoutDraft.from_dict(data.get("draft", {})),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


class SessionStore:
    def __init__(
        self,
        ttl_seconds: int,
        max_entries: int,
        redis_url: Optional[str] = None,
        redis_client: Optional[redis.Redis] = None,
    ):
        self.ttl_seconds = ttl_seconds
        self._cache: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds)
        self._lock = threading.Lock()
        self.redis_client = redis_client
        if self.redis_client is None and redis_url:
            try:
                client = redis.from_url(redis_url, decode_responses=True)
                client.ping()
                self.redis_client = client
            except redis.RedisError as e:
                logger.warning(f"Redis unavailable, sessions stay in-process: {e}")

    def create(self) -> StorefrontSession:
        session = StorefrontSession(id=uuid.uuid4().hex)
        self.save(session)
        logger.info("Storefront session created", extra={'extra_fields': {'session_id': session.id}})
        return session

    def get(self, session_id: str) -> StorefrontSession:
        """Redis is authoritative when configured; the local cache only
        answers when Redis is off or failing."""
        if self.redis_client is not None:
            try:
                raw = self.redis_client.get(KEY_PREFIX + session_id)
            except redis.RedisError as e:
                logger.warning(f"Redis read failed for session {session_id}, using local copy: {e}")
            else:
                if not raw:
                    with self._lock:
                        self._cache.pop(session_id, None)
                    raise SessionNotFoundError()
                session = StorefrontSession.from_json(raw)
                with self._lock:
                    self._cache[session_id] = session
                return session

        with self._lock:
            session = self._cache.get(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    def save(self, session: StorefrontSession) -> None:
        session.updated_at = _now()
        with self._lock:
            self._cache[session.id] = session
        if self.redis_client is not None:
            try:
                self.redis_client.setex(KEY_PREFIX + session.id, self.ttl_seconds, session.to_json())
            except redis.RedisError as e:
                logger.warning(f"Redis write failed for session {session.id}: {e}")

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._cache.pop(session_id, None)
        if self.redis_client is not None:
            try:
                self.redis_client.delete(KEY_PREFIX + session_id)
            except redis.RedisError as e:
                logger.warning(f"Redis delete failed for session {session_id}: {e}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
