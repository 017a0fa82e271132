"""
Response Cache Module

Caches generated text (chat answers, rationales) per user and normalized
query so repeated questions do not trigger another generation call.

Cache entries live in the response_cache table with an expiry time.
Hit/miss statistics are kept in a CacheStats collector owned by the caller.
"""

import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from finsight.config import settings
from finsight.ingest.schema import ResponseCacheEntry

logger = logging.getLogger(__name__)


def normalize_query(query: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    normalized = re.sub(r'[^\w\s]', '', query.lower())
    return re.sub(r'\s+', ' ', normalized).strip()


def generate_cache_key(user_id: str, normalized_query: str) -> str:
    """SHA-256 hex digest of 'user_id:normalized_query'."""
    return hashlib.sha256(f"{user_id}:{normalized_query}".encode('utf-8')).hexdigest()


@dataclass
class UserCacheStats:
    hits: int = 0
    misses: int = 0

    @property
    def total_queries(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.total_queries == 0:
            return 0.0
        return self.hits / self.total_queries

    def to_dict(self) -> dict:
        return {
            'hits': self.hits,
            'misses': self.misses,
            'total_queries': self.total_queries,
            'hit_rate': self.hit_rate,
        }


class CacheStats:
    """Per-user hit/miss counters."""

    def __init__(self):
        self._users: Dict[str, UserCacheStats] = {}

    def record(self, user_id: str, hit: bool) -> UserCacheStats:
        stats = self._users.setdefault(user_id, UserCacheStats())
        if hit:
            stats.hits += 1
        else:
            stats.misses += 1

        logger.info(
            "Cache %s", 'hit' if hit else 'miss',
            extra={
                'user_id': user_id,
                'hits': stats.hits,
                'total_queries': stats.total_queries,
                'hit_rate': round(stats.hit_rate, 3),
            },
        )
        return stats

    def get(self, user_id: str) -> UserCacheStats:
        return self._users.get(user_id, UserCacheStats())

    def reset(self, user_id: Optional[str] = None) -> None:
        """Clear counters for one user, or for everyone when user_id is None."""
        if user_id is None:
            self._users.clear()
        else:
            self._users.pop(user_id, None)


class ResponseCache:
    """Database-backed response cache with TTL."""

    def __init__(self, session: Session, stats: Optional[CacheStats] = None, ttl_hours: Optional[float] = None):
        self.session = session
        self.stats = stats if stats is not None else CacheStats()
        self.ttl_hours = ttl_hours if ttl_hours is not None else settings.cache_ttl_hours

    def get(self, user_id: str, query: str, now: Optional[datetime] = None) -> Optional[str]:
        """
        Look up a cached response.

        Returns:
            The cached response, or None if missing or expired
        """
        if now is None:
            now = datetime.utcnow()

        key = generate_cache_key(user_id, normalize_query(query))
        entry = self.session.query(ResponseCacheEntry).filter(
            ResponseCacheEntry.query_hash == key,
            ResponseCacheEntry.expires_at > now,
        ).first()

        self.stats.record(user_id, hit=entry is not None)
        return entry.response if entry is not None else None

    def put(
        self,
        user_id: str,
        query: str,
        response: str,
        ttl_hours: Optional[float] = None,
        now: Optional[datetime] = None
    ) -> None:
        """Store a response, replacing any entry for the same user and query."""
        if now is None:
            now = datetime.utcnow()
        if ttl_hours is None:
            ttl_hours = self.ttl_hours

        normalized = normalize_query(query)
        self.session.merge(ResponseCacheEntry(
            query_hash=generate_cache_key(user_id, normalized),
            user_id=user_id,
            query=normalized,
            response=response,
            created_at=now,
            expires_at=now + timedelta(hours=ttl_hours),
        ))
        self.session.commit()

    def clear_expired(self, now: Optional[datetime] = None) -> int:
        """Delete expired entries. Returns the number removed."""
        if now is None:
            now = datetime.utcnow()

        removed = self.session.query(ResponseCacheEntry).filter(
            ResponseCacheEntry.expires_at <= now
        ).delete(synchronize_session=False)
        self.session.commit()

        logger.info("Expired cache entries cleared", extra={'removed': removed})
        return removed

    def clear_user(self, user_id: str) -> None:
        """Delete a user's entries and reset their statistics."""
        self.session.query(ResponseCacheEntry).filter(
            ResponseCacheEntry.user_id == user_id
        ).delete(synchronize_session=False)
        self.session.commit()
        self.stats.reset(user_id)
