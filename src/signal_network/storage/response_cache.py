"""Chat response cache and suggestion log on top of a storage backend."""

import json
import logging
import time
from dataclasses import dataclass, asdict
from typing import Callable, List, Optional

from ..config.config_manager import CoordinationConfig
from ..utils.error_handling import ValidationError
from .backends import StorageBackend

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "chatbot_cache_"
SUGGESTIONS_KEY = "project_suggestions"


@dataclass
class CachedResponse:
    """A cached chat response with the metadata needed for invalidation."""
    response: str
    timestamp: float  # seconds since the epoch
    version: str


class ResponseCache:
    """Caches chat responses per normalized query.

    Entries expire after ``ttl_seconds`` and are discarded when written by a
    different cache version.
    """

    def __init__(self, backend: StorageBackend,
                 ttl_seconds: float = 7 * 24 * 60 * 60,
                 version: str = "v3",
                 clock: Callable[[], float] = time.time):
        self.backend = backend
        self.ttl_seconds = ttl_seconds
        self.version = version
        self.clock = clock

    @classmethod
    def from_config(cls, backend: StorageBackend, config: CoordinationConfig) -> "ResponseCache":
        return cls(backend, ttl_seconds=config.cache_ttl_seconds, version=config.cache_version)

    @staticmethod
    def cache_key(query: str) -> str:
        return f"{CACHE_KEY_PREFIX}{query.lower().strip()}"

    def get(self, query: str) -> Optional[str]:
        """Cached response for a query, or None on a miss."""
        key = self.cache_key(query)
        raw = self.backend.get(key)
        if raw is None:
            return None

        try:
            entry = CachedResponse(**json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache entry for '{query}': {e}")
            self.backend.delete(key)
            return None

        if entry.version != self.version:
            self.backend.delete(key)
            return None

        if self.clock() - entry.timestamp > self.ttl_seconds:
            self.backend.delete(key)
            return None

        logger.debug(f"Cache hit for: {query}")
        return entry.response

    def set(self, query: str, response: str) -> None:
        """Cache a response for a query."""
        entry = CachedResponse(response=response, timestamp=self.clock(), version=self.version)
        self.backend.set(self.cache_key(query), json.dumps(asdict(entry)))
        logger.debug(f"Cached response for: {query}")

    def clear(self) -> int:
        """Remove every cache entry; other keys in the backend are kept."""
        removed = 0
        for key in self.backend.keys():
            if key.startswith(CACHE_KEY_PREFIX):
                self.backend.delete(key)
                removed += 1
        logger.info(f"Cache cleared ({removed} entries)")
        return removed


@dataclass
class ProjectSuggestion:
    """A suggestion submitted by a dashboard user."""
    id: str
    email: str
    suggestion: str
    timestamp: float


class SuggestionLog:
    """Append-only log of user suggestions stored under a single key."""

    def __init__(self, backend: StorageBackend, clock: Callable[[], float] = time.time):
        self.backend = backend
        self.clock = clock

    def all(self) -> List[ProjectSuggestion]:
        raw = self.backend.get(SUGGESTIONS_KEY)
        if not raw:
            return []

        try:
            return [ProjectSuggestion(**item) for item in json.loads(raw)]
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable suggestion log: {e}")
            return []

    def add(self, email: str, suggestion: str) -> ProjectSuggestion:
        """Record a suggestion.

        Raises:
            ValidationError: if the email or suggestion is empty
        """
        if not isinstance(email, str) or '@' not in email:
            raise ValidationError("email must be an address", 'email', email)
        if not isinstance(suggestion, str) or not suggestion.strip():
            raise ValidationError("suggestion must not be empty", 'suggestion', suggestion)

        suggestions = self.all()
        now = self.clock()
        entry = ProjectSuggestion(
            id=f"{int(now * 1000)}-{len(suggestions)}",
            email=email.strip(),
            suggestion=suggestion.strip(),
            timestamp=now
        )
        suggestions.append(entry)
        self.backend.set(SUGGESTIONS_KEY, json.dumps([asdict(s) for s in suggestions]))
        logger.info(f"Recorded suggestion {entry.id}")
        return entry

    def count(self) -> int:
        return len(self.all())

    def clear(self) -> None:
        self.backend.delete(SUGGESTIONS_KEY)
