"""Key-value storage for dashboard caches and user suggestions."""

from .backends import StorageBackend, InMemoryStorage, JsonFileStorage
from .response_cache import ResponseCache, CachedResponse, SuggestionLog, ProjectSuggestion

__all__ = [
    'StorageBackend',
    'InMemoryStorage',
    'JsonFileStorage',
    'ResponseCache',
    'CachedResponse',
    'SuggestionLog',
    'ProjectSuggestion'
]
