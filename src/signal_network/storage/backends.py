"""Key-value storage backends."""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..utils.error_handling import StorageError

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """String key-value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Value stored under key, or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value under key, replacing any previous one."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""

    @abstractmethod
    def keys(self) -> List[str]:
        """All stored keys."""


class InMemoryStorage(StorageBackend):
    """Storage held in a dictionary for the lifetime of the process."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())


class JsonFileStorage(StorageBackend):
    """Storage persisted as a single JSON object on disk.

    The file is rewritten on every change.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.file_path):
            return {}
        try:
            with open(self.file_path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read storage file {self.file_path}: {e}")
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self.file_path} does not hold a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: Dict[str, str]) -> None:
        try:
            directory = os.path.dirname(self.file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.file_path, 'w') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise StorageError(f"Cannot write storage file {self.file_path}: {e}")

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        data = dict(self._data)
        data[key] = value
        self._save(data)
        self._data = data

    def delete(self, key: str) -> None:
        if key in self._data:
            data = dict(self._data)
            del data[key]
            self._save(data)
            self._data = data

    def keys(self) -> List[str]:
        return list(self._data.keys())
