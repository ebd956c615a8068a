"""
Live match state shared between the scoreboard operator and viewers.

The state is keyed by tournament id. Callers receive a store instance
instead of reaching for a module-level cache, so tests and processes can
choose where the state lives.
"""
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import yaml
from filelock import FileLock

logger = logging.getLogger(__name__)


class LiveMatchStore(ABC):
    """Interface for live match state storage."""

    @abstractmethod
    def get(self, tournament_id: str) -> Optional[Any]:
        """Live state for a tournament, or None when nothing is stored."""
        raise NotImplementedError

    @abstractmethod
    def set(self, tournament_id: str, data: Any):
        raise NotImplementedError

    @abstractmethod
    def clear(self, tournament_id: str):
        raise NotImplementedError


class MemoryLiveMatchStore(LiveMatchStore):
    """Process-local store; state is lost when the process exits."""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, tournament_id):
        return self._data.get(tournament_id)

    def set(self, tournament_id, data):
        self._data[tournament_id] = data

    def clear(self, tournament_id):
        self._data.pop(tournament_id, None)


class YamlLiveMatchStore(LiveMatchStore):
    """
    Store backed by a YAML file, shared between processes.
    Every read-modify-write holds a file lock next to the data file.
    """

    def __init__(self, path, timeout: float = 10):
        self.path = path
        self._lock = FileLock(f"{path}.lock", timeout=timeout)

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                logger.warning(f"Failed to parse {self.path}: {e}")
                return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]):
        with open(self.path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False)

    def get(self, tournament_id):
        with self._lock:
            return self._load().get(tournament_id)

    def set(self, tournament_id, data):
        with self._lock:
            all_data = self._load()
            all_data[tournament_id] = data
            self._save(all_data)

    def clear(self, tournament_id):
        with self._lock:
            all_data = self._load()
            if all_data.pop(tournament_id, None) is not None:
                self._save(all_data)
