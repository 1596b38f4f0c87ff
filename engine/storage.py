# engine/storage.py
"""
Key-value persistence for the two fields that survive a restart
(last watering time and watering benchmark). Values are strings; the engine
does the conversion.
"""

import json
import os
import re
from typing import Dict, Optional, Protocol

DEFAULT_SPECIES = 'Philodendron Birkin'


class StoreError(RuntimeError):
    """Raised when a store cannot be read or written."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


def normalize_species(name: str) -> str:
    return re.sub(r'\s+', ' ', name or '').strip().lower()


def last_watered_key(species: str = DEFAULT_SPECIES) -> str:
    return f"watering:last:{normalize_species(species)}"


def benchmark_days_key(species: str = DEFAULT_SPECIES) -> str:
    return f"watering:benchDays:{normalize_species(species)}"


class MemoryStore:
    """Dict-backed store, handy for tests and simulations."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data = dict(initial or {})

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = str(value)


class JsonFileStore:
    """Whole mapping kept in one JSON file, rewritten on every set()."""

    def __init__(self, path):
        self.path = os.fspath(path)

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Could not read store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Store {self.path} does not hold a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key):
        return self._load().get(key)

    def set(self, key, value):
        data = self._load()
        data[key] = str(value)
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        tmp = self.path + '.tmp'
        try:
            with open(tmp, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError as exc:
            raise StoreError(f"Could not write store {self.path}: {exc}") from exc
