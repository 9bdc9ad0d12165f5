"""
Persistence for experiment assignments.

The only state this library keeps lives in a per-user key-value store with
string keys and string values. AssignmentStore scopes reads and writes to
the two keys owned by each experiment:

    <prefix>.<experiment_name>
    <prefix>.<experiment_name>.percentageOfUsersLastAssigned
"""

import json
import logging
import math
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol, Tuple

from .schema import NONE_VALUE

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "tab.experiments"
DEFAULT_PERCENTAGE_LAST_ASSIGNED = 100.0
PERCENTAGE_KEY_SUFFIX = "percentageOfUsersLastAssigned"


class KeyValueStore(Protocol):
    """Minimal interface of the persistent key-value store."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class InMemoryStore:
    """Dict-backed store, one per user runtime."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._data.items()))

    def __len__(self) -> int:
        return len(self._data)


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFileStore:
    """
    Store keeping the whole key space in a single JSON object file.

    The file is read lazily on first access and rewritten on every change.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._data: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._data is None:
            if self.path.exists():
                with open(self.path) as f:
                    self._data = {str(k): str(v) for k, v in json.load(f).items()}
            else:
                self._data = {}
        return self._data

    def _flush(self) -> None:
        _ensure_dir(self.path.parent)
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=2, sort_keys=True)

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        self._load()[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._load().pop(key, None) is not None:
            self._flush()

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._load().items()))


def format_percentage(percentage: float) -> str:
    """Render a percentage the way it is stored: "40", "12.5"."""
    value = float(percentage)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class AssignmentStore:
    """Read/write facade over a KeyValueStore, scoped by experiment name."""

    def __init__(self, store: KeyValueStore, prefix: str = DEFAULT_KEY_PREFIX):
        self.store = store
        self.prefix = prefix

    def group_key(self, experiment_name: str) -> str:
        return f"{self.prefix}.{experiment_name}"

    def percentage_key(self, experiment_name: str) -> str:
        return f"{self.prefix}.{experiment_name}.{PERCENTAGE_KEY_SUFFIX}"

    def get_group_value(self, experiment_name: str) -> str:
        """Stored group value, "none" if never assigned."""
        value = self.store.get_item(self.group_key(experiment_name))
        return value if value else NONE_VALUE

    def has_group_value(self, experiment_name: str) -> bool:
        """Whether a group value, including an explicit "none", was ever stored."""
        return bool(self.store.get_item(self.group_key(experiment_name)))

    def set_group_value(self, experiment_name: str, value: str) -> None:
        self.store.set_item(self.group_key(experiment_name), value)

    def get_percentage_last_assigned(self, experiment_name: str) -> float:
        """
        Target percentage in effect at the last assignment.

        Missing history counts as full prior inclusion (100), so it never
        grants extra re-inclusion odds.
        """
        raw = self.store.get_item(self.percentage_key(experiment_name))
        if raw is None or raw == "":
            return DEFAULT_PERCENTAGE_LAST_ASSIGNED
        try:
            value = float(raw)
            if not math.isfinite(value):
                raise ValueError(f"non-finite percentage {raw!r}")
            return value
        except (TypeError, ValueError):
            logger.warning(
                f"Unreadable percentage {raw!r} stored for '{experiment_name}', "
                f"using {DEFAULT_PERCENTAGE_LAST_ASSIGNED}"
            )
            return DEFAULT_PERCENTAGE_LAST_ASSIGNED

    def set_percentage_last_assigned(self, experiment_name: str, percentage: float) -> None:
        self.store.set_item(self.percentage_key(experiment_name), format_percentage(percentage))

    def save_assignment(self, experiment_name: str, value: str, percentage: float) -> None:
        self.set_group_value(experiment_name, value)
        self.set_percentage_last_assigned(experiment_name, percentage)

    def clear(self, experiment_name: str) -> None:
        """Forget both keys for an experiment."""
        self.store.remove_item(self.group_key(experiment_name))
        self.store.remove_item(self.percentage_key(experiment_name))
