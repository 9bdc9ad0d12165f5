"""Pytest configuration - add project root to path, shared fakes."""
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from src.experiment_groups.store import InMemoryStore


class ScriptedRandom:
    """Returns queued draws in order, then `default` forever."""

    def __init__(self, *draws, default=0.0):
        self.draws = list(draws)
        self.default = default
        self.calls = 0

    def queue(self, *draws):
        self.draws.extend(draws)

    def random(self):
        self.calls += 1
        if self.draws:
            return self.draws.pop(0)
        return self.default


class RecordingStore(InMemoryStore):
    """In-memory store that records writes."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []
        self.reads = []

    def get_item(self, key):
        self.reads.append(key)
        return super().get_item(key)

    def set_item(self, key, value):
        self.writes.append((key, value))
        super().set_item(key, value)

    def reset_calls(self):
        self.writes.clear()
        self.reads.clear()


class RecordingReporter:
    def __init__(self):
        self.calls = []

    def __call__(self, user_id, experiment_groups):
        self.calls.append((user_id, experiment_groups))


@pytest.fixture
def rng():
    return ScriptedRandom()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def user_info():
    from src.experiment_groups.schema import UserInfo
    return UserInfo(id="some-user-id", joined="2017-05-19T13:59:58.000Z", is_new_user=False)
