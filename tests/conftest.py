"""
Shared fixtures: a controllable clock, a context store and an orchestrator
wired to both.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tercih_dialogue.agent_core import AgentCore
from tercih_dialogue.memory_store import ContextStore


class FakeClock:
    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return ContextStore(expiry_minutes=30, max_entries=10, repeat_window=3, clock=clock)


@pytest.fixture
def agent(store):
    return AgentCore(store=store)
