"""
Shared test fixtures and helpers for the phasetrace test suite.
"""

import io
import re
from typing import Any, List

import pytest

from phasetrace.clock import ElapsedClock
from phasetrace.dispatcher import LifecycleTracer


_MESSAGE_RE = re.compile(r"/  (.*)  \\____$", re.MULTILINE)
_ELAPSED_RE = re.compile(r"^__\[ (\S+) \]", re.MULTILINE)


# ============================================================================
# Helpers
# ============================================================================


class FakeTime:
    """Manually advanced time source for ElapsedClock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeServer:
    """Server lifecycle source that records listeners."""

    def __init__(self):
        self.listeners: List[Any] = []

    def add_lifecycle_listener(self, listener: Any) -> None:
        self.listeners.append(listener)


class FakePipeline:
    """Request pipeline that records listeners."""

    def __init__(self):
        self.listeners: List[Any] = []

    def register_listener(self, listener: Any) -> None:
        self.listeners.append(listener)


def messages(output: str) -> List[str]:
    """Messages of all trace blocks in *output*, in order."""
    return _MESSAGE_RE.findall(output)


def elapsed_labels(output: str) -> List[str]:
    """Elapsed-time labels of all trace blocks in *output*, in order."""
    return _ELAPSED_RE.findall(output)


def to_millis(label: str) -> int:
    """``HH:MM:SS.mmm`` -> milliseconds."""
    hours, minutes, rest = label.split(":")
    seconds, millis = rest.split(".")
    return ((int(hours) * 60 + int(minutes)) * 60 + int(seconds)) * 1000 + int(millis)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def clock(fake_time):
    return ElapsedClock(fake_time)


@pytest.fixture
def sink():
    return io.StringIO()


@pytest.fixture
def tracer(sink, clock):
    return LifecycleTracer(sink, clock=clock)
