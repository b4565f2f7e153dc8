"""Pytest configuration and fixtures."""

import pytest

from codetrack.config import TrackerConfig
from codetrack.controller import TrackingController
from codetrack.store import LogStoreError, ProvisionStatus
from codetrack.summarizer import SummarizerError


class RecordingNotifier:
    """Collects notifications as (level, message) tuples."""

    def __init__(self):
        self.messages = []

    def notify(self, level, message):
        self.messages.append((level, message))

    def with_level(self, level):
        return [m for lvl, m in self.messages if lvl is level]


class FakeSummarizer:
    """Returns a canned summary, or raises SummarizerError when failing."""

    def __init__(self, reply="Worked on a.txt", fail=False):
        self.reply = reply
        self.fail = fail
        self.prompts = []
        self.gate = None  # asyncio.Event to hold the call open

    async def summarize(self, prompt):
        self.prompts.append(prompt)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise SummarizerError("simulated outage")
        return self.reply


class FakeLogStore:
    """In-memory LogStore."""

    label = "GitHub"

    def __init__(self, fail_writes=False):
        self.fail_writes = fail_writes
        self.containers = set()
        self.records = []  # (key, body, message)

    async def ensure_container_exists(self, name):
        if name in self.containers:
            return ProvisionStatus.ALREADY_EXISTS
        self.containers.add(name)
        return ProvisionStatus.CREATED

    async def write_record(self, key, body, message):
        if self.fail_writes:
            raise LogStoreError("Bad credentials", status_code=401)
        self.records.append((key, body, message))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def log_store():
    return FakeLogStore()


@pytest.fixture
def tracker_config():
    """Short idle timeout, commit interval long enough to never fire in a test."""
    return TrackerConfig(idle_timeout=0.1, commit_interval=3600)


@pytest.fixture
def controller(notifier, summarizer, log_store, tracker_config):
    """A TrackingController wired to fakes.

    Tests that call start() must call shutdown() before returning.
    """
    return TrackingController(
        notifier=notifier,
        summarizer=summarizer,
        log_store=log_store,
        config=tracker_config,
    )
