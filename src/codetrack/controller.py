"""Tracking controller: the activity state machine.

Owns the activity buffer and both timers, and runs the
summarize-then-persist flush on every commit tick.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable
from zoneinfo import ZoneInfoNotFoundError

from .config import TrackerConfig
from .events import ActivityBuffer, ActivityEvent
from .notify import NotifyLevel, UserNotifier
from .store.base import LogStore, ProvisionStatus
from .store.gateway import PersistenceGateway
from .summarizer.config import DEFAULT_PROMPT_TEMPLATE
from .summarizer.gemini import Summarizer
from .summarizer.pipeline import SummaryPipeline
from .timers import CommitScheduler, IdleMonitor

logger = logging.getLogger(__name__)


class TrackingState(Enum):
    """State machine states for activity tracking."""

    ACTIVE = "active"
    PAUSED = "paused"  # Idle threshold elapsed without activity

    @property
    def label(self) -> str:
        return "Tracking" if self is TrackingState.ACTIVE else "Tracking Paused"

    @property
    def tooltip(self) -> str:
        if self is TrackingState.ACTIVE:
            return "Active tracking - Will commit hourly"
        return "Paused due to inactivity - Start typing to resume"


class FlushOutcome(Enum):
    COMMITTED = "committed"
    SKIPPED = "skipped"  # Paused, or nothing buffered
    FAILED = "failed"  # Persist failed; drained activity is dropped
    BUSY = "busy"  # Another flush is still in flight


class SetupError(Exception):
    """Tracking cannot start (e.g. the log store could not be provisioned)."""


StateListener = Callable[[TrackingState], None]


def describe_duration(seconds: float) -> str:
    """Render an idle threshold for messages, e.g. "30 minutes"."""
    if seconds >= 60 and seconds % 60 == 0:
        minutes = int(seconds // 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    return f"{seconds:g} seconds"


class TrackingController:
    """Receives activity, pauses on idle, and commits on a schedule.

    Everything runs on one event loop. The only suspension points are the
    summarizer and log store calls inside flush(); activity arriving while
    they are awaited goes to the next window.
    """

    def __init__(
        self,
        notifier: UserNotifier,
        summarizer: Summarizer,
        log_store: LogStore,
        config: TrackerConfig | None = None,
        prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
    ):
        """Initialize the controller and its owned components.

        Args:
            notifier: Receives user-facing messages.
            summarizer: Condenses activity into one line.
            log_store: Destination for commit records.
            config: Timing and naming settings. Defaults if None.
            prompt_template: Template passed to the summary pipeline.

        Raises:
            SetupError: If the configured timezone is unknown.
        """
        self.config = config or TrackerConfig()
        self.notifier = notifier
        self.log_store = log_store
        self.state = TrackingState.ACTIVE
        self.buffer = ActivityBuffer()
        self.pipeline = SummaryPipeline(summarizer, prompt_template)
        try:
            self.gateway = PersistenceGateway(
                log_store,
                container=self.config.repo_name,
                timezone=self.config.timezone,
                timestamp_format=self.config.timestamp_format,
            )
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise SetupError(f"Unknown timezone: {self.config.timezone}") from e
        self.idle_monitor = IdleMonitor(self.config.idle_timeout, self._on_idle_timeout)
        self.scheduler = CommitScheduler(self.config.commit_interval, self.on_tick)
        self.last_commit_key: str | None = None
        self.last_commit_at: datetime | None = None
        self._listeners: list[StateListener] = []
        self._flushing = False
        self._started = False

    # -- lifecycle --------------------------------------------------------

    async def setup(self) -> None:
        """Provision the log container.

        Raises:
            SetupError: If the container could not be created or found.
        """
        result = await self.gateway.provision()
        if not result.ok:
            raise SetupError(f"Could not provision {self.config.repo_name}: {result.error}")
        repo = self.config.repo_name
        if result.provision_status is ProvisionStatus.CREATED:
            self.notifier.notify(NotifyLevel.INFO, f"Created {repo} repo!")
        else:
            self.notifier.notify(NotifyLevel.INFO, f"{repo} repo already exists!")

    def start(self) -> None:
        """Begin tracking. Must be called from the running event loop."""
        if self._started:
            return
        self._started = True
        self._set_state(TrackingState.ACTIVE)
        self.idle_monitor.reset()
        self.scheduler.start()
        logger.info("Tracking started")

    def shutdown(self) -> None:
        self.idle_monitor.cancel()
        self.scheduler.stop()
        self._started = False
        logger.info("Tracking stopped")

    # -- state ------------------------------------------------------------

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with the new state on every transition."""
        self._listeners.append(listener)

    def _set_state(self, state: TrackingState) -> None:
        self.state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"State listener failed: {e}")

    def on_activity(self, event: ActivityEvent) -> None:
        """Record an activity event and keep tracking alive."""
        if not event.is_signal_only:
            self.buffer.append(event.description)
        if self.state is TrackingState.PAUSED:
            self._set_state(TrackingState.ACTIVE)
            self.notifier.notify(NotifyLevel.INFO, "Resuming activity tracking!")
        self.idle_monitor.reset()

    def _on_idle_timeout(self) -> None:
        if self.state is not TrackingState.ACTIVE:
            return
        self._set_state(TrackingState.PAUSED)
        self.notifier.notify(
            NotifyLevel.WARNING,
            f"Tracking paused due to {describe_duration(self.config.idle_timeout)} of inactivity",
        )

    # -- commits ----------------------------------------------------------

    async def on_tick(self) -> FlushOutcome:
        """Commit scheduler callback."""
        return await self.flush()

    async def flush(self) -> FlushOutcome:
        """Drain the buffer, summarize it, and persist the summary.

        The buffer is drained before any network call, so a failed persist
        loses that window's activity rather than re-queuing it.
        """
        if self._flushing:
            logger.warning("Previous commit still in progress, skipping")
            return FlushOutcome.BUSY
        if self.state is TrackingState.PAUSED or self.buffer.is_empty():
            self.notifier.notify(NotifyLevel.INFO, "No activity to commit")
            return FlushOutcome.SKIPPED

        activity = self.buffer.drain_all()
        self._flushing = True
        try:
            summary = await self.pipeline.summarize("\n".join(activity))
            result = await self.gateway.persist(summary.text)
        finally:
            self._flushing = False

        if not result.ok:
            logger.error(f"Dropped {len(activity)} activity entries after failed commit")
            self.notifier.notify(NotifyLevel.ERROR, f"Commit failed: {result.error}")
            return FlushOutcome.FAILED

        self.last_commit_key = result.key
        self.last_commit_at = datetime.now()
        self.notifier.notify(
            NotifyLevel.INFO, f"Hourly progress saved to {self.log_store.label}!"
        )
        return FlushOutcome.COMMITTED

    def status(self) -> dict[str, Any]:
        """Snapshot for the status surface."""
        return {
            "state": self.state.value,
            "label": self.state.label,
            "tooltip": self.state.tooltip,
            "buffered": len(self.buffer),
            "flushing": self._flushing,
            "last_commit_key": self.last_commit_key,
            "last_commit_at": self.last_commit_at.isoformat() if self.last_commit_at else None,
        }
