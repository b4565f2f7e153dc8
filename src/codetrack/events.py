"""Activity events and the per-window activity buffer."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime


# Event kinds emitted by activity sources
EDIT = "edit"
SAVE = "save"
CREATE = "create"
DELETE = "delete"
FOCUS = "focus"
WINDOW = "window"

EVENT_KINDS = (EDIT, SAVE, CREATE, DELETE, FOCUS, WINDOW)

_DESCRIPTION_PREFIXES = {
    EDIT: "Edited",
    SAVE: "Saved",
    CREATE: "Created",
    DELETE: "Deleted",
}


@dataclass(frozen=True)
class ActivityEvent:
    """A single signal that the user interacted with the workspace.

    Events with an empty description only count as activity (they keep
    tracking alive) and are never buffered.
    """

    description: str
    kind: str = EDIT
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_signal_only(self) -> bool:
        return not self.description

    @classmethod
    def for_path(cls, kind: str, path: str | None = None) -> ActivityEvent:
        """Build an event for a file-level action.

        Args:
            kind: One of EVENT_KINDS.
            path: File the action touched. Ignored for focus/window events.

        Returns:
            ActivityEvent with a human-readable description, or a
            signal-only event for kinds that are not logged.

        Raises:
            ValueError: If kind is not recognized.
        """
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown activity kind: {kind}")
        prefix = _DESCRIPTION_PREFIXES.get(kind)
        if prefix is None or not path:
            return cls(description="", kind=kind)
        return cls(description=f"{prefix} {path}", kind=kind)


class ActivityBuffer:
    """Append-only accumulator for the current commit window.

    All access happens on the event loop thread, so draining is a single
    synchronous step relative to any append that follows it.
    """

    def __init__(self) -> None:
        self._items: deque[str] = deque()

    def append(self, description: str) -> None:
        self._items.append(description)

    def drain_all(self) -> list[str]:
        """Return every buffered description in order and empty the buffer."""
        drained = list(self._items)
        self._items.clear()
        return drained

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)
