"""Activity sources: file-system watcher for a workspace directory."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable

import watchfiles

from .events import CREATE, DELETE, EDIT, ActivityEvent

logger = logging.getLogger(__name__)

ActivitySink = Callable[[ActivityEvent], None]

_CHANGE_KINDS = {
    watchfiles.Change.added: CREATE,
    watchfiles.Change.modified: EDIT,
    watchfiles.Change.deleted: DELETE,
}


class WorkspaceFilter(watchfiles.DefaultFilter):
    """Default watchfiles filter plus the tracker's own log directory."""

    def __init__(self, extra_ignore_paths: tuple[Path, ...] = ()):
        super().__init__(ignore_paths=[str(p) for p in extra_ignore_paths])


def change_to_event(root: Path, change: watchfiles.Change, path: str) -> ActivityEvent:
    """Turn one watchfiles change into an activity event.

    Paths are reported relative to the workspace root when possible.
    """
    file_path = Path(path)
    try:
        display = str(file_path.relative_to(root))
    except ValueError:
        display = str(file_path)
    return ActivityEvent.for_path(_CHANGE_KINDS[change], display)


class WorkspaceWatcher:
    """Watches a directory and feeds file changes to an activity sink."""

    def __init__(
        self,
        root: Path,
        sink: ActivitySink,
        ignore_paths: tuple[Path, ...] = (),
    ):
        self.root = Path(root).resolve()
        self.sink = sink
        self.watch_filter = WorkspaceFilter(ignore_paths)

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Watch until cancelled (or until stop_event is set)."""
        logger.info(f"Watching workspace {self.root}")
        try:
            async for changes in watchfiles.awatch(
                self.root, watch_filter=self.watch_filter, stop_event=stop_event
            ):
                for change, path in sorted(changes, key=lambda c: c[1]):
                    self.sink(change_to_event(self.root, change, path))
        except asyncio.CancelledError:
            logger.info("Workspace watcher cancelled")
            raise
