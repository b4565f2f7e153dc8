"""Local directory used as the activity log."""

from __future__ import annotations

import fcntl
import json
import logging
from datetime import datetime
from pathlib import Path

from .base import LogStoreError, ProvisionStatus

logger = logging.getLogger(__name__)

JOURNAL_NAME = "commits.jsonl"


class DirectoryLogStore:
    """Writes records as text files under a local directory.

    Every write is also appended to a JSONL journal inside the container,
    which stands in for the commit history of a remote repository.
    """

    label = "disk"

    def __init__(self, root: Path):
        self.root = Path(root)
        self._container: Path | None = None

    async def ensure_container_exists(self, name: str) -> ProvisionStatus:
        container = self.root / name
        self._container = container
        if container.is_dir():
            return ProvisionStatus.ALREADY_EXISTS
        try:
            container.mkdir(parents=True)
        except FileExistsError:
            return ProvisionStatus.ALREADY_EXISTS
        except OSError as e:
            raise LogStoreError(f"Creating {container} failed: {e}") from e
        logger.info(f"Created log directory {container}")
        return ProvisionStatus.CREATED

    def _record_path(self, key: str) -> Path:
        if self._container is None:
            raise LogStoreError("Log directory has not been provisioned")
        container = self._container.resolve()
        path = (container / f"{key}.txt").resolve()
        if container not in path.parents:
            raise LogStoreError(f"Record key escapes the log directory: {key}")
        return path

    async def write_record(self, key: str, body: bytes, message: str) -> None:
        """Write the record file, then journal it.

        The record file is the durable write. A journal failure is logged
        and does not fail a record that is already on disk.
        """
        path = self._record_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(body)
        except OSError as e:
            raise LogStoreError(f"Writing {path} failed: {e}") from e
        logger.debug(f"Wrote record {path}")

        try:
            self._append_journal(key, message)
        except OSError as e:
            logger.error(f"Journal entry for {key} not written: {e}")

    def _append_journal(self, key: str, message: str) -> None:
        """Append a commit entry to the journal with file locking."""
        if self._container is None:
            raise LogStoreError("Log directory has not been provisioned")
        line = json.dumps(
            {
                "key": key,
                "message": message,
                "written_at": datetime.now().isoformat(),
            },
            ensure_ascii=False,
        )
        with open(self._container / JOURNAL_NAME, "a") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(line)
                f.write("\n")
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def read_journal(self) -> list[dict]:
        """Return all journal entries, oldest first."""
        if self._container is None:
            return []
        journal = self._container / JOURNAL_NAME
        if not journal.exists():
            return []
        return [json.loads(line) for line in journal.read_text().splitlines() if line.strip()]
