"""Persistence gateway between the tracker and a LogStore."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from .base import LogStore, ProvisionStatus

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER = "code-tracking"
DEFAULT_TIMEZONE = "Asia/Kolkata"

# Named format: en-US short date without zero padding, 24-hour clock,
# e.g. "1/5/2026, 09:05:03". Any other value is an strftime format.
EN_US_FORMAT = "en-US"
DEFAULT_TIMESTAMP_FORMAT = EN_US_FORMAT


@dataclass(frozen=True)
class CommitRecord:
    """One summary ready to be written. Built and consumed per flush."""

    date: str
    summary_text: str

    @property
    def key(self) -> str:
        return f"log-{self.date}"

    @property
    def message(self) -> str:
        return f"Activity at {self.date}"

    @property
    def body(self) -> bytes:
        return self.summary_text.encode("utf-8")


@dataclass
class PersistResult:
    ok: bool
    key: str | None = None
    error: str | None = None
    provision_status: ProvisionStatus | None = None


class PersistenceGateway:
    """Writes summaries to a LogStore under timestamp-derived keys.

    Writes are attempted once; the caller decides what to do on failure.
    Two writes that format to the same timestamp share a key and the
    later one overwrites the earlier.
    """

    def __init__(
        self,
        store: LogStore,
        container: str = DEFAULT_CONTAINER,
        timezone: str = DEFAULT_TIMEZONE,
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
    ):
        self.store = store
        self.container = container
        self.tz = ZoneInfo(timezone)
        self.timestamp_format = timestamp_format

    def format_date(self, now: datetime | None = None) -> str:
        now = now or datetime.now(self.tz)
        if now.tzinfo is None:
            now = now.astimezone()
        local = now.astimezone(self.tz)
        if self.timestamp_format == EN_US_FORMAT:
            return f"{local.month}/{local.day}/{local.year}, {local:%H:%M:%S}"
        return local.strftime(self.timestamp_format)

    def build_record(self, summary_text: str, now: datetime | None = None) -> CommitRecord:
        return CommitRecord(date=self.format_date(now), summary_text=summary_text)

    async def provision(self) -> PersistResult:
        """Make sure the container exists. An existing container is success."""
        try:
            status = await self.store.ensure_container_exists(self.container)
        except Exception as e:
            logger.error(f"Provisioning {self.container} failed: {e}")
            return PersistResult(ok=False, error=str(e))
        return PersistResult(ok=True, provision_status=status)

    async def persist(self, summary_text: str, now: datetime | None = None) -> PersistResult:
        """Write one summary. Never raises; failures come back in the result."""
        record = self.build_record(summary_text, now)
        try:
            await self.store.write_record(record.key, record.body, record.message)
        except Exception as e:
            logger.error(f"Writing {record.key} failed: {e}")
            return PersistResult(ok=False, key=record.key, error=str(e))
        logger.info(f"Persisted {record.key}")
        return PersistResult(ok=True, key=record.key)
