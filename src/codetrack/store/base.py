"""Log store protocol and errors."""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class ProvisionStatus(Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class LogStoreError(Exception):
    """A log store operation failed.

    Attributes:
        status_code: HTTP status of the failed call, if there was one.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LogStore(Protocol):
    """Durable, versioned destination for activity records."""

    #: Human-readable name used in notifications, e.g. "GitHub"
    label: str

    async def ensure_container_exists(self, name: str) -> ProvisionStatus:
        """Create the record container, or report that it already exists.

        Raises:
            LogStoreError: For any failure other than "already exists".
        """
        ...

    async def write_record(self, key: str, body: bytes, message: str) -> None:
        """Write one record into the provisioned container.

        Raises:
            LogStoreError: If the write did not succeed.
        """
        ...
