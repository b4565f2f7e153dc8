"""Log stores and the persistence gateway."""

from .base import LogStore, LogStoreError, ProvisionStatus
from .directory import DirectoryLogStore
from .gateway import (
    DEFAULT_CONTAINER,
    DEFAULT_TIMESTAMP_FORMAT,
    DEFAULT_TIMEZONE,
    CommitRecord,
    PersistenceGateway,
    PersistResult,
)
from .github import GitHubLogStore

__all__ = [
    "CommitRecord",
    "DEFAULT_CONTAINER",
    "DEFAULT_TIMESTAMP_FORMAT",
    "DEFAULT_TIMEZONE",
    "DirectoryLogStore",
    "GitHubLogStore",
    "LogStore",
    "LogStoreError",
    "PersistResult",
    "PersistenceGateway",
    "ProvisionStatus",
]
