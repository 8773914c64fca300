"""Activity ingestion from revision history and the hosting platform."""

from .events import ActivityIngestor, PLATFORM_SOURCES, REVISION_HISTORY
from .git_log import CommitRecord, FileDelta, GitLogError, GitLogReader, parse_git_log
from .platform import PlatformClient, PlatformError

__all__ = [
    "ActivityIngestor",
    "CommitRecord",
    "FileDelta",
    "GitLogError",
    "GitLogReader",
    "PLATFORM_SOURCES",
    "PlatformClient",
    "PlatformError",
    "REVISION_HISTORY",
    "parse_git_log",
]
