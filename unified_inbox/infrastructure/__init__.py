"""Infrastructure — process-local state shared by the services."""

from unified_inbox.infrastructure.cache import SnapshotCache

__all__ = ["SnapshotCache"]
