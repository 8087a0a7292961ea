from presence_sync.services.errors import PresenceSyncError, PresenceStoreError
from presence_sync.services.presence_types import (
    ActivityWindow,
    ChunkPartition,
    ChunkResult,
    PresenceSyncStats,
    UserRow,
)
from presence_sync.services.user_batch_service import UserBatchService
from presence_sync.services.activity_service import ActivityService, DETECTION_SOURCES
from presence_sync.services.presence_service import PresenceService, partition_users
from presence_sync.services.presence_sync_job import PresenceSyncJob

__all__ = [
    "PresenceSyncError",
    "PresenceStoreError",
    "ActivityWindow",
    "ChunkPartition",
    "ChunkResult",
    "PresenceSyncStats",
    "UserRow",
    "UserBatchService",
    "ActivityService",
    "DETECTION_SOURCES",
    "PresenceService",
    "partition_users",
    "PresenceSyncJob",
]
