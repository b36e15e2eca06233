"""
Plain data types shared by the bootstrap components.

Nothing here is persisted through the ORM: the system of record for
replication state is the local MySQL instance itself.
"""

from .database import DatabaseEndpoint
from .replication import (
    ReplicaState,
    SourceLogCoordinate,
    SeedArtifact,
    ReplicationLinkConfig,
    BootstrapResult,
)

__all__ = [
    'DatabaseEndpoint',
    'ReplicaState',
    'SourceLogCoordinate',
    'SeedArtifact',
    'ReplicationLinkConfig',
    'BootstrapResult',
]
