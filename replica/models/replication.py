"""
Replication domain types.

- ReplicaState: FRESH / CONFIGURED, derived from local metadata on every run
- SourceLogCoordinate: (binlog file, position) captured from the source
- SeedArtifact: the dump file written for the initial seed
- ReplicationLinkConfig: what gets handed to CHANGE REPLICATION SOURCE
- BootstrapResult: summary of one orchestrator pass
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class ReplicaState(str, Enum):
    FRESH = 'FRESH'
    CONFIGURED = 'CONFIGURED'


@dataclass(frozen=True)
class SourceLogCoordinate:
    file: str
    position: int

    def __str__(self) -> str:
        return f"{self.file}:{self.position}"


@dataclass(frozen=True)
class SeedArtifact:
    path: Path
    size: int

    @property
    def is_empty(self) -> bool:
        return self.size <= 0


@dataclass(frozen=True)
class ReplicationLinkConfig:
    host: str
    port: int
    user: str
    password: str = field(repr=False)
    coordinate: Optional[SourceLogCoordinate] = None
    use_encrypted_transport: bool = True
    auto_position: bool = False
    ssl_ca: Optional[str] = None


@dataclass
class BootstrapResult:
    state: ReplicaState
    replica_id: Optional[str] = None
    coordinate: Optional[SourceLogCoordinate] = None
    artifact: Optional[SeedArtifact] = None
    health: Dict[str, Any] = field(default_factory=dict)
    read_only: bool = False
    finished_at: Optional[str] = None

    @property
    def seeded(self) -> bool:
        return self.state == ReplicaState.FRESH
