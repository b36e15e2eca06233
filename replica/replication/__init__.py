"""
Replication module - replica bootstrap and self-healing.

- ReplicaBootstrapOrchestrator: one pass per container start
- detect_replica_state: FRESH vs CONFIGURED from local metadata
- SeedCoordinator: binlog coordinate + consistent seed dump, in that order
- ReplicationConfigurator: seed import, replication link, read-only
- report_replica_health: replica thread status for logs and metrics
- BootstrapValidator: pre-flight and FRESH-path checks
"""

from .orchestrator import ReplicaBootstrapOrchestrator
from .detector import detect_replica_state
from .seed import SeedCoordinator
from .configurator import ReplicationConfigurator
from .health_monitor import get_replica_health, report_replica_health
from .validators import BootstrapValidator
from .exceptions import (
    BootstrapError,
    ConfigurationError,
    PreconditionError,
    SeedCaptureError,
    ReplicaLoadError,
    ReplicationSetupError,
)

__all__ = [
    'ReplicaBootstrapOrchestrator',
    'detect_replica_state',
    'SeedCoordinator',
    'ReplicationConfigurator',
    'get_replica_health',
    'report_replica_health',
    'BootstrapValidator',
    'BootstrapError',
    'ConfigurationError',
    'PreconditionError',
    'SeedCaptureError',
    'ReplicaLoadError',
    'ReplicationSetupError',
]
