"""
Fatal bootstrap errors.

Each class maps to a distinct process exit code so the container supervisor
(and whoever reads its logs) can tell misconfiguration from a failed seed.
"""


class BootstrapError(Exception):
    """Base class for errors that abort the bootstrap run."""
    exit_code = 1


class ConfigurationError(BootstrapError):
    """Required setting missing or malformed"""
    exit_code = 2


class PreconditionError(BootstrapError):
    """Source is not in a state we can seed from (binlog off, empty status, ...)"""
    exit_code = 3


class SeedCaptureError(BootstrapError):
    """Seed dump failed or produced an empty artifact"""
    exit_code = 4


class ReplicaLoadError(BootstrapError):
    """Schema creation or seed import failed on the local instance"""
    exit_code = 5


class ReplicationSetupError(BootstrapError):
    """Replication link or read-only enforcement failed"""
    exit_code = 6
