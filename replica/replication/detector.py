"""
FRESH / CONFIGURED detection.

The answer is read from the local instance's own replication metadata on
every call and never cached: the data directory can be wiped between runs,
and a manually reset replica must be treated as fresh again.
"""

import logging

from replica.models.replication import ReplicaState
from replica.utils.database_utils import DatabaseOperationError
from .exceptions import PreconditionError

logger = logging.getLogger(__name__)


def detect_replica_state(local) -> ReplicaState:
    try:
        channels = local.count_replication_channels()
    except DatabaseOperationError as e:
        # Never fall back to FRESH on a failed read
        raise PreconditionError(f"Could not read local replication metadata: {e}") from e

    state = ReplicaState.CONFIGURED if channels > 0 else ReplicaState.FRESH
    logger.info(f"Replication channels configured: {channels} -> {state.value}")
    return state
