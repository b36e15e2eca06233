"""
Replica thread health reporting.

Reports only. Nothing in here raises.
"""

import logging
from typing import Any, Dict

from replica import metrics
from replica.logging_utils import log_replica_threads
from replica.utils.database_utils import DatabaseOperationError

logger = logging.getLogger(__name__)


def get_replica_health(local) -> Dict[str, Any]:
    """
    Snapshot of the replica threads.

    Returns a dict with io_running / sql_running, raw thread states, last
    errors, lag, auto_position, and an overall ``healthy`` flag + message.
    """
    try:
        syntax = local.syntax
        status = local.replica_status()
    except (DatabaseOperationError, ValueError) as e:
        return {
            'state': 'ERROR',
            'healthy': False,
            'io_running': False,
            'sql_running': False,
            'message': f"Failed to read replica status: {str(e)}",
        }

    if not status:
        return {
            'state': 'NOT_CONFIGURED',
            'healthy': False,
            'io_running': False,
            'sql_running': False,
            'message': 'Replica status is empty (no replication configured)',
        }

    io_state = status.get(syntax.io_running_key)
    sql_state = status.get(syntax.sql_running_key)
    io_running = io_state == 'Yes'
    sql_running = sql_state == 'Yes'
    healthy = io_running and sql_running

    return {
        'state': 'RUNNING' if healthy else 'DEGRADED',
        'healthy': healthy,
        'io_running': io_running,
        'sql_running': sql_running,
        'io_state': io_state,
        'sql_state': sql_state,
        'last_io_error': status.get('Last_IO_Error') or '',
        'last_sql_error': status.get('Last_SQL_Error') or '',
        'seconds_behind': status.get(syntax.seconds_behind_key),
        'auto_position': status.get('Auto_Position'),
        'message': _health_message(io_state, sql_state),
    }


def _health_message(io_state, sql_state) -> str:
    if io_state == 'Yes' and sql_state == 'Yes':
        return "Replica IO and SQL threads running"
    elif io_state == 'Connecting':
        return "Replica IO thread still connecting to source"
    else:
        return f"Replica threads not running (IO={io_state}, SQL={sql_state})"


def report_replica_health(local) -> Dict[str, Any]:
    """Read, log and export replica health. Never raises."""
    health = get_replica_health(local)
    log_replica_threads(health)
    if not health['healthy']:
        logger.warning(f"Replica health: {health['message']}")
    metrics.record_replica_health(health)
    return health
