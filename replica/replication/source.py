"""
Read-only access to the remote source, using the administrative identity.

Each call opens its own short-lived connection: the coordinate query must
not share a session (or a transaction) with anything else.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from replica.models.database import DatabaseEndpoint
from replica.utils.database_utils import (
    DatabaseOperationError,
    check_binary_logging,
    get_database_connection,
    parse_server_version,
)
from .syntax import source_status_query

logger = logging.getLogger(__name__)

# ER_DBACCESS_DENIED_ERROR, ER_TABLEACCESS_DENIED_ERROR, ER_SPECIFIC_ACCESS_DENIED_ERROR
PRIVILEGE_ERROR_CODES = (1044, 1142, 1227)


class SourcePrivilegeError(DatabaseOperationError):
    """The admin identity is not allowed to run a statement on the source"""
    pass


def _error_code(error: SQLAlchemyError) -> Optional[int]:
    if isinstance(error, DBAPIError) and error.orig is not None and error.orig.args:
        code = error.orig.args[0]
        if isinstance(code, int):
            return code
    return None


class SourceDatabase:

    def __init__(self, endpoint: DatabaseEndpoint, connection_factory=get_database_connection):
        self.endpoint = endpoint
        self._connect = connection_factory

    def _run(self, description: str, func):
        with self._connect(self.endpoint) as conn:
            try:
                return func(conn)
            except SQLAlchemyError as e:
                error_msg = f"{description} failed on {self.endpoint.connection_name}: {str(e)}"
                if _error_code(e) in PRIVILEGE_ERROR_CODES:
                    raise SourcePrivilegeError(error_msg) from e
                raise DatabaseOperationError(error_msg) from e

    def fetch_log_coordinate(self) -> Optional[Dict[str, Any]]:
        """
        Current binlog status row from the source, or None if it has none.

        The row is returned raw (File, Position, ...); validation is the
        caller's job.
        """
        def query(conn):
            version, is_mariadb = parse_server_version(str(conn.execute(text("SELECT VERSION()")).scalar()))
            status_query = source_status_query(version, is_mariadb)
            logger.debug(f"Source {version}: using {status_query}")
            row = conn.execute(text(status_query)).fetchone()
            return dict(row._mapping) if row is not None else None

        return self._run('Binlog status query', query)

    def check_binary_logging(self) -> Tuple[bool, Optional[str]]:
        return self._run('Binary logging check', check_binary_logging)

    def list_binary_logs(self) -> List[str]:
        """Binlog file names the source still retains."""
        def query(conn):
            rows = conn.execute(text("SHOW BINARY LOGS")).fetchall()
            return [row[0] for row in rows]

        return self._run('SHOW BINARY LOGS', query)
