"""
SQL against the local replica instance.

Every method maps to one or a few administrative statements; the
replication package decides when to call them.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine

from replica.models.database import DatabaseEndpoint
from replica.models.replication import ReplicationLinkConfig
from replica.utils.database_utils import (
    execute_query,
    execute_statement,
    fetch_scalar,
    get_database_engine,
    get_server_version,
    wait_for_database,
)
from .syntax import ReplicationSyntax, replication_syntax_for

logger = logging.getLogger(__name__)

READ_ONLY_FLAGS = ('read_only', 'super_read_only')


def quote_identifier(name: str) -> str:
    """Backtick-quote a MySQL identifier."""
    return '`' + name.replace('`', '``') + '`'


class LocalReplica:
    """Administrative handle on the local MySQL instance."""

    def __init__(self, endpoint: DatabaseEndpoint, engine: Optional[Engine] = None):
        self.endpoint = endpoint
        self.engine = engine or get_database_engine(endpoint)
        self._syntax: Optional[ReplicationSyntax] = None

    def wait_until_ready(self, poll_interval: float = 2.0, sleep=time.sleep) -> int:
        return wait_for_database(self.engine, poll_interval=poll_interval, sleep=sleep)

    @property
    def syntax(self) -> ReplicationSyntax:
        if self._syntax is None:
            version, is_mariadb = get_server_version(self.engine)
            self._syntax = replication_syntax_for(version, is_mariadb)
            logger.debug(f"Local server {version} -> {self._syntax.name} replication syntax")
        return self._syntax

    # ==========================================
    # Replication metadata
    # ==========================================

    def count_replication_channels(self) -> int:
        """Rows in the replication connection configuration (0 = never configured)."""
        if self.syntax.channel_count_query:
            return int(fetch_scalar(self.engine, self.syntax.channel_count_query) or 0)
        return len(execute_query(self.engine, self.syntax.show_status))

    def replica_status(self) -> Optional[Dict[str, Any]]:
        rows = execute_query(self.engine, self.syntax.show_status)
        return rows[0] if rows else None

    # ==========================================
    # Seed target
    # ==========================================

    def create_schema(self, name: str) -> None:
        execute_statement(self.engine, f"CREATE DATABASE IF NOT EXISTS {quote_identifier(name)}")

    # ==========================================
    # Replication link
    # ==========================================

    def configure_link(self, link: ReplicationLinkConfig) -> None:
        """Drop whatever link exists and define a new one. Does not start it."""
        syntax = self.syntax
        execute_statement(self.engine, syntax.stop)
        execute_statement(self.engine, syntax.reset_all)
        statement, params = syntax.change_source_statement(link)
        execute_statement(self.engine, statement, params)

    def start_link(self) -> None:
        execute_statement(self.engine, self.syntax.start)

    # ==========================================
    # Read-only flags
    # ==========================================

    def read_only_flags(self) -> Dict[str, bool]:
        columns = ['@@global.read_only AS read_only']
        if self.syntax.supports_super_read_only:
            columns.append('@@global.super_read_only AS super_read_only')

        rows = execute_query(self.engine, f"SELECT {', '.join(columns)}")
        row = rows[0] if rows else {}
        return {flag: bool(int(value or 0)) for flag, value in row.items()}

    def enable_read_only_flags(self, flags: List[str]) -> None:
        for flag in flags:
            if flag not in READ_ONLY_FLAGS:
                raise ValueError(f"Not a read-only flag: {flag}")
            execute_statement(self.engine, f"SET GLOBAL {flag} = ON")

    def disable_read_only_flags(self, flags: List[str]) -> None:
        unknown = [flag for flag in flags if flag not in READ_ONLY_FLAGS]
        if unknown:
            raise ValueError(f"Not a read-only flag: {unknown[0]}")
        # super_read_only before read_only
        for flag in reversed(READ_ONLY_FLAGS):
            if flag in flags:
                execute_statement(self.engine, f"SET GLOBAL {flag} = OFF")

    def dispose(self) -> None:
        self.engine.dispose()
