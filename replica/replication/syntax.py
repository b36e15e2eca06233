"""
Replication statement dialects.

MySQL 8.0.23 renamed MASTER/SLAVE to SOURCE/REPLICA; 8.2 added SHOW BINARY
LOG STATUS and 8.4 dropped SHOW MASTER STATUS. MariaDB keeps the old names.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from replica.models.replication import ReplicationLinkConfig

Version = Tuple[int, int, int]

MYSQL_SOURCE_REPLICA_NAMES = (8, 0, 23)
MYSQL_BINARY_LOG_STATUS = (8, 2, 0)


@dataclass(frozen=True)
class ReplicationSyntax:
    name: str
    option_prefix: str
    change_source: str
    start: str
    stop: str
    reset_all: str
    show_status: str
    io_running_key: str
    sql_running_key: str
    seconds_behind_key: str
    # None: count rows of show_status instead
    channel_count_query: Optional[str] = 'SELECT COUNT(*) FROM performance_schema.replication_connection_configuration'
    supports_super_read_only: bool = True
    mariadb: bool = False

    def auto_position_clause(self, enabled: bool) -> str:
        if self.mariadb:
            return f"MASTER_USE_GTID = {'slave_pos' if enabled else 'no'}"
        return f"{self.option_prefix}_AUTO_POSITION = {1 if enabled else 0}"

    def change_source_statement(self, link: ReplicationLinkConfig) -> Tuple[str, Dict]:
        """
        CHANGE ... TO statement with bound parameters.

        Values are bound, not formatted in, so passwords with quotes survive
        and are never part of the statement text we might log.
        """
        p = self.option_prefix
        clauses = [
            f"{p}_HOST = :host",
            f"{p}_PORT = :port",
            f"{p}_USER = :user",
            f"{p}_PASSWORD = :password",
            f"{p}_SSL = :ssl",
        ]
        params = {
            'host': link.host,
            'port': int(link.port),
            'user': link.user,
            'password': link.password,
            'ssl': 1 if link.use_encrypted_transport else 0,
        }

        if link.ssl_ca:
            clauses.append(f"{p}_SSL_CA = :ssl_ca")
            params['ssl_ca'] = link.ssl_ca

        clauses.append(self.auto_position_clause(link.auto_position))

        if link.coordinate is not None:
            clauses += [f"{p}_LOG_FILE = :log_file", f"{p}_LOG_POS = :log_pos"]
            params['log_file'] = link.coordinate.file
            params['log_pos'] = int(link.coordinate.position)

        statement = f"{self.change_source} " + ",\n  ".join(clauses)
        return statement, params


MODERN = ReplicationSyntax(
    name='mysql-8.0.23+',
    option_prefix='SOURCE',
    change_source='CHANGE REPLICATION SOURCE TO',
    start='START REPLICA',
    stop='STOP REPLICA',
    reset_all='RESET REPLICA ALL',
    show_status='SHOW REPLICA STATUS',
    io_running_key='Replica_IO_Running',
    sql_running_key='Replica_SQL_Running',
    seconds_behind_key='Seconds_Behind_Source',
)

LEGACY = ReplicationSyntax(
    name='mysql-legacy',
    option_prefix='MASTER',
    change_source='CHANGE MASTER TO',
    start='START SLAVE',
    stop='STOP SLAVE',
    reset_all='RESET SLAVE ALL',
    show_status='SHOW SLAVE STATUS',
    io_running_key='Slave_IO_Running',
    sql_running_key='Slave_SQL_Running',
    seconds_behind_key='Seconds_Behind_Master',
)

MARIADB = ReplicationSyntax(
    name='mariadb',
    option_prefix='MASTER',
    change_source='CHANGE MASTER TO',
    start='START SLAVE',
    stop='STOP SLAVE',
    reset_all='RESET SLAVE ALL',
    show_status='SHOW SLAVE STATUS',
    io_running_key='Slave_IO_Running',
    sql_running_key='Slave_SQL_Running',
    seconds_behind_key='Seconds_Behind_Master',
    channel_count_query=None,
    supports_super_read_only=False,
    mariadb=True,
)


def replication_syntax_for(version: Version, is_mariadb: bool = False) -> ReplicationSyntax:
    if is_mariadb:
        return MARIADB
    if tuple(version) >= MYSQL_SOURCE_REPLICA_NAMES:
        return MODERN
    return LEGACY


def source_status_query(version: Version, is_mariadb: bool = False) -> str:
    """Statement that returns the source's current binlog File / Position."""
    if not is_mariadb and tuple(version) >= MYSQL_BINARY_LOG_STATUS:
        return 'SHOW BINARY LOG STATUS'
    return 'SHOW MASTER STATUS'
