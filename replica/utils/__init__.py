"""
Utility modules for database access, seed dump/load and replica identity
"""

from .database_utils import (
    DatabaseConnectionError,
    DatabaseOperationError,
    build_connection_string,
    get_database_engine,
    get_database_connection,
    test_database_connection,
    wait_for_database,
    execute_query,
    execute_statement,
    fetch_scalar,
    get_server_version,
    parse_server_version,
    check_binary_logging,
)

from .dump_utils import (
    SeedDumper,
    SeedLoader,
    DumpToolError,
)

from .identity import ReplicaIdentityStore

__all__ = [
    # Database utilities
    'DatabaseConnectionError',
    'DatabaseOperationError',
    'build_connection_string',
    'get_database_engine',
    'get_database_connection',
    'test_database_connection',
    'wait_for_database',
    'execute_query',
    'execute_statement',
    'fetch_scalar',
    'get_server_version',
    'parse_server_version',
    'check_binary_logging',

    # Seed dump / load
    'SeedDumper',
    'SeedLoader',
    'DumpToolError',

    # Identity
    'ReplicaIdentityStore',
]
