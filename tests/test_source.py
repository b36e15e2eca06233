from contextlib import contextmanager
from unittest.mock import MagicMock

import pymysql
import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from replica.replication.source import SourceDatabase, SourcePrivilegeError
from replica.utils.database_utils import DatabaseOperationError


class ScriptedConnection:
    """Answers SQL text with canned results; records every statement."""

    def __init__(self, responses):
        self.responses = responses
        self.statements = []

    def execute(self, clause, params=None):
        sql = str(clause)
        self.statements.append(sql)
        response = self.responses[sql]
        if isinstance(response, Exception):
            raise response
        result = MagicMock()
        result.scalar.return_value = response
        if isinstance(response, list):
            result.fetchall.return_value = response
            result.fetchone.return_value = response[0] if response else None
        else:
            result.fetchone.return_value = response
            result.fetchall.return_value = [response]
        return result


def _source(conn, endpoint):
    opened = []

    @contextmanager
    def factory(ep):
        opened.append(ep)
        yield conn

    source = SourceDatabase(endpoint, connection_factory=factory)
    source.opened = opened
    return source


@pytest.fixture
def endpoint(source):
    # the FakeSource fixture carries a ready-made endpoint
    return source.endpoint


def _status_row(**values):
    row = MagicMock()
    row._mapping = values
    return row


def test_fetch_log_coordinate_mysql8(endpoint):
    conn = ScriptedConnection({
        'SELECT VERSION()': '8.0.35',
        'SHOW MASTER STATUS': [_status_row(File='mysql-bin.000042', Position=157)],
    })
    source = _source(conn, endpoint)

    row = source.fetch_log_coordinate()

    assert row == {'File': 'mysql-bin.000042', 'Position': 157}
    assert conn.statements == ['SELECT VERSION()', 'SHOW MASTER STATUS']
    assert len(source.opened) == 1


def test_fetch_log_coordinate_mysql84_uses_binary_log_status(endpoint):
    conn = ScriptedConnection({
        'SELECT VERSION()': '8.4.3',
        'SHOW BINARY LOG STATUS': [_status_row(File='binlog.000003', Position=4)],
    })

    row = _source(conn, endpoint).fetch_log_coordinate()

    assert row['File'] == 'binlog.000003'


def test_fetch_log_coordinate_empty(endpoint):
    conn = ScriptedConnection({'SELECT VERSION()': '8.0.35', 'SHOW MASTER STATUS': []})

    assert _source(conn, endpoint).fetch_log_coordinate() is None


def test_each_call_opens_its_own_connection(endpoint):
    conn = ScriptedConnection({
        'SELECT VERSION()': '8.0.35',
        'SHOW MASTER STATUS': [],
        'SHOW BINARY LOGS': [('mysql-bin.000042', 1024, 'No')],
    })
    source = _source(conn, endpoint)

    source.fetch_log_coordinate()
    source.list_binary_logs()

    assert len(source.opened) == 2


def test_check_binary_logging(endpoint):
    conn = ScriptedConnection({
        "SHOW VARIABLES LIKE 'log_bin'": ('log_bin', 'OFF'),
    })

    assert _source(conn, endpoint).check_binary_logging() == (False, None)


def test_list_binary_logs(endpoint):
    conn = ScriptedConnection({
        'SHOW BINARY LOGS': [('mysql-bin.000041', 1024, 'No'), ('mysql-bin.000042', 2048, 'No')],
    })

    assert _source(conn, endpoint).list_binary_logs() == ['mysql-bin.000041', 'mysql-bin.000042']


def test_privilege_errors_are_distinguished(endpoint):
    denied = OperationalError(
        'SHOW BINARY LOGS', {},
        pymysql.err.OperationalError(1227, 'Access denied; you need (at least one of) the REPLICATION CLIENT privilege(s)'),
    )
    conn = ScriptedConnection({'SHOW BINARY LOGS': denied})

    with pytest.raises(SourcePrivilegeError):
        _source(conn, endpoint).list_binary_logs()


def test_other_errors_are_operation_errors(endpoint):
    broken = ProgrammingError('SHOW BINARY LOGS', {}, pymysql.err.ProgrammingError(1064, 'syntax'))
    conn = ScriptedConnection({'SHOW BINARY LOGS': broken})

    with pytest.raises(DatabaseOperationError) as exc_info:
        _source(conn, endpoint).list_binary_logs()

    assert not isinstance(exc_info.value, SourcePrivilegeError)
