import subprocess
from unittest.mock import patch

import pytest

from replica.models.database import DatabaseEndpoint
from replica.models.replication import SeedArtifact
from replica.utils.dump_utils import DumpToolError, SeedDumper, SeedLoader


@pytest.fixture
def source_endpoint():
    return DatabaseEndpoint(
        connection_name='cloud-source',
        username='admin',
        password='s3cret',
        host='source.example',
        port=3306,
        database_name='shop',
    )


@pytest.fixture
def local_endpoint():
    return DatabaseEndpoint(
        connection_name='local-replica',
        username='root',
        password='rootpw',
        unix_socket='/var/run/mysqld/mysqld.sock',
    )


def _writes(payload: bytes, returncode: int = 0, stderr: bytes = b''):
    def run(command, stdout=None, **kwargs):
        stdout.write(payload)
        return subprocess.CompletedProcess(command, returncode, stderr=stderr)
    return run


def test_dump_command_is_consistent_snapshot(source_endpoint, tmp_path):
    command = SeedDumper(source_endpoint, tmp_path).build_command('shop')

    assert command[0] == 'mysqldump'
    assert '--single-transaction' in command
    assert '--set-gtid-purged=OFF' in command
    assert '--routines' in command and '--triggers' in command and '--events' in command
    assert '--protocol=tcp' in command
    assert command[-1] == 'shop'
    assert not any('s3cret' in part for part in command)


def test_dump_command_tls_flags(tmp_path):
    endpoint = DatabaseEndpoint('s', 'u', 'p', host='h', require_ssl=True, ssl_ca='/etc/ssl/rds.pem')

    command = SeedDumper(endpoint, tmp_path).build_command('shop')

    assert '--ssl-mode=VERIFY_CA' in command
    assert '--ssl-ca=/etc/ssl/rds.pem' in command


def test_dump_writes_artifact(source_endpoint, tmp_path):
    backup_dir = tmp_path / 'backups'

    with patch('replica.utils.dump_utils.subprocess.run', side_effect=_writes(b'-- MySQL dump 10.13\n')) as run:
        artifact = SeedDumper(source_endpoint, backup_dir).dump('shop')

    assert artifact.path == backup_dir / 'seed.sql'
    assert artifact.size == len(b'-- MySQL dump 10.13\n')
    assert run.call_args.kwargs['env']['MYSQL_PWD'] == 's3cret'


def test_dump_overwrites_previous_seed(source_endpoint, tmp_path):
    (tmp_path / 'seed.sql').write_text('old seed that is much longer than the new one')

    with patch('replica.utils.dump_utils.subprocess.run', side_effect=_writes(b'new')):
        artifact = SeedDumper(source_endpoint, tmp_path).dump('shop')

    assert artifact.path.read_bytes() == b'new'


def test_dump_reports_empty_output_without_failing(source_endpoint, tmp_path):
    with patch('replica.utils.dump_utils.subprocess.run', side_effect=_writes(b'')):
        artifact = SeedDumper(source_endpoint, tmp_path).dump('shop')

    assert artifact.is_empty


def test_dump_nonzero_exit(source_endpoint, tmp_path):
    failing = _writes(b'', returncode=2, stderr=b"mysqldump: Got error: 1045: Access denied for user 'admin'")

    with patch('replica.utils.dump_utils.subprocess.run', side_effect=failing):
        with pytest.raises(DumpToolError) as exc_info:
            SeedDumper(source_endpoint, tmp_path).dump('shop')

    assert exc_info.value.returncode == 2
    assert 'Access denied' in exc_info.value.stderr


def test_dump_binary_missing(source_endpoint, tmp_path):
    with patch('replica.utils.dump_utils.subprocess.run', side_effect=FileNotFoundError('mysqldump')):
        with pytest.raises(DumpToolError, match='Could not run'):
            SeedDumper(source_endpoint, tmp_path).dump('shop')


def test_loader_uses_socket_and_stdin(local_endpoint, tmp_path):
    seed = tmp_path / 'seed.sql'
    seed.write_text('CREATE TABLE t (id INT);')
    artifact = SeedArtifact(path=seed, size=seed.stat().st_size)

    with patch('replica.utils.dump_utils.subprocess.run',
               return_value=subprocess.CompletedProcess([], 0, stderr=b'')) as run:
        SeedLoader(local_endpoint).load(artifact, 'shop')

    command = run.call_args.args[0]
    assert command == ['mysql', '--user=root', '--socket=/var/run/mysqld/mysqld.sock', 'shop']
    assert str(run.call_args.kwargs['stdin'].name) == str(seed)
    assert run.call_args.kwargs['env']['MYSQL_PWD'] == 'rootpw'


def test_loader_tcp_command():
    endpoint = DatabaseEndpoint('local', 'root', 'pw', host='127.0.0.1', port=3307)

    command = SeedLoader(endpoint, mysql_bin='/usr/bin/mysql').build_command('shop')

    assert command == ['/usr/bin/mysql', '--user=root', '--protocol=tcp', '--host=127.0.0.1', '--port=3307', 'shop']


def test_loader_failure(local_endpoint, tmp_path):
    seed = tmp_path / 'seed.sql'
    seed.write_text('garbage')
    artifact = SeedArtifact(path=seed, size=7)

    with patch('replica.utils.dump_utils.subprocess.run',
               return_value=subprocess.CompletedProcess([], 1, stderr=b'ERROR 1064 (42000) at line 1')):
        with pytest.raises(DumpToolError, match='ERROR 1064'):
            SeedLoader(local_endpoint).load(artifact, 'shop')
