import pytest

from replica.replication.exceptions import ConfigurationError
from replica.replication.local import LocalReplica
from replica.replication.orchestrator import (
    ReplicaBootstrapOrchestrator,
    build_link_config,
    build_local_endpoint,
    build_source_endpoint,
)
from replica.replication.source import SourceDatabase
from replica.utils.database_utils import build_connect_args
from replica.utils.dump_utils import SeedDumper, SeedLoader


def test_local_endpoint_defaults_to_socket(config):
    endpoint = build_local_endpoint(config)

    assert endpoint.uses_socket
    assert endpoint.unix_socket == '/var/run/mysqld/mysqld.sock'
    assert endpoint.username == 'root'


def test_local_endpoint_tcp_override(config):
    config.update(LOCAL_HOST='127.0.0.1', LOCAL_PORT='3307')

    endpoint = build_local_endpoint(config)

    assert not endpoint.uses_socket
    assert endpoint.display_address == '127.0.0.1:3307'


def test_source_endpoint_uses_admin_account(config):
    endpoint = build_source_endpoint(config)

    assert endpoint.username == 'admin'
    assert endpoint.database_name == 'shop'
    assert endpoint.connect_timeout == 10
    assert endpoint.require_ssl is True
    assert endpoint.ssl_ca is None


def test_source_is_encrypted_without_ca(config, tmp_path):
    endpoint = build_source_endpoint(config)

    assert build_connect_args(endpoint)['ssl'] == {'check_hostname': False}
    command = SeedDumper(endpoint, tmp_path).build_command('shop')
    assert '--ssl-mode=REQUIRED' in command
    assert not any(part.startswith('--ssl-ca') for part in command)


def test_source_endpoint_tls_with_ca(config):
    config['CLOUD_SSL_CA'] = '/etc/ssl/rds-ca.pem'

    endpoint = build_source_endpoint(config)

    assert endpoint.require_ssl
    assert endpoint.ssl_ca == '/etc/ssl/rds-ca.pem'


def test_link_config_uses_replication_account(config):
    link = build_link_config(config)

    assert link.user == 'repl'
    assert link.password == "r3pl'pw"
    assert link.use_encrypted_transport is True
    assert link.auto_position is False
    assert link.coordinate is None


def test_from_settings_wires_mysql_collaborators(config):
    orchestrator = ReplicaBootstrapOrchestrator.from_settings(config)
    try:
        assert isinstance(orchestrator.local, LocalReplica)
        assert isinstance(orchestrator.source, SourceDatabase)
        assert isinstance(orchestrator.seed.dumper, SeedDumper)
        assert isinstance(orchestrator.configurator.loader, SeedLoader)
        assert orchestrator.describe()['source'] == 'shop.abc123.eu-west-1.rds.amazonaws.com:3306'
        assert 'adminpw' not in str(orchestrator.describe())
    finally:
        orchestrator.local.dispose()


def test_from_settings_rejects_missing_config(config):
    del config['CLOUD_ADMIN_PASSWORD']
    config['CLOUD_PORT'] = 'abc'

    with pytest.raises(ConfigurationError) as exc_info:
        ReplicaBootstrapOrchestrator.from_settings(config)

    assert 'CLOUD_ADMIN_PASSWORD' in str(exc_info.value)
    assert 'CLOUD_PORT' in str(exc_info.value)
