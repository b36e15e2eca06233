"""
Replica Bootstrap Orchestrator - runs once per container start.

Decides whether the local replica needs a fresh seed or already has
replication configured, and leaves it replicating and read-only:

    WAIT_READY -> DETECT -> [FRESH: CAPTURE_COORD -> DUMP -> LOAD
                             -> CONFIGURE_LINK -> START_LINK]
               -> ENFORCE_READONLY -> VERIFY

Any fatal condition raises a BootstrapError and aborts the whole pass; the
next container start re-derives FRESH/CONFIGURED from scratch.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Mapping, Optional

from django.conf import settings
from django.utils import timezone

from replica import metrics
from replica.logging_utils import bootstrap_logger, log_database_connection, log_operation
from replica.models.database import DatabaseEndpoint
from replica.models.replication import BootstrapResult, ReplicaState, ReplicationLinkConfig
from replica.utils.dump_utils import SeedDumper, SeedLoader
from replica.utils.identity import ReplicaIdentityStore
from .configurator import ReplicationConfigurator
from .detector import detect_replica_state
from .exceptions import ConfigurationError
from .health_monitor import report_replica_health
from .local import LocalReplica
from .seed import SeedCoordinator
from .source import SourceDatabase
from .validators import BootstrapValidator

logger = logging.getLogger(__name__)

TOTAL_STEPS = 5


def build_local_endpoint(config: Mapping[str, Any]) -> DatabaseEndpoint:
    host = config.get('LOCAL_HOST')
    return DatabaseEndpoint(
        connection_name='local-replica',
        username=config.get('LOCAL_USER') or 'root',
        password=config['LOCAL_ROOT_PASSWORD'],
        host=host,
        port=int(config.get('LOCAL_PORT') or 3306),
        unix_socket=None if host else config.get('LOCAL_SOCKET'),
    )


def build_source_endpoint(config: Mapping[str, Any]) -> DatabaseEndpoint:
    timeout = config.get('CLOUD_CONNECT_TIMEOUT')
    return DatabaseEndpoint(
        connection_name='cloud-source',
        username=config['CLOUD_ADMIN_USER'],
        password=config['CLOUD_ADMIN_PASSWORD'],
        host=config['CLOUD_HOST'],
        port=int(config['CLOUD_PORT']),
        database_name=config['CLOUD_DB'],
        require_ssl=True,
        ssl_ca=config.get('CLOUD_SSL_CA'),
        connect_timeout=int(timeout) if timeout else None,
    )


def build_link_config(config: Mapping[str, Any], coordinate=None) -> ReplicationLinkConfig:
    return ReplicationLinkConfig(
        host=config['CLOUD_HOST'],
        port=int(config['CLOUD_PORT']),
        user=config['CLOUD_REPL_USER'],
        password=config['CLOUD_REPL_PASSWORD'],
        coordinate=coordinate,
        use_encrypted_transport=True,
        auto_position=False,
        ssl_ca=config.get('CLOUD_SSL_CA'),
    )


class ReplicaBootstrapOrchestrator:
    """
    Orchestrates one bootstrap pass against the local replica.

    Collaborators are injected so the whole state machine can run against
    in-memory fakes; from_settings() wires the real MySQL-backed ones.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        local,
        source,
        dumper,
        loader,
        identity_store,
        validator: Optional[BootstrapValidator] = None,
        sleep=time.sleep,
    ):
        self.config = config
        self.local = local
        self.source = source
        self.validator = validator or BootstrapValidator(config)
        self.seed = SeedCoordinator(source, dumper, self.validator)
        self.configurator = ReplicationConfigurator(local, loader)
        self.identity_store = identity_store
        self.sleep = sleep
        self._path = 'unknown'

    @classmethod
    def from_settings(cls, config: Optional[Mapping[str, Any]] = None) -> 'ReplicaBootstrapOrchestrator':
        """
        Build an orchestrator from settings.REPLICA_BOOTSTRAP.

        Raises:
            ConfigurationError: If required settings are missing or malformed
        """
        config = dict(settings.REPLICA_BOOTSTRAP if config is None else config)
        validator = BootstrapValidator(config)

        is_valid, errors = validator.validate_settings()
        if not is_valid:
            raise ConfigurationError('; '.join(errors))

        local_endpoint = build_local_endpoint(config)
        source_endpoint = build_source_endpoint(config)

        return cls(
            config,
            local=LocalReplica(local_endpoint),
            source=SourceDatabase(source_endpoint),
            dumper=SeedDumper(source_endpoint, config['BACKUP_DIR'], config.get('MYSQLDUMP_BIN') or 'mysqldump'),
            loader=SeedLoader(local_endpoint, config.get('MYSQL_BIN') or 'mysql'),
            identity_store=ReplicaIdentityStore(config['META_DIR']),
            validator=validator,
        )

    @property
    def source_schema(self) -> str:
        return self.config['CLOUD_DB']

    @property
    def local_schema(self) -> str:
        return self.config.get('LOCAL_DB') or self.config['CLOUD_DB']

    # ==========================================
    # Main Operation
    # ==========================================

    def run(self) -> BootstrapResult:
        """
        Run one bootstrap pass.

        Returns:
            BootstrapResult for the path taken

        Raises:
            BootstrapError: on any fatal condition (nothing after it runs)
        """
        self._path = 'unknown'
        try:
            result = self._run()
            metrics.bootstrap_runs_total.labels(path=self._path, status='success').inc()
            return result
        except Exception:
            metrics.bootstrap_runs_total.labels(path=self._path, status='failed').inc()
            raise
        finally:
            metrics.flush_metrics(self.config.get('METRICS_TEXTFILE'))

    def _run(self) -> BootstrapResult:
        self._log_info("=" * 60)
        self._log_info("REPLICA BOOTSTRAP")
        self._log_info("=" * 60)

        # ========================================
        # STEP 1: Readiness gate
        # ========================================
        self._step(1, "Waiting for local MySQL...")
        with self._phase('wait_ready'):
            attempts = self.local.wait_until_ready(
                poll_interval=float(self.config.get('POLL_INTERVAL') or 2),
                sleep=self.sleep,
            )
        log_database_connection(
            self.local.endpoint.connection_name,
            self.local.endpoint.display_address,
            'success',
            attempts=attempts,
        )

        replica_id = self._read_identity()
        if replica_id:
            self._log_info(f"replica_id={replica_id}")

        # ========================================
        # STEP 2: FRESH or CONFIGURED?
        # ========================================
        self._step(2, "Inspecting local replication metadata...")
        with self._phase('detect'):
            state = detect_replica_state(self.local)
        self._path = state.value.lower()

        result = BootstrapResult(state=state, replica_id=replica_id)

        if state == ReplicaState.FRESH:
            self._bootstrap_fresh(result)
        else:
            self._log_info("Replication already configured: skipping seed, leaving link untouched")

        # ========================================
        # STEP 5: Read-only + verify (both paths)
        # ========================================
        self._step(5, "Enforcing read-only and checking replica threads...")
        with self._phase('enforce_read_only'):
            flags = self.configurator.ensure_read_only()
        result.read_only = all(flags.values())
        metrics.replica_read_only.set(1 if result.read_only else 0)
        self._log_info(f"✓ Read-only flags: {flags}")

        with self._phase('verify'):
            result.health = report_replica_health(self.local)

        result.finished_at = timezone.now().isoformat()

        self._log_info("=" * 60)
        self._log_info(f"✓ BOOTSTRAP COMPLETE ({state.value})")
        self._log_info("=" * 60)
        if result.coordinate:
            self._log_info(f"Started from: {result.coordinate}")
        self._log_info(f"Replica threads: {result.health.get('message')}")

        return result

    def _bootstrap_fresh(self, result: BootstrapResult) -> None:
        result.replica_id = self._ensure_identity() or result.replica_id

        # ========================================
        # STEP 3: Coordinate, then snapshot
        # ========================================
        # Coordinate strictly before the dump starts (see replica.replication.seed)
        self._step(3, f"Capturing source position and seed dump of {self.source_schema}...")
        with self._phase('capture_coordinate', host=self.source.endpoint.host):
            coordinate = self.seed.capture_coordinate()
        metrics.source_log_position.labels(log_file=coordinate.file).set(coordinate.position)

        with self._phase('seed_dump', schema=self.source_schema):
            artifact = self.seed.take_snapshot(self.source_schema)
        metrics.seed_dump_bytes.set(artifact.size)

        if self.config.get('VERIFY_LOG_RETENTION', True):
            self.seed.verify_retained(coordinate)

        result.coordinate = coordinate
        result.artifact = artifact

        # ========================================
        # STEP 4: Load + link
        # ========================================
        self._step(4, f"Importing seed into {self.local_schema} and configuring replication...")
        with self._phase('load_seed', schema=self.local_schema):
            self.configurator.relax_read_only()
            self.configurator.apply_seed(artifact, self.local_schema)

        with self._phase('configure_link'):
            self.configurator.configure_link(build_link_config(self.config, coordinate))
            self.configurator.start_link()
        self._log_info("✓ Replication started")

    def _read_identity(self) -> Optional[str]:
        try:
            return self.identity_store.read()
        except OSError as e:
            self._log_warning(f"Could not read replica identity: {e}")
            return None

    def _ensure_identity(self) -> Optional[str]:
        try:
            replica_id = self.identity_store.ensure()
        except OSError as e:
            self._log_warning(f"Could not persist replica identity: {e}")
            return None
        self._log_info(f"replica_id={replica_id}")
        return replica_id

    # ==========================================
    # Internal Helpers
    # ==========================================

    @contextmanager
    def _phase(self, name: str, **context):
        context.setdefault('schema', self.local_schema)
        with metrics.bootstrap_phase_duration.labels(phase=name).time():
            with log_operation(bootstrap_logger, name, **context):
                yield

    def _step(self, number: int, message: str):
        self._log_info(f"STEP {number}/{TOTAL_STEPS}: {message}")

    def _log_info(self, message: str):
        logger.info(f"[{self.local_schema}] {message}")

    def _log_warning(self, message: str):
        logger.warning(f"[{self.local_schema}] {message}")

    def describe(self) -> Dict[str, Any]:
        """Non-secret summary of what this orchestrator will talk to."""
        return {
            'local': self.local.endpoint.display_address,
            'source': self.source.endpoint.display_address,
            'source_schema': self.source_schema,
            'local_schema': self.local_schema,
            'verify_log_retention': bool(self.config.get('VERIFY_LOG_RETENTION', True)),
        }
