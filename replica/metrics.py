"""
Prometheus metrics for the replica bootstrap

The bootstrap is a one-shot process, so metrics live on their own registry
and are flushed to a node-exporter textfile (REPLICA_METRICS_TEXTFILE) at the
end of every run instead of being scraped.
"""
import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, write_to_textfile

logger = logging.getLogger(__name__)

registry = CollectorRegistry()

# ====================================
# RUN METRICS
# ====================================
bootstrap_runs_total = Counter(
    'replica_bootstrap_runs_total',
    'Bootstrap runs by detected path and outcome',
    ['path', 'status'],  # path: fresh/configured/unknown, status: success/failed
    registry=registry,
)

bootstrap_phase_duration = Histogram(
    'replica_bootstrap_phase_duration_seconds',
    'Time spent in each bootstrap phase',
    ['phase'],
    buckets=(0.1, 1.0, 5.0, 30.0, 60.0, 300.0, 900.0, 3600.0, float("inf")),
    registry=registry,
)

# ====================================
# SEED METRICS
# ====================================
seed_dump_bytes = Gauge(
    'replica_seed_dump_bytes',
    'Size of the last seed dump artifact',
    registry=registry,
)

source_log_position = Gauge(
    'replica_source_log_position',
    'Binlog position captured from the source for the last seed',
    ['log_file'],
    registry=registry,
)

# ====================================
# REPLICA STATE
# ====================================
replica_thread_running = Gauge(
    'replica_thread_running',
    'Replica thread running (1) or not (0)',
    ['thread'],  # io / sql
    registry=registry,
)

replica_read_only = Gauge(
    'replica_read_only_enforced',
    'read_only and super_read_only both ON after the run',
    registry=registry,
)


def record_replica_health(health):
    replica_thread_running.labels(thread='io').set(1 if health.get('io_running') else 0)
    replica_thread_running.labels(thread='sql').set(1 if health.get('sql_running') else 0)


def flush_metrics(path):
    """Write the registry to ``path``. OSError is logged, not raised."""
    if not path:
        return False
    try:
        write_to_textfile(path, registry)
        return True
    except OSError as e:
        logger.warning(f"Could not write metrics to {path}: {e}")
        return False
