"""
Logging utility functions for structured logging
"""
import logging
import time
from contextlib import contextmanager

# Get loggers for different parts of the application
bootstrap_logger = logging.getLogger('replica.bootstrap')
source_logger = logging.getLogger('replica.source')
db_logger = logging.getLogger('replica.database')


def log_with_context(logger, level, message, **context):
    """
    Log a message with additional context fields

    Args:
        logger: The logger instance to use
        level: Log level (INFO, ERROR, WARNING, etc.)
        message: The log message
        **context: Additional context fields (schema, phase, duration, ...)

    Example:
        log_with_context(
            bootstrap_logger,
            'INFO',
            'Seed dump written',
            schema='shop',
            size_bytes=1048576,
        )
    """
    extra = {k: v for k, v in context.items() if v is not None}
    logger.log(getattr(logging, level.upper()), message, extra=extra)


@contextmanager
def log_operation(logger, operation_name, **context):
    """
    Context manager to log the start, end, and duration of an operation

    Example:
        with log_operation(bootstrap_logger, 'seed_dump', schema='shop'):
            artifact = dumper.dump('shop')
    """
    start_time = time.time()

    log_with_context(
        logger,
        'INFO',
        f'{operation_name} started',
        operation=operation_name,
        **context
    )

    try:
        yield

        duration = time.time() - start_time
        log_with_context(
            logger,
            'INFO',
            f'{operation_name} completed successfully ({duration:.1f}s)',
            operation=operation_name,
            duration=duration,
            status='success',
            **context
        )

    except Exception as e:
        duration = time.time() - start_time
        log_with_context(
            logger,
            'ERROR',
            f'{operation_name} failed: {str(e)}',
            operation=operation_name,
            duration=duration,
            status='failed',
            error_type=type(e).__name__,
            error_message=str(e),
            **context
        )
        raise


# ====================================
# BOOTSTRAP-SPECIFIC LOGGING FUNCTIONS
# ====================================

def log_coordinate_captured(host, coordinate):
    """Log the source binlog coordinate the replica will start from"""
    log_with_context(
        source_logger,
        'INFO',
        f'Source binlog file={coordinate.file} pos={coordinate.position}',
        host=host,
        operation='coordinate_capture',
        log_file=coordinate.file,
        log_position=coordinate.position,
    )


def log_seed_dump(schema, artifact, duration=None):
    """Log a finished seed dump"""
    log_with_context(
        bootstrap_logger,
        'INFO',
        f'Seed dump for {schema}: {artifact.size} bytes at {artifact.path}',
        schema=schema,
        operation='seed_dump',
        size_bytes=artifact.size,
        duration=duration,
    )


def log_replica_threads(health):
    """Log replica IO/SQL thread state; errors and stopped threads as WARNING"""
    level = 'INFO' if health.get('healthy') else 'WARNING'
    log_with_context(
        bootstrap_logger,
        level,
        f"Replica threads: IO={health.get('io_running')} SQL={health.get('sql_running')} "
        f"behind={health.get('seconds_behind')} auto_position={health.get('auto_position')}",
        operation='replica_health',
        io_running=health.get('io_running'),
        sql_running=health.get('sql_running'),
        seconds_behind=health.get('seconds_behind'),
    )

    for key in ('last_io_error', 'last_sql_error'):
        if health.get(key):
            log_with_context(
                bootstrap_logger,
                'WARNING',
                f"{key}: {health[key]}",
                operation='replica_health',
            )


def log_database_connection(connection_name, address, status, attempts=None, error=None):
    """Log database connection attempts"""
    level = 'INFO' if status == 'success' else 'ERROR'
    message = f'Database connection {status}: {connection_name} ({address})'

    context = {
        'connection_name': connection_name,
        'address': address,
        'operation': 'db_connection',
        'status': status,
        'attempts': attempts,
    }

    if error:
        context['error_type'] = type(error).__name__
        context['error_message'] = str(error)

    log_with_context(db_logger, level, message, **context)
