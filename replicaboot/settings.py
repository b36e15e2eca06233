"""
Django settings for the replica bootstrap project.

Everything is read from the container environment. Nothing here fails at
import time; required values are checked by the bootstrap pre-flight
(replica.replication.validators.BootstrapValidator).
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'replica-bootstrap-not-a-web-app')

DEBUG = False

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    'replica',
]

# The orchestrator talks to MySQL through SQLAlchemy engines, not the ORM.
DATABASES = {}

USE_TZ = True
TIME_ZONE = 'UTC'


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


REPLICA_BOOTSTRAP = {
    # Local replica instance (admin credentials)
    'LOCAL_USER': os.environ.get('LOCAL_MYSQL_USER', 'root'),
    'LOCAL_ROOT_PASSWORD': os.environ.get('MYSQL_ROOT_PASSWORD'),
    'LOCAL_SOCKET': os.environ.get('LOCAL_MYSQL_SOCKET', '/var/run/mysqld/mysqld.sock'),
    'LOCAL_HOST': os.environ.get('LOCAL_MYSQL_HOST') or None,
    'LOCAL_PORT': os.environ.get('LOCAL_MYSQL_PORT', '3306'),
    'LOCAL_DB': os.environ.get('LOCAL_DB') or None,

    # Remote source
    'CLOUD_HOST': os.environ.get('CLOUD_HOST'),
    'CLOUD_PORT': os.environ.get('CLOUD_PORT'),
    'CLOUD_DB': os.environ.get('CLOUD_DB'),
    'CLOUD_REPL_USER': os.environ.get('CLOUD_REPL_USER'),
    'CLOUD_REPL_PASSWORD': os.environ.get('CLOUD_REPL_PASSWORD'),
    'CLOUD_ADMIN_USER': os.environ.get('CLOUD_ADMIN_USER'),
    'CLOUD_ADMIN_PASSWORD': os.environ.get('CLOUD_ADMIN_PASSWORD'),
    'CLOUD_CONNECT_TIMEOUT': os.environ.get('CLOUD_CONNECT_TIMEOUT', '10'),
    'CLOUD_SSL_CA': os.environ.get('CLOUD_SSL_CA') or None,

    # Local filesystem
    'BACKUP_DIR': os.environ.get('REPLICA_BACKUP_DIR', '/backups'),
    'META_DIR': os.environ.get('REPLICA_META_DIR', '/meta'),

    # Behaviour
    'POLL_INTERVAL': os.environ.get('REPLICA_POLL_INTERVAL', '2'),
    'VERIFY_LOG_RETENTION': _env_bool('REPLICA_VERIFY_LOG_RETENTION', True),
    'METRICS_TEXTFILE': os.environ.get('REPLICA_METRICS_TEXTFILE') or None,

    # Client binaries
    'MYSQLDUMP_BIN': os.environ.get('MYSQLDUMP_BIN', 'mysqldump'),
    'MYSQL_BIN': os.environ.get('MYSQL_BIN', 'mysql'),
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'init': {
            'format': '[init] %(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'init',
        },
    },
    'loggers': {
        'replica': {
            'handlers': ['console'],
            'level': os.environ.get('REPLICA_LOG_LEVEL', 'INFO'),
            'propagate': True,
        },
    },
}
