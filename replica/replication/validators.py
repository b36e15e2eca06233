"""
Validation logic for the replica bootstrap.

Provides the pre-flight settings check plus the coordinate and artifact
checks that gate the FRESH path.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from replica.models.replication import SeedArtifact, SourceLogCoordinate
from .exceptions import PreconditionError, SeedCaptureError

logger = logging.getLogger(__name__)

REQUIRED_SETTINGS = (
    ('LOCAL_ROOT_PASSWORD', 'MYSQL_ROOT_PASSWORD'),
    ('CLOUD_HOST', 'CLOUD_HOST'),
    ('CLOUD_PORT', 'CLOUD_PORT'),
    ('CLOUD_DB', 'CLOUD_DB'),
    ('CLOUD_REPL_USER', 'CLOUD_REPL_USER'),
    ('CLOUD_REPL_PASSWORD', 'CLOUD_REPL_PASSWORD'),
    ('CLOUD_ADMIN_USER', 'CLOUD_ADMIN_USER'),
    ('CLOUD_ADMIN_PASSWORD', 'CLOUD_ADMIN_PASSWORD'),
)


def _positive_int(value: Any) -> Optional[int]:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _positive_float(value: Any) -> Optional[float]:
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class BootstrapValidator:
    """
    Validates bootstrap inputs.

    validate_settings() follows the (is_valid, [errors]) convention so every
    problem is reported in one go; the coordinate / artifact checks raise,
    because the FRESH path cannot continue past either.
    """

    def __init__(self, config: Mapping[str, Any]):
        self.config = config

    def validate_settings(self) -> Tuple[bool, List[str]]:
        logger.info("Running pre-flight settings validation...")

        validations = [
            self._validate_required(),
            self._validate_port(),
            self._validate_connect_timeout(),
            self._validate_poll_interval(),
        ]

        errors = [error_msg for is_valid, error_msg in validations if not is_valid]

        if errors:
            logger.error(f"Settings validation failed: {errors}")
            return False, errors

        logger.info("✓ All settings present")
        return True, []

    def _validate_required(self) -> Tuple[bool, str]:
        missing = [env for key, env in REQUIRED_SETTINGS if not self.config.get(key)]
        if missing:
            return False, f"Missing required environment: {', '.join(missing)}"
        return True, ""

    def _validate_port(self) -> Tuple[bool, str]:
        port = self.config.get('CLOUD_PORT')
        if port and _positive_int(port) is None:
            return False, f"CLOUD_PORT must be a positive integer, got {port!r}"
        return True, ""

    def _validate_connect_timeout(self) -> Tuple[bool, str]:
        timeout = self.config.get('CLOUD_CONNECT_TIMEOUT')
        if timeout not in (None, '') and _positive_int(timeout) is None:
            return False, f"CLOUD_CONNECT_TIMEOUT must be a positive integer, got {timeout!r}"
        return True, ""

    def _validate_poll_interval(self) -> Tuple[bool, str]:
        interval = self.config.get('POLL_INTERVAL')
        if interval not in (None, '') and _positive_float(interval) is None:
            return False, f"REPLICA_POLL_INTERVAL must be a positive number, got {interval!r}"
        return True, ""

    # ==========================================
    # FRESH-path gates
    # ==========================================

    @staticmethod
    def validate_coordinate(row: Optional[Dict[str, Any]]) -> SourceLogCoordinate:
        """
        Turn a binlog status row into a SourceLogCoordinate.

        Raises:
            PreconditionError: empty result, empty file name, or a position
                that is not a non-negative integer
        """
        if not row:
            raise PreconditionError(
                "Binlog status query returned no row. The source must have "
                "log_bin=ON and be the writer instance."
            )

        log_file = str(row.get('File') or '').strip()
        raw_position = row.get('Position')

        try:
            position = int(str(raw_position).strip())
        except (TypeError, ValueError):
            position = -1

        if not log_file or position < 0:
            raise PreconditionError(
                f"Could not parse binlog status: File={row.get('File')!r} Position={raw_position!r}"
            )

        return SourceLogCoordinate(file=log_file, position=position)

    @staticmethod
    def validate_artifact(artifact: Optional[SeedArtifact]) -> SeedArtifact:
        """
        Raises:
            SeedCaptureError: artifact missing on disk or zero bytes
        """
        if artifact is None or not artifact.path.exists():
            raise SeedCaptureError("Seed dump was not written. Check source credentials and permissions.")
        if artifact.is_empty:
            raise SeedCaptureError(
                f"Seed dump {artifact.path} is empty. Check source credentials and permissions."
            )
        return artifact
