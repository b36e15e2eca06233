"""
Seed-and-position capture.

Produces a data snapshot of the source plus a binlog coordinate the replica
can start from, without any snapshot primitive shared with the source.

The protocol is two steps and the order matters:

1. read the source's current (File, Position) in its own connection;
2. start mysqldump --single-transaction, which takes its snapshot after (1).

Binlog positions only grow on a single writer, so the coordinate from (1) is
at or before the snapshot. Replaying from it may re-apply a few events the
dump already contains, never skip one. Swapping the steps can leave the
coordinate past the snapshot and silently lose the gap.
"""

import logging
import time
from typing import Optional

from replica.logging_utils import log_coordinate_captured, log_seed_dump
from replica.models.replication import SeedArtifact, SourceLogCoordinate
from replica.utils.database_utils import DatabaseConnectionError, DatabaseOperationError
from replica.utils.dump_utils import DumpToolError
from .exceptions import PreconditionError, SeedCaptureError
from .source import SourcePrivilegeError
from .validators import BootstrapValidator

logger = logging.getLogger(__name__)


class SeedCoordinator:

    def __init__(self, source, dumper, validator: Optional[BootstrapValidator] = None):
        self.source = source
        self.dumper = dumper
        self.validator = validator or BootstrapValidator({})

    def capture_coordinate(self) -> SourceLogCoordinate:
        try:
            row = self.source.fetch_log_coordinate()
        except (DatabaseConnectionError, DatabaseOperationError, ValueError) as e:
            raise PreconditionError(f"Could not read source binlog status: {e}") from e

        if not row:
            raise PreconditionError(self._diagnose_empty_status())

        coordinate = self.validator.validate_coordinate(row)
        log_coordinate_captured(self.source.endpoint.host, coordinate)
        return coordinate

    def _diagnose_empty_status(self) -> str:
        try:
            enabled, _ = self.source.check_binary_logging()
        except (DatabaseConnectionError, DatabaseOperationError) as e:
            logger.debug(f"log_bin check failed: {e}")
            enabled = None

        if enabled is False:
            return ("Binlog status is empty: log_bin is OFF on the source. "
                    "Enable binary logging (parameter group) and reboot the source.")
        return ("Binlog status is empty. The admin user needs REPLICATION CLIENT "
                "and the source must be the writer instance.")

    def take_snapshot(self, schema: str) -> SeedArtifact:
        started = time.time()
        try:
            artifact = self.dumper.dump(schema)
        except DumpToolError as e:
            raise SeedCaptureError(f"Seed dump failed: {e}") from e

        self.validator.validate_artifact(artifact)
        log_seed_dump(schema, artifact, duration=time.time() - started)
        return artifact

    def verify_retained(self, coordinate: SourceLogCoordinate) -> bool:
        """
        Check the source still has the coordinate's binlog file.

        Returns False when the admin identity may not list binlogs (the run
        continues, unverified). Raises when the file is gone, because the
        replica could never catch up from there.
        """
        try:
            retained = self.source.list_binary_logs()
        except SourcePrivilegeError as e:
            logger.warning(f"Cannot verify binlog retention, continuing unverified: {e}")
            return False
        except (DatabaseConnectionError, DatabaseOperationError) as e:
            raise PreconditionError(f"Could not list source binlogs: {e}") from e

        if coordinate.file not in retained:
            raise PreconditionError(
                f"Source no longer retains {coordinate.file}; binlog retention is shorter "
                f"than the seed took. Raise retention on the source and re-run."
            )

        logger.info(f"✓ Source still retains {coordinate.file}")
        return True
