"""
Applies the seed locally, points the replica at the source and keeps it
read-only.
"""

import logging
from typing import Dict, List

from replica.models.replication import ReplicationLinkConfig, SeedArtifact
from replica.utils.database_utils import DatabaseOperationError
from replica.utils.dump_utils import DumpToolError
from .exceptions import ReplicaLoadError, ReplicationSetupError
from .local import READ_ONLY_FLAGS

logger = logging.getLogger(__name__)


class ReplicationConfigurator:

    def __init__(self, local, loader):
        self.local = local
        self.loader = loader

    def apply_seed(self, artifact: SeedArtifact, schema: str) -> None:
        """
        Create the schema if needed and import the seed.

        Not retried. A failed import leaves the link unconfigured.
        """
        try:
            self.local.create_schema(schema)
        except DatabaseOperationError as e:
            raise ReplicaLoadError(f"Could not create schema {schema}: {e}") from e

        try:
            self.loader.load(artifact, schema)
        except DumpToolError as e:
            raise ReplicaLoadError(f"Seed import into {schema} failed: {e}") from e

    def configure_link(self, link: ReplicationLinkConfig) -> None:
        try:
            self.local.configure_link(link)
        except DatabaseOperationError as e:
            raise ReplicationSetupError(f"Could not configure replication link: {e}") from e

        logger.info(
            f"Replication link -> {link.host}:{link.port} as {link.user} from {link.coordinate} "
            f"(ssl={link.use_encrypted_transport}, auto_position={link.auto_position})"
        )

    def start_link(self) -> None:
        try:
            self.local.start_link()
        except DatabaseOperationError as e:
            raise ReplicationSetupError(f"Could not start replication: {e}") from e

    def relax_read_only(self) -> List[str]:
        """
        Turn off read_only / super_read_only so the seed can be imported.

        Only for the FRESH path; ensure_read_only() turns them back on.

        Returns:
            The flags that were switched off
        """
        try:
            flags = self.local.read_only_flags()
            enabled = [flag for flag in READ_ONLY_FLAGS if flags.get(flag)]
            if enabled:
                logger.info(f"Disabling {', '.join(enabled)} for seed import")
                self.local.disable_read_only_flags(enabled)
        except DatabaseOperationError as e:
            raise ReplicaLoadError(f"Could not lift read-only for seed import: {e}") from e

        return enabled

    def ensure_read_only(self) -> Dict[str, bool]:
        """
        Turn on read_only / super_read_only where they are off.

        Safe to call on every run; flags already ON are left alone.

        Returns:
            The flags as read back after enforcement
        """
        try:
            flags = self.local.read_only_flags()
            missing = [flag for flag in READ_ONLY_FLAGS if flag in flags and not flags[flag]]
            if missing:
                logger.info(f"Enabling {', '.join(missing)} on replica")
                self.local.enable_read_only_flags(missing)
                flags = self.local.read_only_flags()
            else:
                logger.info("Replica already read-only")
        except DatabaseOperationError as e:
            raise ReplicationSetupError(f"Could not enforce read-only: {e}") from e

        still_off = [flag for flag, enabled in flags.items() if not enabled]
        if still_off:
            raise ReplicationSetupError(f"Read-only flags still off after enforcement: {still_off}")

        return flags
