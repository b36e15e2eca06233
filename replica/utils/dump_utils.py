"""
Seed dump (mysqldump against the source) and seed load (mysql client against
the local replica).

Both tools get their password through MYSQL_PWD so it never shows up in the
process table or in our logs.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from replica.models.database import DatabaseEndpoint
from replica.models.replication import SeedArtifact

logger = logging.getLogger(__name__)

SEED_FILENAME = 'seed.sql'


class DumpToolError(Exception):
    """Raised when mysqldump / mysql exit non-zero or cannot be started"""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ''):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def _tool_env(password: str) -> Dict[str, str]:
    env = dict(os.environ)
    env['MYSQL_PWD'] = password or ''
    return env


def _tail(stderr: Optional[bytes], limit: int = 2000) -> str:
    if not stderr:
        return ''
    return stderr.decode('utf-8', errors='replace').strip()[-limit:]


class SeedDumper:
    """
    Takes a consistent logical dump of one schema from the source.

    ``--single-transaction`` opens a REPEATABLE READ snapshot at dump start,
    so every row in the artifact is as of that single instant.
    """

    def __init__(self, endpoint: DatabaseEndpoint, backup_dir, mysqldump_bin: str = 'mysqldump'):
        self.endpoint = endpoint
        self.backup_dir = Path(backup_dir)
        self.mysqldump_bin = mysqldump_bin

    @property
    def artifact_path(self) -> Path:
        return self.backup_dir / SEED_FILENAME

    def build_command(self, schema: str) -> List[str]:
        command = [
            self.mysqldump_bin,
            '--protocol=tcp',
            f'--host={self.endpoint.host}',
            f'--port={self.endpoint.port}',
            f'--user={self.endpoint.username}',
            '--single-transaction',
            '--routines',
            '--triggers',
            '--events',
            # Source may be a managed service with GTIDs on; we replicate by file/pos
            '--set-gtid-purged=OFF',
        ]
        if self.endpoint.require_ssl:
            if self.endpoint.ssl_ca:
                command += ['--ssl-mode=VERIFY_CA', f'--ssl-ca={self.endpoint.ssl_ca}']
            else:
                command.append('--ssl-mode=REQUIRED')
        command.append(schema)
        return command

    def dump(self, schema: str) -> SeedArtifact:
        """
        Dump ``schema`` to BACKUP_DIR/seed.sql, overwriting any previous seed.

        Returns:
            SeedArtifact with the on-disk size (may be 0; the caller decides)

        Raises:
            DumpToolError: If mysqldump cannot start or exits non-zero
        """
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        path = self.artifact_path
        command = self.build_command(schema)

        logger.info(
            f"Running mysqldump for {schema} from {self.endpoint.display_address} -> {path}"
        )

        try:
            with open(path, 'wb') as out:
                completed = subprocess.run(
                    command,
                    stdout=out,
                    stderr=subprocess.PIPE,
                    env=_tool_env(self.endpoint.password),
                    check=False,
                )
        except OSError as e:
            raise DumpToolError(f"Could not run {self.mysqldump_bin}: {e}") from e

        if completed.returncode != 0:
            stderr = _tail(completed.stderr)
            raise DumpToolError(
                f"mysqldump exited with {completed.returncode}: {stderr}",
                returncode=completed.returncode,
                stderr=stderr,
            )

        size = path.stat().st_size if path.exists() else 0
        return SeedArtifact(path=path, size=size)


class SeedLoader:
    """Pipes a seed artifact into the local instance with the mysql client."""

    def __init__(self, endpoint: DatabaseEndpoint, mysql_bin: str = 'mysql'):
        self.endpoint = endpoint
        self.mysql_bin = mysql_bin

    def build_command(self, schema: str) -> List[str]:
        command = [self.mysql_bin, f'--user={self.endpoint.username}']
        if self.endpoint.uses_socket:
            command.append(f'--socket={self.endpoint.unix_socket}')
        else:
            command += ['--protocol=tcp', f'--host={self.endpoint.host}', f'--port={self.endpoint.port}']
        command.append(schema)
        return command

    def load(self, artifact: SeedArtifact, schema: str) -> None:
        """
        Import ``artifact`` into ``schema``.

        Raises:
            DumpToolError: If mysql cannot start or exits non-zero
        """
        command = self.build_command(schema)
        logger.info(f"Importing {artifact.path} ({artifact.size} bytes) into {schema}")

        try:
            with open(artifact.path, 'rb') as seed:
                completed = subprocess.run(
                    command,
                    stdin=seed,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                    env=_tool_env(self.endpoint.password),
                    check=False,
                )
        except OSError as e:
            raise DumpToolError(f"Could not run {self.mysql_bin}: {e}") from e

        if completed.returncode != 0:
            stderr = _tail(completed.stderr)
            raise DumpToolError(
                f"mysql import exited with {completed.returncode}: {stderr}",
                returncode=completed.returncode,
                stderr=stderr,
            )
