"""
Replica identity token.

A short random id written once to META_DIR/replica_id and reused across
restarts. Only used to tell replicas apart in logs; replication correctness
does not depend on it.
"""

import logging
import secrets
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

IDENTITY_FILENAME = 'replica_id'


class ReplicaIdentityStore:

    def __init__(self, meta_dir):
        self.meta_dir = Path(meta_dir)

    @property
    def path(self) -> Path:
        return self.meta_dir / IDENTITY_FILENAME

    def read(self) -> Optional[str]:
        """Stored token, or None if not created yet."""
        if not self.path.is_file():
            return None
        token = self.path.read_text().strip()
        return token or None

    def ensure(self) -> str:
        """Return the stored token, creating it first if absent."""
        token = self.read()
        if token:
            return token

        token = secrets.token_hex(5)
        self.meta_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token + '\n')
        logger.info(f"Created replica identity {token} at {self.path}")
        return token
