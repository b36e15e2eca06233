"""
Connection details for one MySQL endpoint (local replica or remote source).
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class DatabaseEndpoint:
    """Where and how to reach a MySQL server."""

    connection_name: str
    username: str
    password: str = field(repr=False)
    host: Optional[str] = None
    port: int = 3306
    database_name: str = ''
    unix_socket: Optional[str] = None
    require_ssl: bool = False
    ssl_ca: Optional[str] = None
    connect_timeout: Optional[int] = None

    @property
    def uses_socket(self) -> bool:
        return self.host is None and bool(self.unix_socket)

    @property
    def display_address(self) -> str:
        if self.uses_socket:
            return f"socket:{self.unix_socket}"
        return f"{self.host}:{self.port}"
