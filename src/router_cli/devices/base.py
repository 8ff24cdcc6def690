"""Device session abstraction for NETCONF-managed routers."""
import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

NETCONF_PORT = 830


@dataclass
class SessionConfig:
    """Connection parameters for a router."""
    host: str
    username: str
    port: int = NETCONF_PORT
    password_env: str = "ROUTER_CLI_PASSWORD"
    key_filename: Optional[str] = None
    timeout: int = 30
    hostkey_verify: bool = False

    def get_password(self) -> Optional[str]:
        """Get password from the environment variable.

        None means authentication goes through the SSH agent and keys only.
        """
        return os.environ.get(self.password_env) or None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class DeviceSession(ABC):
    """Request/reply channel to a single router.

    ``execute`` takes a Junos RPC body (e.g. ``<lock-configuration/>``) and
    returns the body of the matching <rpc-reply>. Device-reported rpc-errors
    are returned as part of the body, not raised.
    """

    def __init__(self, config: SessionConfig):
        self.config = config
        self._connected = False

    @property
    def router(self) -> str:
        return self.config.host

    @property
    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    async def connect(self) -> None:
        """Open and authenticate the session."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the session."""
        pass

    @abstractmethod
    async def execute(self, request: str) -> str:
        """Send one RPC and return the reply body."""
        pass

    # Context manager support
    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
        return False
