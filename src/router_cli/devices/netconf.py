"""NETCONF-over-SSH session for Junos routers.

Built on ncclient (which drives paramiko underneath). Authentication uses the
SSH agent and default keys, plus an optional password from the environment.
ncclient calls are blocking, so they run in the default executor.
"""
import asyncio
import logging
from typing import Optional

import paramiko
from lxml import etree
from ncclient import manager
from ncclient.operations import RaiseMode
from ncclient.xml_ import to_ele
from ncclient import NCClientError
from ncclient.transport.errors import AuthenticationError

from .base import DeviceSession, SessionConfig
from ..engine.errors import SessionError
from ..utils.logging_config import timed

logger = logging.getLogger(__name__)

TRANSPORT_EXCEPTIONS = (
    NCClientError,
    paramiko.SSHException,
    OSError,
    EOFError,
)


def reply_body(reply_xml: str) -> str:
    """Return everything inside the <rpc-reply> element."""
    root = etree.fromstring(reply_xml.encode("utf-8"))
    parts = [root.text or ""]
    for child in root:
        parts.append(etree.tostring(child, encoding="unicode", with_tail=True))
    return "".join(parts).strip()


class NetconfSession(DeviceSession):
    """Junos NETCONF session backed by an ncclient Manager."""

    def __init__(self, config: SessionConfig):
        super().__init__(config)
        self._manager: Optional[manager.Manager] = None

    @timed("connect")
    async def connect(self) -> None:
        """Open the NETCONF session. No retries: failures are fatal."""
        logger.info(f"Creating NETCONF session with {self.config.address} as {self.config.username}")

        loop = asyncio.get_event_loop()

        def _connect():
            return manager.connect(
                host=self.config.host,
                port=self.config.port,
                username=self.config.username,
                password=self.config.get_password(),
                key_filename=self.config.key_filename,
                allow_agent=True,
                look_for_keys=True,
                hostkey_verify=self.config.hostkey_verify,
                timeout=self.config.timeout,
                device_params={"name": "junos"},
            )

        try:
            conn = await loop.run_in_executor(None, _connect)
        except (AuthenticationError, paramiko.AuthenticationException) as e:
            raise SessionError(f"Authentication as {self.config.username} failed on {self.config.address}: {e}") from e
        except TRANSPORT_EXCEPTIONS as e:
            raise SessionError(f"Cannot connect to {self.config.address}: {e}") from e

        # rpc-errors are part of the reply contract, the codec interprets them
        conn.raise_mode = RaiseMode.NONE
        self._manager = conn
        self._connected = True
        logger.info(f"Authenticated as {self.config.username}")

    async def disconnect(self) -> None:
        """Close the NETCONF session."""
        if self._manager is not None:
            conn = self._manager
            self._manager = None
            loop = asyncio.get_event_loop()
            try:
                await loop.run_in_executor(None, conn.close_session)
            except TRANSPORT_EXCEPTIONS as e:
                logger.warning(f"Error closing session to {self.config.address}: {e}")
        self._connected = False
        logger.debug(f"Disconnected from {self.config.address}")

    @timed("rpc")
    async def execute(self, request: str) -> str:
        """Dispatch one RPC and return the reply body."""
        if self._manager is None:
            raise SessionError("Not connected")

        conn = self._manager
        loop = asyncio.get_event_loop()
        logger.debug(f"RPC request: {request}")

        def _dispatch():
            return conn.dispatch(to_ele(request))

        try:
            reply = await loop.run_in_executor(None, _dispatch)
        except TRANSPORT_EXCEPTIONS as e:
            raise SessionError(f"RPC to {self.config.address} failed: {e}") from e

        body = reply_body(reply.xml)
        logger.debug(f"RPC reply: {body[:500]}")
        return body
