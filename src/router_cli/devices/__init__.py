"""Device sessions for NETCONF-managed routers."""
from .base import DeviceSession, SessionConfig, NETCONF_PORT
from .netconf import NetconfSession

__all__ = [
    "DeviceSession",
    "SessionConfig",
    "NetconfSession",
    "NETCONF_PORT",
]


def create_session(config: SessionConfig) -> DeviceSession:
    """Factory function to create a session for a router."""
    return NetconfSession(config)
