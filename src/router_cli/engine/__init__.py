"""Deployment engine - safe configuration pushes to Junos routers.

Usage:
    from router_cli.devices import NetconfSession, SessionConfig
    from router_cli.engine import DeploymentWorkflow, auto_approve

    async with NetconfSession(SessionConfig(host="core1", username="netops")) as session:
        workflow = DeploymentWorkflow(session)
        result = await workflow.apply("core1.conf", approve=auto_approve)
"""

from .workflow import (
    DeploymentWorkflow,
    DeploymentState,
    ApplyOutcome,
    ApplyResult,
    auto_approve,
)
from .documents import ConfigDocument, ConfigFormat, DiffDocument, LoadAction
from .render import DiffRenderer, DEFAULT_OMITTED_SECTIONS
from .errors import (
    RouterCliError,
    SessionError,
    ConfigReadError,
    SettingsError,
    ParseError,
    DeviceRPCError,
    LockReleaseError,
)

__all__ = [
    # Workflow
    "DeploymentWorkflow",
    "DeploymentState",
    "ApplyOutcome",
    "ApplyResult",
    "auto_approve",
    # Documents
    "ConfigDocument",
    "ConfigFormat",
    "DiffDocument",
    "LoadAction",
    # Rendering
    "DiffRenderer",
    "DEFAULT_OMITTED_SECTIONS",
    # Errors
    "RouterCliError",
    "SessionError",
    "ConfigReadError",
    "SettingsError",
    "ParseError",
    "DeviceRPCError",
    "LockReleaseError",
]
