"""Exception hierarchy for the deployment workflow."""
from typing import Optional


class RouterCliError(Exception):
    """Base class for all router-cli errors."""
    pass


class SessionError(RouterCliError):
    """Transport or authentication failure talking to the router."""
    pass


class ConfigReadError(RouterCliError):
    """The local configuration file could not be read."""
    pass


class SettingsError(RouterCliError):
    """The settings file is malformed or inconsistent."""
    pass


class ParseError(RouterCliError):
    """A reply from the router did not have the expected structure."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        self.message = message
        super().__init__(f"Failed to parse {stage} reply: {message}")


class DeviceRPCError(RouterCliError):
    """Structured <rpc-error> reported by the router."""

    def __init__(
        self,
        message: str,
        severity: str = "error",
        path: str = "",
        bad_element: str = "",
    ):
        self.message = message
        self.severity = severity
        self.path = path
        self.bad_element = bad_element
        super().__init__(f"RPC error {message}: Bad Element {bad_element}")


class LockReleaseError(RouterCliError):
    """Unlocking the candidate configuration failed.

    When the locked body had already failed, both errors are kept in
    ``errors`` (body error first) so neither hides the other.
    """

    def __init__(self, unlock_error: BaseException, body_error: Optional[BaseException] = None):
        self.unlock_error = unlock_error
        self.body_error = body_error
        self.errors = [e for e in (body_error, unlock_error) if e is not None]
        if body_error is not None:
            message = f"{body_error}; additionally failed to unlock configuration: {unlock_error}"
        else:
            message = f"Failed to unlock configuration: {unlock_error}"
        super().__init__(message)
