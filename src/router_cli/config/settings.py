"""Settings and router inventory loaded from YAML.

Example ``router-cli.yaml``:

```yaml
defaults:
  user: netops
  confirm_timeout: 5      # minutes, enforced by the router
  confirm_wait: 180       # seconds to wait before confirming
  omitted_sections:
    - edit policy-options as-path-group
    - edit policy-options prefix-list
    - edit policy-options route-filter-list

routers:
  core1:
    host: core1.example.net
  lab:
    host: 192.0.2.10
    port: 2830
    user: lab
```

Router entries inherit every connection key from ``defaults``. A router name
not listed under ``routers`` is used as the host name directly.
"""
import getpass
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ..devices.base import NETCONF_PORT, SessionConfig
from ..engine.documents import LoadAction
from ..engine.errors import SettingsError
from ..engine.render import DEFAULT_OMITTED_SECTIONS
from ..engine.rpc import DEFAULT_CONFIRM_TIMEOUT

logger = logging.getLogger(__name__)

CONFIG_ENV = "ROUTER_CLI_CONFIG"

# Keys a router entry may override
CONNECTION_KEYS = ("host", "port", "user", "timeout", "hostkey_verify", "key_filename", "password_env")


def default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return os.environ.get("USER", "")


@dataclass
class Settings:
    """Workflow and connection defaults."""
    user: str = field(default_factory=default_user)
    port: int = NETCONF_PORT
    timeout: int = 30
    hostkey_verify: bool = False
    key_filename: Optional[str] = None
    password_env: str = "ROUTER_CLI_PASSWORD"
    confirm_timeout: int = DEFAULT_CONFIRM_TIMEOUT
    confirm_wait: int = 180
    load_action: LoadAction = LoadAction.OVERRIDE
    color: bool = True
    omitted_sections: list[str] = field(default_factory=lambda: list(DEFAULT_OMITTED_SECTIONS))
    routers: dict[str, dict] = field(default_factory=dict)
    source: Optional[str] = None

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Check value ranges and the wait/timeout relation.

        Raises:
            SettingsError: On any inconsistent value
        """
        try:
            self.load_action = LoadAction(self.load_action)
        except ValueError:
            raise SettingsError(
                f"Invalid load_action: {self.load_action}. Must be 'override' or 'replace'"
            )

        if self.confirm_timeout < 1:
            raise SettingsError(f"confirm_timeout must be at least 1 minute, got {self.confirm_timeout}")
        if self.confirm_wait < 0:
            raise SettingsError(f"confirm_wait must not be negative, got {self.confirm_wait}")
        if self.confirm_wait >= self.confirm_timeout * 60:
            raise SettingsError(
                f"confirm_wait ({self.confirm_wait}s) must be shorter than "
                f"confirm_timeout ({self.confirm_timeout}min), otherwise the router "
                f"rolls back before the confirmation is sent"
            )

        for name, entry in self.routers.items():
            if not isinstance(entry, dict):
                raise SettingsError(f"Router '{name}' must be a mapping")
            unknown = set(entry) - set(CONNECTION_KEYS)
            if unknown:
                raise SettingsError(f"Router '{name}' has unknown keys: {sorted(unknown)}")

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]], source: Optional[str] = None) -> "Settings":
        """Build settings from a parsed YAML document."""
        data = data or {}
        if not isinstance(data, dict):
            raise SettingsError("Settings file must contain a mapping")

        defaults = data.get("defaults") or {}
        known = {f.name for f in fields(cls)} - {"routers", "source"}
        unknown = set(defaults) - known
        if unknown:
            raise SettingsError(f"Unknown settings in defaults: {sorted(unknown)}")

        return cls(routers=dict(data.get("routers") or {}), source=source, **defaults)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "Settings":
        """Load settings from ``path`` or the first file found on the search path.

        No file at all means built-in defaults. An explicitly given path that
        does not exist is an error.
        """
        if path is None:
            path = os.environ.get(CONFIG_ENV) or cls._find_config()
            if path is None:
                logger.debug("No settings file found, using defaults")
                return cls()
        elif not Path(path).exists():
            raise SettingsError(f"Settings file not found: {path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise SettingsError(f"Cannot load settings from {path}: {e}") from e

        logger.debug(f"Loaded settings from {path}")
        return cls.from_dict(data, source=str(path))

    @staticmethod
    def _find_config() -> Optional[str]:
        """Find router-cli.yaml in the usual places."""
        search_paths = [
            Path.cwd() / "router-cli.yaml",
            Path.home() / ".config" / "router-cli" / "router-cli.yaml",
        ]

        for candidate in search_paths:
            if candidate.exists():
                return str(candidate)
        return None

    def session_config(self, router: str, user: Optional[str] = None) -> SessionConfig:
        """Connection parameters for ``router``.

        Router entries override the defaults; an explicit ``user`` (from the
        command line) overrides both.
        """
        entry = self.routers.get(router, {})
        merged = {
            "host": router,
            "port": self.port,
            "user": self.user,
            "timeout": self.timeout,
            "hostkey_verify": self.hostkey_verify,
            "key_filename": self.key_filename,
            "password_env": self.password_env,
        }
        merged.update(entry)
        if user:
            merged["user"] = user

        if not merged["user"]:
            raise SettingsError(f"No user configured for {router}; pass --user")

        return SessionConfig(
            host=merged["host"],
            username=merged["user"],
            port=int(merged["port"]),
            password_env=merged["password_env"],
            key_filename=merged["key_filename"],
            timeout=int(merged["timeout"]),
            hostkey_verify=bool(merged["hostkey_verify"]),
        )
