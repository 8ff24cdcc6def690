"""Config and diff documents exchanged with the router."""
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union
from xml.sax.saxutils import escape

from .codec import expect_element, find_child
from .errors import ConfigReadError, ParseError

logger = logging.getLogger(__name__)


class ConfigFormat(str, Enum):
    """Format of a configuration or diff payload."""
    TEXT = "text"


class LoadAction(str, Enum):
    """Load semantics for <load-configuration>."""
    OVERRIDE = "override"  # Replace the whole candidate
    REPLACE = "replace"    # Replace matching hierarchies only


@dataclass(frozen=True)
class ConfigDocument:
    """Candidate configuration ready to embed in a load request."""
    format: ConfigFormat
    payload: str
    version: Optional[str] = None

    @classmethod
    def from_text(cls, text: str, version: Optional[str] = None) -> "ConfigDocument":
        """Build a document from configuration text.

        The version line is prepended when given, and markup characters are
        escaped so the payload can sit inside <configuration-text>.
        """
        if version:
            text = f"version {version};\n{text}"
        return cls(format=ConfigFormat.TEXT, payload=escape(text), version=version)

    @classmethod
    def from_file(cls, path: Union[str, Path], version: Optional[str] = None) -> "ConfigDocument":
        """Read a local configuration file."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigReadError(f"Cannot read configuration file {path}: {e}") from e
        logger.debug(f"Read {len(text)} bytes of configuration from {path}")
        return cls.from_text(text, version)

    def to_xml(self) -> str:
        """Body embedded in the load-configuration request."""
        return f"<configuration-text>{self.payload}</configuration-text>"


@dataclass(frozen=True)
class DiffDocument:
    """Diff of the candidate against the running configuration."""
    body: str
    format: ConfigFormat = ConfigFormat.TEXT

    @property
    def is_empty(self) -> bool:
        return self.body.strip() == ""

    @classmethod
    def from_reply(cls, reply: str) -> "DiffDocument":
        """Parse a <configuration-information> reply."""
        root = expect_element(reply, "configuration-information", stage="diff")
        output = find_child(root, "configuration-output")
        if output is None:
            raise ParseError("diff", "missing <configuration-output>")
        return cls(body=(output.text or "").strip())

    def write_to(self, path: Union[str, Path]) -> None:
        """Dump the diff body verbatim."""
        logger.info(f"Writing diff to {path}")
        Path(path).write_text(self.body, encoding="utf-8")
