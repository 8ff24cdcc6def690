"""Junos RPC request bodies sent through a DeviceSession."""
from xml.sax.saxutils import escape, quoteattr

from .documents import ConfigDocument, LoadAction

DEFAULT_CONFIRM_TIMEOUT = 5  # minutes, enforced by the router

OUTPUT_FORMATS = ("text", "xml", "json")

LOCK = "<lock-configuration/>"
UNLOCK = "<unlock-configuration/>"
GET_CONFIGURATION = '<get-configuration format="text"/>'
DIFF_CONFIGURATION = '<get-configuration compare="rollback" rollback="0" format="text"/>'
CONFIRM = "<commit-configuration/>"


def load_configuration(document: ConfigDocument, action: LoadAction = LoadAction.OVERRIDE) -> str:
    action = LoadAction(action)
    return (
        f"<load-configuration action={quoteattr(action.value)} "
        f"format={quoteattr(document.format.value)}>"
        f"{document.to_xml()}"
        f"</load-configuration>"
    )


def commit_confirmed(confirm_timeout: int = DEFAULT_CONFIRM_TIMEOUT) -> str:
    if confirm_timeout < 1:
        raise ValueError(f"confirm timeout must be at least 1 minute, got {confirm_timeout}")
    return (
        "<commit-configuration>"
        "<confirmed/>"
        f"<confirm-timeout>{int(confirm_timeout)}</confirm-timeout>"
        "</commit-configuration>"
    )


def command(text: str, output_format: str = "text") -> str:
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {output_format}")
    return f"<command format={quoteattr(output_format)}>{escape(text)}</command>"
