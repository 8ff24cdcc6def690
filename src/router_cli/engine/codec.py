"""Parsing of Junos XML/JSON replies.

Replies are the body of an <rpc-reply> as returned by a DeviceSession. Junos
puts its own namespaces on most elements, so every reply is reduced to local
element names before lookups.
"""
import json
import logging
from typing import Optional

from lxml import etree

from .errors import DeviceRPCError, ParseError

logger = logging.getLogger(__name__)

_PARSER = etree.XMLParser(resolve_entities=False, huge_tree=True, remove_comments=True)


def _strip_namespaces(root: etree._Element) -> None:
    """Rewrite every tag to its local name in place."""
    for el in root.iter():
        if isinstance(el.tag, str):
            el.tag = etree.QName(el).localname


def reply_elements(reply: str, stage: str) -> list[etree._Element]:
    """Parse a reply body into its top-level elements.

    An enclosing <rpc-reply> is unwrapped if the session left it in place.
    An empty body yields an empty list.

    Raises:
        ParseError: If the body is not well-formed XML
    """
    text = reply.strip()
    if text.startswith("<?xml"):
        text = text.split("?>", 1)[1]
    try:
        wrapper = etree.fromstring(f"<reply>{text}</reply>", parser=_PARSER)
    except etree.XMLSyntaxError as e:
        raise ParseError(stage, str(e)) from e

    _strip_namespaces(wrapper)
    elements = [el for el in wrapper if isinstance(el.tag, str)]
    if len(elements) == 1 and elements[0].tag == "rpc-reply":
        elements = [el for el in elements[0] if isinstance(el.tag, str)]
    return elements


def parse_reply(reply: str, stage: str) -> etree._Element:
    """Return the first element of a reply body."""
    elements = reply_elements(reply, stage)
    if not elements:
        raise ParseError(stage, "empty reply")
    return elements[0]


def find_child(el: etree._Element, tag: str) -> Optional[etree._Element]:
    return el.find(tag)


def expect_element(reply: str, tag: str, stage: str) -> etree._Element:
    """Return the reply root, which must be <tag>.

    Leading warnings are logged and skipped. A root <rpc-error> is raised as
    DeviceRPCError, any other element as ParseError.
    """
    elements = reply_elements(reply, stage)
    while elements and elements[0].tag == "rpc-error":
        error = rpc_error_from_element(elements[0])
        if error.severity != "warning":
            raise error
        logger.warning(f"{stage}: {error.message}")
        elements.pop(0)

    if not elements:
        raise ParseError(stage, "empty reply")
    root = elements[0]
    if root.tag != tag:
        raise ParseError(stage, f"expected <{tag}>, got <{root.tag}>")
    return root


def _child_text(el: etree._Element, path: str) -> str:
    child = el.find(path)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def rpc_error_from_element(el: etree._Element) -> DeviceRPCError:
    """Translate an <rpc-error> element into a DeviceRPCError."""
    return DeviceRPCError(
        message=_child_text(el, "error-message"),
        severity=_child_text(el, "error-severity") or "error",
        path=_child_text(el, "error-path"),
        bad_element=_child_text(el, "error-info/bad-element"),
    )


def raise_for_rpc_error(reply: str, stage: str) -> None:
    """Raise on the first <rpc-error> of severity error; log warnings.

    Used for replies that are either <ok/> or an error (lock, unlock, commit).
    """
    for top in reply_elements(reply, stage):
        for el in top.iter("rpc-error"):
            error = rpc_error_from_element(el)
            if error.severity == "warning":
                logger.warning(f"{stage}: {error.message}")
                continue
            raise error


def parse_load_result(reply: str) -> None:
    """Check a <load-configuration-results> reply.

    Success requires an explicit <ok/>. Anything else becomes a DeviceRPCError
    built from the first <rpc-error> found.
    """
    root = parse_reply(reply, stage="load-configuration")

    if root.tag == "rpc-error":
        raise rpc_error_from_element(root)
    if root.tag != "load-configuration-results":
        raise ParseError("load-configuration", f"unexpected element <{root.tag}>")

    errors = [rpc_error_from_element(el) for el in root.iter("rpc-error")]
    if root.find("ok") is not None:
        for error in errors:
            logger.warning(f"load-configuration: {error.message} ({error.bad_element})")
        return

    if errors:
        raise errors[0]
    raise DeviceRPCError("load-configuration returned no <ok/>")


def parse_version(reply: str) -> str:
    """Extract the Junos version from ``show version`` JSON output.

    Raises:
        ParseError: If the reply is not JSON or lacks the version field
    """
    try:
        data = json.loads(reply)
    except ValueError as e:
        raise ParseError("version", f"invalid JSON: {e}") from e

    try:
        version = data["software-information"][0]["junos-version"][0]["data"]
    except (KeyError, IndexError, TypeError):
        raise ParseError(
            "version",
            "reply has no software-information/junos-version/data field",
        )

    if not isinstance(version, str) or not version:
        raise ParseError("version", f"invalid junos-version value: {version!r}")
    return version


def parse_command_output(reply: str, output_format: str) -> str:
    """Unwrap <output> for text commands, pass other formats through.

    XML bodies of non-text formats are still checked for <rpc-error>; JSON
    bodies are returned untouched.
    """
    if output_format != "text":
        if reply.lstrip().startswith("<"):
            raise_for_rpc_error(reply, stage="command")
        return reply

    root = expect_element(reply, "output", stage="command")
    return root.text or ""


def parse_configuration_text(reply: str) -> str:
    """Unwrap <configuration-text> from a get-configuration reply."""
    root = expect_element(reply, "configuration-text", stage="get-configuration")
    return root.text or ""
