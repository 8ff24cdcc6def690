"""Shared fixtures: a scripted DeviceSession and canned Junos replies."""
import pytest

from router_cli.devices.base import DeviceSession, SessionConfig

VERSION_JSON = (
    '{"software-information": [{'
    '"host-name": [{"data": "core1"}], '
    '"product-model": [{"data": "mx204"}], '
    '"product-name": [{"data": "mx204"}], '
    '"junos-version": [{"data": "21.4R3-S2.3"}]'
    '}]}'
)
OK = "<ok/>"
LOAD_OK = "<load-configuration-results><ok/></load-configuration-results>"
LOAD_ERROR = """
<load-configuration-results>
  <rpc-error>
    <error-severity>error</error-severity>
    <error-path>[edit system]</error-path>
    <error-message>syntax error</error-message>
    <error-info><bad-element>host-nme</bad-element></error-info>
  </rpc-error>
</load-configuration-results>
"""
DIFF_HOSTNAME = """
<configuration-information>
<configuration-output>
[edit system]
-  host-name bar;
+  host-name foo;
</configuration-output>
</configuration-information>
"""
DIFF_EMPTY = """
<configuration-information>
<configuration-output>
</configuration-output>
</configuration-information>
"""
COMMIT_OK = (
    "<commit-results><routing-engine><name>re0</name>"
    "<commit-success/></routing-engine></commit-results>"
)
LOCK_DENIED = """
<rpc-error>
  <error-type>protocol</error-type>
  <error-tag>lock-denied</error-tag>
  <error-severity>error</error-severity>
  <error-message>configuration database locked by: netops</error-message>
</rpc-error>
"""
UNLOCK_FAILED = """
<rpc-error>
  <error-severity>error</error-severity>
  <error-message>configuration database not locked</error-message>
</rpc-error>
"""
RUNNING_CONFIG = "<configuration-text>system {\n    host-name bar;\n}\n</configuration-text>"
COMMAND_ERROR = """
<rpc-error>
  <error-type>protocol</error-type>
  <error-severity>error</error-severity>
  <error-message>syntax error, expecting &lt;command&gt;</error-message>
  <error-info><bad-element>bogus</bad-element></error-info>
</rpc-error>
"""


def classify(request: str) -> str:
    """Map an RPC body to a short name used for scripting and assertions."""
    if request.startswith("<lock-configuration"):
        return "lock"
    if request.startswith("<unlock-configuration"):
        return "unlock"
    if request.startswith("<load-configuration"):
        return "load"
    if 'compare="rollback"' in request:
        return "diff"
    if request.startswith("<get-configuration"):
        return "get-configuration"
    if "<confirmed/>" in request:
        return "commit-confirmed"
    if request.startswith("<commit-configuration"):
        return "confirm"
    if request.startswith('<command format="json">show version'):
        return "version"
    if request.startswith("<command"):
        return "command"
    raise AssertionError(f"Unexpected request: {request}")


class FakeSession(DeviceSession):
    """DeviceSession returning scripted replies.

    ``replies`` maps request names (see ``classify``) to reply bodies or to
    exceptions, which are raised instead.
    """

    DEFAULT_REPLIES = {
        "lock": OK,
        "unlock": OK,
        "version": VERSION_JSON,
        "load": LOAD_OK,
        "diff": DIFF_HOSTNAME,
        "get-configuration": RUNNING_CONFIG,
        "commit-confirmed": COMMIT_OK,
        "confirm": COMMIT_OK,
        "command": "<output>\nHostname: core1\n</output>",
    }

    def __init__(self, config=None, **replies):
        super().__init__(config or SessionConfig(host="core1", username="netops"))
        self.replies = dict(self.DEFAULT_REPLIES)
        self.replies.update(replies)
        self.calls: list[str] = []
        self.requests: list[str] = []
        self.connect_count = 0
        self.disconnect_count = 0

    async def connect(self) -> None:
        self.connect_count += 1
        self._connected = True

    async def disconnect(self) -> None:
        self.disconnect_count += 1
        self._connected = False

    async def execute(self, request: str) -> str:
        name = classify(request)
        self.calls.append(name)
        self.requests.append(request)
        reply = self.replies[name]
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def config_file(tmp_path):
    """Local configuration file changing the host name."""
    path = tmp_path / "core1.conf"
    path.write_text("system {\n    host-name foo;\n}\n")
    return path


@pytest.fixture
def log_to_tmp(tmp_path, monkeypatch):
    """Keep log files of CLI runs inside the test directory."""
    monkeypatch.setenv("ROUTER_CLI_LOG_FILE", str(tmp_path / "logs" / "router-cli.log"))
    monkeypatch.delenv("ROUTER_CLI_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
