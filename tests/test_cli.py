"""Tests for the router-cli command line."""
import pytest

from router_cli import cli
from router_cli.cli import build_parser, main

from conftest import COMMAND_ERROR, DIFF_EMPTY, LOCK_DENIED, FakeSession


class SessionRecorder:
    """Session factory keeping the sessions it created."""

    def __init__(self, **replies):
        self.replies = replies
        self.sessions = []

    def __call__(self, config):
        session = FakeSession(config, **self.replies)
        self.sessions.append(session)
        return session

    @property
    def calls(self):
        return self.sessions[0].calls


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("""
defaults:
  user: netops
  confirm_wait: 0
  color: false
routers:
  core1:
    host: core1.example.net
""")
    return path


class TestParser:
    """Tests for argument parsing."""

    def test_apply_flags(self):
        """apply accepts --yes, --commit and a load action."""
        args = build_parser().parse_args(
            ["-u", "alice", "apply", "--yes", "--commit", "--load-action", "replace", "core1", "core1.conf"]
        )
        assert args.user == "alice"
        assert args.yes and args.commit
        assert args.load_action == "replace"
        assert str(args.local_file) == "core1.conf"

    def test_exec_joins_command(self):
        """exec collects the remaining words as the command."""
        args = build_parser().parse_args(["exec", "-o", "json", "core1", "show", "bgp", "summary"])
        assert args.output == "json"
        assert args.cmd == ["show", "bgp", "summary"]

    def test_invalid_load_action(self):
        """Only override and replace are allowed."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["check", "--load-action", "merge", "core1", "x.conf"])


class TestCommands:
    """End-to-end command runs against a scripted session."""

    def test_check(self, log_to_tmp, settings_file, config_file, tmp_path, capsys):
        """check prints the diff, writes it, and never commits."""
        recorder = SessionRecorder()
        diff_file = tmp_path / "core1.diff"

        code = main(
            ["-c", str(settings_file), "check", "-f", str(diff_file), "core1", str(config_file)],
            session_factory=recorder,
        )

        assert code == 0
        assert recorder.sessions[0].config.host == "core1.example.net"
        assert recorder.calls == ["lock", "version", "load", "diff", "unlock"]
        assert "+  host-name foo;" in capsys.readouterr().out
        assert "-  host-name bar;" in diff_file.read_text()

    def test_apply_unattended(self, log_to_tmp, settings_file, config_file):
        """--yes --commit runs the full sequence without prompting."""
        recorder = SessionRecorder()

        code = main(
            ["-c", str(settings_file), "apply", "--yes", "--commit", "core1", str(config_file)],
            session_factory=recorder,
        )

        assert code == 0
        assert recorder.calls == [
            "lock", "version", "load", "diff",
            "commit-confirmed", "confirm", "unlock",
        ]
        assert recorder.sessions[0].disconnect_count == 1

    def test_apply_declined(self, log_to_tmp, settings_file, config_file, monkeypatch):
        """Answering no aborts without commit and exits 0."""
        recorder = SessionRecorder()
        monkeypatch.setattr(cli.Confirm, "ask", classmethod(lambda cls, *a, **kw: False))

        code = main(["-c", str(settings_file), "apply", "core1", str(config_file)], session_factory=recorder)

        assert code == 0
        assert "commit-confirmed" not in recorder.calls
        assert recorder.calls[-1] == "unlock"

    def test_apply_prompt_eof_declines(self, log_to_tmp, settings_file, config_file, monkeypatch):
        """A closed stdin counts as no."""
        recorder = SessionRecorder()

        def eof(cls, *args, **kwargs):
            raise EOFError

        monkeypatch.setattr(cli.Confirm, "ask", classmethod(eof))

        code = main(["-c", str(settings_file), "apply", "core1", str(config_file)], session_factory=recorder)

        assert code == 0
        assert "commit-confirmed" not in recorder.calls

    def test_apply_approved_waits_zero(self, log_to_tmp, settings_file, config_file, monkeypatch):
        """Answering yes commits and confirms."""
        recorder = SessionRecorder()
        monkeypatch.setattr(cli.Confirm, "ask", classmethod(lambda cls, *a, **kw: True))

        code = main(["-c", str(settings_file), "apply", "core1", str(config_file)], session_factory=recorder)

        assert code == 0
        assert "confirm" in recorder.calls

    def test_apply_no_changes(self, log_to_tmp, settings_file, config_file, monkeypatch):
        """No diff means no prompt."""
        recorder = SessionRecorder(diff=DIFF_EMPTY)

        def never(cls, *args, **kwargs):
            raise AssertionError("prompted without changes")

        monkeypatch.setattr(cli.Confirm, "ask", classmethod(never))

        code = main(["-c", str(settings_file), "apply", "core1", str(config_file)], session_factory=recorder)

        assert code == 0
        assert recorder.calls == ["lock", "version", "load", "diff", "unlock"]

    def test_exec(self, log_to_tmp, settings_file, capsys):
        """exec prints command output."""
        recorder = SessionRecorder()

        code = main(["-c", str(settings_file), "exec", "core1", "show", "version"], session_factory=recorder)

        assert code == 0
        assert "Hostname: core1" in capsys.readouterr().out
        assert recorder.sessions[0].requests == ['<command format="text">show version</command>']

    def test_exec_json_device_error(self, log_to_tmp, settings_file, capsys):
        """A device error on a JSON command exits non-zero and prints nothing."""
        recorder = SessionRecorder(command=COMMAND_ERROR)

        code = main(
            ["-c", str(settings_file), "exec", "-o", "json", "core1", "show", "bogus"],
            session_factory=recorder,
        )

        assert code == 1
        assert capsys.readouterr().out == ""

    def test_config_to_file(self, log_to_tmp, settings_file, tmp_path):
        """config writes the running configuration."""
        recorder = SessionRecorder()
        target = tmp_path / "running.conf"

        code = main(["-c", str(settings_file), "config", "-f", str(target), "core1"], session_factory=recorder)

        assert code == 0
        assert "host-name bar;" in target.read_text()

    def test_missing_local_file(self, log_to_tmp, settings_file, tmp_path):
        """A missing file fails before connecting."""
        recorder = SessionRecorder()

        code = main(
            ["-c", str(settings_file), "check", "core1", str(tmp_path / "missing.conf")],
            session_factory=recorder,
        )

        assert code == 1
        assert recorder.sessions == []

    def test_lock_conflict_exits_nonzero(self, log_to_tmp, settings_file, config_file):
        """A lock held elsewhere is fatal and not retried."""
        recorder = SessionRecorder(lock=LOCK_DENIED)

        code = main(["-c", str(settings_file), "check", "core1", str(config_file)], session_factory=recorder)

        assert code == 1
        assert recorder.calls == ["lock"]
        assert recorder.sessions[0].disconnect_count == 1

    def test_bad_settings_file(self, log_to_tmp, tmp_path, config_file):
        """Invalid settings exit non-zero."""
        path = tmp_path / "bad.yaml"
        path.write_text("defaults:\n  confirm_wait: 900\n")

        code = main(["-c", str(path), "-u", "netops", "check", "core1", str(config_file)])

        assert code == 1
