"""Deployment workflow - lock, load, diff, commit confirmed, confirm, unlock.

The candidate configuration lock is held for the whole of load, diff, commit
and confirm, and released exactly once on every exit path. Safety after a
commit relies on the router: a commit-confirmed that is not followed by a
plain commit within the confirm timeout is rolled back by the router itself,
so every failure or interruption simply skips the confirming commit.
"""
import asyncio
import inspect
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from ..devices.base import DeviceSession
from . import rpc
from .codec import (
    parse_command_output,
    parse_configuration_text,
    parse_load_result,
    parse_version,
    raise_for_rpc_error,
)
from .documents import ConfigDocument, DiffDocument, LoadAction
from .errors import LockReleaseError
from .render import DiffRenderer

logger = logging.getLogger(__name__)

Approver = Callable[[DiffDocument], Union[bool, Awaitable[bool]]]


class DeploymentState(str, Enum):
    """States of a single deployment run."""
    IDLE = "idle"
    LOCKED = "locked"
    LOADED = "loaded"
    DIFFED = "diffed"
    ABORTED = "aborted"
    COMMIT_PENDING = "commit_pending"
    CONFIRMED = "confirmed"
    UNLOCKED = "unlocked"


class ApplyOutcome(str, Enum):
    """How an apply run ended."""
    NO_CHANGES = "no_changes"
    DECLINED = "declined"
    CONFIRMED = "confirmed"


@dataclass
class ApplyResult:
    """Result of an apply run."""
    outcome: ApplyOutcome
    diff: Optional[DiffDocument] = None
    history: list[DeploymentState] = field(default_factory=list)


def auto_approve(diff: DiffDocument) -> bool:
    """Approver for unattended runs."""
    logger.debug("Unattended run, skipping interactive confirmation")
    return True


class DeploymentWorkflow:
    """
    Drive a configuration deployment over a DeviceSession.

    Usage:
        async with session:
            workflow = DeploymentWorkflow(session)
            result = await workflow.apply("core1.conf", approve=ask_operator)
    """

    def __init__(
        self,
        session: DeviceSession,
        renderer: Optional[DiffRenderer] = None,
        confirm_timeout: int = rpc.DEFAULT_CONFIRM_TIMEOUT,
        confirm_wait: float = 180,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the workflow.

        Args:
            session: Connected device session
            renderer: Diff renderer (defaults to a colorized console renderer)
            confirm_timeout: Minutes the router waits for confirmation before rolling back
            confirm_wait: Seconds to wait between commit-confirmed and confirm
            sleep: Coroutine used for the wait, replaceable in tests
        """
        self.session = session
        self.renderer = renderer or DiffRenderer()
        self.confirm_timeout = confirm_timeout
        self.confirm_wait = confirm_wait
        self._sleep = sleep
        self.state = DeploymentState.IDLE
        self.history: list[DeploymentState] = [DeploymentState.IDLE]

    def _transition(self, state: DeploymentState) -> None:
        logger.debug(f"Deployment state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    # === Lock handling ===

    async def lock(self) -> None:
        logger.info("Locking configuration")
        reply = await self.session.execute(rpc.LOCK)
        raise_for_rpc_error(reply, stage="lock-configuration")
        self._transition(DeploymentState.LOCKED)

    async def unlock(self) -> None:
        logger.info("Unlocking configuration")
        reply = await self.session.execute(rpc.UNLOCK)
        raise_for_rpc_error(reply, stage="unlock-configuration")
        self._transition(DeploymentState.UNLOCKED)

    @asynccontextmanager
    async def locked(self):
        """Hold the configuration lock for the duration of the block.

        A failed lock propagates before the block runs and no unlock is
        attempted. Otherwise unlock runs exactly once, also on errors and
        cancellation. An unlock failure is raised as LockReleaseError which
        carries the block's own error too, if there was one.
        """
        await self.lock()
        body_error: Optional[BaseException] = None
        try:
            yield self
        except BaseException as e:
            body_error = e
            raise
        finally:
            try:
                await self.unlock()
            except Exception as unlock_error:
                raise LockReleaseError(unlock_error, body_error) from unlock_error

    async def run_locked(self, action: Callable[[], Awaitable]):
        """Run ``action`` with the configuration lock held."""
        async with self.locked():
            return await action()

    # === Steps ===

    async def get_version(self) -> str:
        """Junos version reported by ``show version``."""
        reply = await self.execute_command("show version", output_format="json")
        version = parse_version(reply)
        logger.info(f"Router runs Junos {version}")
        return version

    async def load(self, document: ConfigDocument, load_action: LoadAction = LoadAction.OVERRIDE) -> None:
        """Load ``document`` as the candidate configuration."""
        load_action = LoadAction(load_action)
        logger.info("Loading configuration onto router as candidate configuration")
        logger.info(f"Using action={load_action.value}")
        reply = await self.session.execute(rpc.load_configuration(document, load_action))
        parse_load_result(reply)
        self._transition(DeploymentState.LOADED)

    async def diff(self) -> DiffDocument:
        """Diff the candidate against the running configuration."""
        logger.info("Diffing candidate configuration against running configuration")
        reply = await self.session.execute(rpc.DIFF_CONFIGURATION)
        diff = DiffDocument.from_reply(reply)
        self._transition(DeploymentState.DIFFED)
        return diff

    async def load_and_diff(
        self,
        local_file: Union[str, Path],
        load_action: LoadAction = LoadAction.OVERRIDE,
    ) -> DiffDocument:
        """Load a local file stamped with the router's version and diff it."""
        version = await self.get_version()
        document = ConfigDocument.from_file(local_file, version)
        await self.load(document, load_action)
        return await self.diff()

    async def commit_confirmed(self, confirm_timeout: Optional[int] = None) -> None:
        """Commit with automatic rollback after ``confirm_timeout`` minutes."""
        timeout = self.confirm_timeout if confirm_timeout is None else confirm_timeout
        logger.info(f"Committing candidate configuration, needs to be confirmed within {timeout} minutes")
        reply = await self.session.execute(rpc.commit_confirmed(timeout))
        raise_for_rpc_error(reply, stage="commit-configuration")
        self._transition(DeploymentState.COMMIT_PENDING)

    async def wait_before_confirm(self, seconds: Optional[float] = None) -> None:
        """Give the operator time to verify the router before confirming.

        Cancelling the wait (e.g. Ctrl-C) propagates; the commit is then never
        confirmed and the router rolls back on its own.
        """
        seconds = self.confirm_wait if seconds is None else seconds
        logger.info(f"Waiting {seconds:g} seconds before confirming configuration...")
        try:
            await self._sleep(seconds)
        except asyncio.CancelledError:
            logger.warning(
                f"Wait interrupted, configuration is NOT confirmed and will be "
                f"rolled back by the router within {self.confirm_timeout} minutes"
            )
            raise

    async def confirm(self) -> None:
        """Plain commit, finalizing the pending commit-confirmed."""
        logger.info("Confirming configuration")
        reply = await self.session.execute(rpc.CONFIRM)
        raise_for_rpc_error(reply, stage="commit-configuration")
        self._transition(DeploymentState.CONFIRMED)

    async def execute_command(self, command: str, output_format: str = "text") -> str:
        """Run an operational command and return its output."""
        logger.info(f"Executing {command}")
        reply = await self.session.execute(rpc.command(command, output_format))
        return parse_command_output(reply, output_format)

    async def running_config(self) -> str:
        """Running configuration as text."""
        logger.info("Fetching running configuration")
        reply = await self.session.execute(rpc.GET_CONFIGURATION)
        return parse_configuration_text(reply)

    # === Commands ===

    async def check(
        self,
        local_file: Union[str, Path],
        load_action: LoadAction = LoadAction.OVERRIDE,
        diff_file: Optional[Union[str, Path]] = None,
    ) -> DiffDocument:
        """Load and diff under the lock, without committing."""
        async with self.locked():
            diff = await self.load_and_diff(local_file, load_action)
            if diff_file is not None:
                diff.write_to(diff_file)
            if diff.is_empty:
                logger.warning("No changes found")
            else:
                self.renderer.render(diff)
            return diff

    async def apply(
        self,
        local_file: Union[str, Path],
        approve: Approver,
        load_action: LoadAction = LoadAction.OVERRIDE,
        wait: bool = True,
    ) -> ApplyResult:
        """Full deployment: load, diff, approve, commit confirmed, wait, confirm.

        Args:
            local_file: Configuration file to deploy
            approve: Called with the diff; a false result aborts without commit
            load_action: override (full replace) or replace
            wait: Wait ``confirm_wait`` seconds before confirming

        Returns:
            ApplyResult describing how the run ended
        """
        async with self.locked():
            diff = await self.load_and_diff(local_file, load_action)

            if diff.is_empty:
                logger.warning("No changes found")
                outcome = ApplyOutcome.NO_CHANGES
            else:
                self.renderer.render(diff)
                outcome = await self._approve_and_commit(diff, approve, wait)

        return ApplyResult(outcome=outcome, diff=diff, history=list(self.history))

    async def _approve_and_commit(self, diff: DiffDocument, approve: Approver, wait: bool) -> ApplyOutcome:
        approved = approve(diff)
        if inspect.isawaitable(approved):
            approved = await approved

        if not approved:
            logger.info("Configuration not applied")
            self._transition(DeploymentState.ABORTED)
            return ApplyOutcome.DECLINED

        await self.commit_confirmed()
        if wait:
            await self.wait_before_confirm()
        else:
            logger.debug("Skipping wait before confirming")
        await self.confirm()
        return ApplyOutcome.CONFIRMED
