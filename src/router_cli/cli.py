#!/usr/bin/env python3
"""router-cli command line.

Usage:
    router-cli [-u USER] check <router> <local_file> [-f DIFF_FILE]
    router-cli [-u USER] apply <router> <local_file> [--yes] [--commit]
    router-cli [-u USER] exec <router> [-o text|xml|json] <command...>
    router-cli [-u USER] config <router> [-f FILE]

Environment variables:
    ROUTER_CLI_CONFIG      Settings file (default: ./router-cli.yaml)
    ROUTER_CLI_PASSWORD    SSH password, if the SSH agent is not enough
    ROUTER_CLI_LOG_LEVEL   Console log level (default: INFO)
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Confirm

from .config.settings import Settings, default_user
from .devices import DeviceSession, SessionConfig, create_session
from .engine import (
    ApplyOutcome,
    DeploymentWorkflow,
    DiffDocument,
    DiffRenderer,
    LoadAction,
    RouterCliError,
    auto_approve,
)
from .engine.rpc import OUTPUT_FORMATS
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

SessionFactory = Callable[[SessionConfig], DeviceSession]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="router-cli",
        description="Safely deploy configuration files onto Junos routers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Show what would change
    router-cli check core1 configs/core1.conf

    # Deploy with interactive review, confirm after the wait period
    router-cli apply core1 configs/core1.conf

    # CI: no prompt, confirm immediately
    router-cli apply --yes --commit core1 configs/core1.conf

    # Ad-hoc inspection
    router-cli exec core1 show bgp summary
""",
    )
    parser.add_argument(
        "-u", "--user",
        default=None,
        help=f"NETCONF ssh user (default: settings file or {default_user() or '$USER'})",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Settings file (default: $ROUTER_CLI_CONFIG or ./router-cli.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colorized diff output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    load_actions = [action.value for action in LoadAction]

    check = subparsers.add_parser("check", help="Loads local configuration onto router and shows a diff.")
    check.add_argument("-f", "--diff-output", type=Path, default=None, help="Writes the diff into a specified file")
    check.add_argument("--load-action", choices=load_actions, default=None)
    check.add_argument("router")
    check.add_argument("local_file", type=Path)

    apply = subparsers.add_parser("apply", help="Applies local configuration file on router")
    apply.add_argument(
        "--yes",
        action="store_true",
        help="Skips interactive diff reviewing, meant to use within CI environments",
    )
    apply.add_argument(
        "--commit",
        action="store_true",
        help="Skips wait for commit and commits configuration after upload",
    )
    apply.add_argument("--load-action", choices=load_actions, default=None)
    apply.add_argument("router")
    apply.add_argument("local_file", type=Path)

    exec_ = subparsers.add_parser("exec", help="Executes an given command on the router")
    exec_.add_argument("-o", "--output", choices=OUTPUT_FORMATS, default="text")
    exec_.add_argument("router")
    exec_.add_argument("cmd", nargs="+", metavar="command")

    config = subparsers.add_parser("config", help="Shows the running configuration of the router")
    config.add_argument("-f", "--file", type=Path, default=None, help="Writes the configuration into a file")
    config.add_argument("router")

    return parser


def prompt_approver(router: str, console: Console):
    """Approver asking the operator, defaulting to No."""
    def approve(diff: DiffDocument) -> bool:
        try:
            return Confirm.ask(
                f"Do you want to apply this configuration onto {router}?",
                console=console,
                default=False,
            )
        except EOFError:
            return False
    return approve


async def run_command(
    args: argparse.Namespace,
    settings: Settings,
    session_factory: SessionFactory = create_session,
    console: Optional[Console] = None,
) -> int:
    """Run the selected subcommand against a router."""
    color = settings.color and not args.no_color
    console = console or Console(highlight=False, no_color=not color)
    renderer = DiffRenderer(console, settings.omitted_sections, color=color)

    if args.command in ("check", "apply") and not args.local_file.is_file():
        raise RouterCliError(f"Local configuration file not found: {args.local_file}")

    load_action = LoadAction(getattr(args, "load_action", None) or settings.load_action)
    session = session_factory(settings.session_config(args.router, args.user))

    async with session:
        workflow = DeploymentWorkflow(
            session,
            renderer=renderer,
            confirm_timeout=settings.confirm_timeout,
            confirm_wait=settings.confirm_wait,
        )

        if args.command == "check":
            await workflow.check(args.local_file, load_action, diff_file=args.diff_output)

        elif args.command == "apply":
            approve = auto_approve if args.yes else prompt_approver(args.router, console)
            result = await workflow.apply(
                args.local_file,
                approve=approve,
                load_action=load_action,
                wait=not args.commit,
            )
            if result.outcome == ApplyOutcome.CONFIRMED:
                logger.info(f"Configuration applied and confirmed on {args.router}")

        elif args.command == "exec":
            output = await workflow.execute_command(" ".join(args.cmd), args.output)
            print(output)

        elif args.command == "config":
            text = await workflow.running_config()
            if args.file is not None:
                logger.info(f"Writing running configuration to {args.file}")
                args.file.write_text(text, encoding="utf-8")
            else:
                print(text)

    return 0


def main(argv: Optional[list[str]] = None, session_factory: SessionFactory = create_session) -> int:
    """Main entry point for router-cli."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=logging.DEBUG if args.verbose else None)

    try:
        settings = Settings.load(args.config)
        return asyncio.run(run_command(args, settings, session_factory))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except RouterCliError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
