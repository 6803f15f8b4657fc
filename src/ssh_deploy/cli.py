"""Command-line interface for ssh-deploy."""

from __future__ import annotations

import argparse
from typing import Optional

from .config import AppConfig, PushOptions, build_push_options, load_config
from .exceptions import DeploymentError
from .monitor import MonitorService
from .orchestrator import DeploymentOrchestrator
from .ssh import SSHConnectionError
from .utils.logging import get_logger, set_verbose

logger = get_logger(__name__)


def _add_push_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--source", "-s", dest="source_path", help="Local build output directory")
    parser.add_argument("--target", "-t", dest="target_path", help="Remote target directory")
    parser.add_argument("--host", help="Target host")
    parser.add_argument("--port", type=int, default=None, help="SSH port")
    parser.add_argument("--user", "-u", dest="username", help="SSH username")
    parser.add_argument("--password", "-w", default=None, help="SSH password")
    parser.add_argument("--key-path", dest="key_path", default=None, help="Path to SSH private key")
    parser.add_argument(
        "--exclude",
        dest="exclude_suffixes",
        action="append",
        default=None,
        help="File name suffix to skip (repeatable, case-sensitive)",
    )
    parser.add_argument("--pre", dest="pre_command", default=None, help="Command to run before deploying")
    parser.add_argument("--post", dest="post_command", default=None, help="Command to run after deploying")
    parser.add_argument(
        "--clean", dest="clean_target", action="store_true", default=None,
        help="Delete the target directory contents before uploading",
    )
    parser.add_argument("--configuration", "-c", default=None, help="Build configuration label")
    parser.add_argument("--framework", "-f", default=None, help="Target framework label")
    parser.add_argument(
        "--runtime", dest="runtime_identifier", default=None,
        help="Runtime identifier used to select the manifest target (default: linux-arm)",
    )
    parser.add_argument("--package-store", dest="package_store", default=None, help="Global package store root")
    parser.add_argument(
        "--timeout", dest="command_timeout", type=int, default=None,
        help="Seconds to wait for the pre-deployment command",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ssh-deploy",
        description="Push a built application to a remote host over SFTP and run commands over SSH.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON config file overriding defaults.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every uploaded file")

    subparsers = parser.add_subparsers(dest="command", required=True)
    push_parser = subparsers.add_parser("push", help="Deploy the source directory once")
    _add_push_arguments(push_parser)

    monitor_parser = subparsers.add_parser(
        "monitor", help="Deploy every time the trigger file in the source directory changes"
    )
    _add_push_arguments(monitor_parser)
    monitor_parser.add_argument("--trigger-file", dest="trigger_file", default=None, help="Trigger file name")
    monitor_parser.add_argument("--interval", type=float, default=None, help="Polling interval in seconds")

    return parser


def _options_from_args(args: argparse.Namespace, config: AppConfig) -> PushOptions:
    return build_push_options(
        config,
        source_path=args.source_path,
        target_path=args.target_path,
        host=args.host,
        port=args.port,
        username=args.username,
        password=args.password,
        key_path=args.key_path,
        exclude_suffixes=args.exclude_suffixes,
        pre_command=args.pre_command,
        post_command=args.post_command,
        clean_target=args.clean_target,
        configuration=args.configuration,
        framework=args.framework,
        runtime_identifier=args.runtime_identifier,
        package_store=args.package_store,
        command_timeout=args.command_timeout,
    )


def dispatch_command(args: argparse.Namespace, orchestrator: Optional[DeploymentOrchestrator] = None) -> int:
    set_verbose(getattr(args, "verbose", False))
    try:
        config = load_config(args.config)
        options = _options_from_args(args, config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    orchestrator = orchestrator or DeploymentOrchestrator()

    if args.command == "push":
        try:
            outcome = orchestrator.execute_deployment(options)
        except (DeploymentError, SSHConnectionError, ValueError) as exc:
            logger.error("%s", exc)
            return 1
        return 0 if outcome.ok else 1

    if args.command == "monitor":
        service = MonitorService(
            orchestrator,
            options,
            trigger_file=args.trigger_file or config.monitor.trigger_file,
            poll_interval=args.interval or config.monitor.poll_interval,
        )
        try:
            service.run_forever()
        except (DeploymentError, SSHConnectionError, ValueError) as exc:
            logger.error("%s", exc)
            return 1
        return 0

    raise ValueError(f"Unsupported command: {args.command}")


def run_cli(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return dispatch_command(args)
