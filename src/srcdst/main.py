from __future__ import annotations

import argparse
import logging
import sys
import threading
from signal import SIGINT, SIGTERM, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from srcdst.app import build_controller, reconcile_node, run_controller
from srcdst.config import (
    ConfigurationError,
    configure_logging,
    get_aws_config,
    get_kubernetes_config,
)
from srcdst.domain.errors import ProviderIdError
from srcdst.domain.provider_id import resolve_instance_id

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Disable the EC2 source/destination check on every Kubernetes node"
    )
    parser.add_argument(
        "--log-level",
        choices=_LOG_LEVELS,
        default="INFO",
        help="Root log level (default: %(default)s)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Shortcut for --log-level DEBUG",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Watch nodes and reconcile until stopped")
    _add_cluster_arguments(run)
    run.add_argument(
        "--resync-seconds",
        type=int,
        help="Seconds between full resyncs of cached nodes (0 disables; defaults to config)",
    )
    run.add_argument(
        "--label-selector",
        type=str,
        help="Only reconcile nodes matching this label selector",
    )

    reconcile = subparsers.add_parser("reconcile", help="Reconcile a single node once")
    _add_cluster_arguments(reconcile)
    reconcile.add_argument("node_name", help="Name of the node to reconcile")

    resolve = subparsers.add_parser(
        "resolve",
        help="Print the EC2 instance ID encoded in a node provider ID",
    )
    resolve.add_argument("provider_id", help="Value of the node's spec.providerID")

    return parser.parse_args(list(argv))


def _add_cluster_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--kubeconfig", type=str, help="Path to a kubeconfig file")
    parser.add_argument("--context", type=str, help="Kubeconfig context to use")
    parser.add_argument("--region", type=str, help="AWS region (defaults to AWS_REGION)")


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _handler(signal_received: int, _frame: FrameType | None) -> None:
        log.info("Received signal %s, shutting down", signal_received)
        stop_event.set()

    signal(SIGINT, _handler)
    signal(SIGTERM, _handler)


def _resolve(provider_id: str) -> int:
    try:
        instance_id = resolve_instance_id(provider_id)
    except ProviderIdError as exc:
        log.error("%s: %s", type(exc).__name__, exc)  # noqa: TRY400
        return 1
    print(instance_id)  # noqa: T201
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    level = logging.DEBUG if parsed_args.verbose else getattr(logging, parsed_args.log_level)
    configure_logging(level=level)

    if parsed_args.command == "resolve":
        sys.exit(_resolve(parsed_args.provider_id))

    try:
        kubernetes_config = get_kubernetes_config(
            kubeconfig=parsed_args.kubeconfig,
            context=parsed_args.context,
            resync_period_seconds=getattr(parsed_args, "resync_seconds", None),
            label_selector=getattr(parsed_args, "label_selector", None),
        )
        aws_config = get_aws_config(region=parsed_args.region)
        controller = build_controller(
            kubernetes_config=kubernetes_config,
            aws_config=aws_config,
        )
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Failed to initialise controller")
        sys.exit(1)

    try:
        if parsed_args.command == "run":
            stop_event = threading.Event()
            _install_signal_handlers(stop_event)
            run_controller(stop_event, controller=controller)
        elif parsed_args.command == "reconcile":
            result = reconcile_node(parsed_args.node_name, controller=controller)
            sys.exit(0 if result.ok else 1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def cli() -> None:
    """Console script entry point; loads a local .env before parsing arguments."""
    load_dotenv()
    main()


if __name__ == "__main__":
    cli()
