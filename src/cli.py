"""Console entry point for the preemptible node drain scheduler."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from typing import List

from clients import ComputeRestClient, ContainerRestClient, get_project_id, load_credentials
from config import SpotterConfig
from discovery import FleetDiscovery
from errors import KubeError, SpotterError
from kube import load_kube_drainer
from log_utils import setup_logging
from manager import DrainManager
from models import ClusterRef
from operations import OperationWaiter

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Manage GKE cluster using preemptible instances"
    )
    required = parser.add_argument_group("required arguments")
    required.add_argument("--name", required=True, help="Name of GKE cluster")
    required.add_argument("--key", required=True, help="Path of service account key")
    required.add_argument("--zone", required=True, help="GCP zone")
    required.add_argument(
        "--kubeconfig", required=True, help="Path of kubernetes config"
    )

    parser.add_argument(
        "--interval",
        type=int,
        default=10,
        metavar="MINUTES",
        help="Minutes between monitor cycles (default: 10)",
    )
    parser.add_argument(
        "--max-parallel",
        type=int,
        default=10,
        metavar="N",
        help="Maximum number of instances processed concurrently (default: 10)",
    )
    parser.add_argument(
        "--poll-interval",
        type=int,
        default=10,
        metavar="SECONDS",
        help="Time between operation status checks (default: 10)",
    )
    parser.add_argument(
        "--operation-timeout",
        type=int,
        default=1800,
        metavar="SECONDS",
        help="Maximum time to wait for each operation, 0 to wait forever (default: 1800)",
    )
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("--verbose", action="store_true")
    return parser


def build_manager(config: SpotterConfig, stop_event: threading.Event) -> DrainManager:
    """
    Construct API clients and the drain manager from configuration.

    Raises:
        CredentialsError: If the service account key cannot be used
        KubeError: If the kubeconfig cannot be loaded outside debug mode
    """
    project_id = get_project_id(config.key_path)
    credentials = load_credentials(config.key_path)
    compute = ComputeRestClient(credentials=credentials, stop_event=stop_event)
    container = ContainerRestClient(credentials=credentials, stop_event=stop_event)
    cluster = ClusterRef(project_id=project_id, zone=config.zone, cluster_name=config.cluster_name)

    try:
        kube = load_kube_drainer(config.kubeconfig)
    except KubeError as e:
        if not config.debug_mode:
            raise
        logger.warning(f"Ignoring because of debug mode: {e}")
        kube = None

    waiter = OperationWaiter(
        compute,
        poll_interval=config.poll_interval,
        timeout=config.operation_timeout or None,
        stop_event=stop_event,
    )
    return DrainManager(
        cluster=cluster,
        compute=compute,
        discovery=FleetDiscovery(container, compute, cluster),
        waiter=waiter,
        kube=kube,
        debug_mode=config.debug_mode,
        max_parallel=config.max_parallel,
    )


def run_forever(manager: DrainManager, interval_minutes: int, stop_event: threading.Event) -> None:
    """Run monitor cycles every interval until the stop event is set."""
    while not stop_event.is_set():
        try:
            manager.monitor()
        except Exception:
            logger.exception("Monitor cycle failed")
        if stop_event.wait(interval_minutes * 60):
            break
    logger.info("Stopped")


def main(argv: List[str] | None = None) -> int:
    """CLI main for console_scripts entry point."""
    parser = build_parser()
    args = parser.parse_args(args=argv)

    setup_logging(verbose=args.verbose)
    config = SpotterConfig.from_args(args)
    if config.debug_mode:
        logger.warning("Debug mode: drain deadlines are minutes, not hours")

    stop_event = threading.Event()
    try:
        manager = build_manager(config, stop_event)
    except SpotterError as e:
        logger.error(f"Startup failed: {e}")
        return 1

    if config.once:
        try:
            stats = manager.monitor()
        except SpotterError as e:
            logger.error(f"Monitor cycle failed: {e}")
            return 1
        return 1 if stats.get("failed", 0) > 0 else 0

    def _handle_signal(signum, _frame):
        logger.info(f"Received signal {signum}, stopping after current cycle")
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    run_forever(manager, config.interval, stop_event)
    return 0
