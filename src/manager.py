"""
Drain scheduling control loop for preemptible GKE nodes.
"""

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from deadline import assign_deadline
from errors import InvalidDeadlineEncodingError, KubeError, LabelFingerprintConflictError
from ledger import read_deadline, write_deadline
from locator import RESOURCE_INSTANCES, parse_gce_url
from models import ClusterRef, Instance, NodeResult
from operations import OperationWaiter

logger = logging.getLogger(__name__)

DRAIN_WINDOW = timedelta(minutes=1)

ACTIONS = ("skipped", "waiting", "deadline_assigned", "drained", "expired", "failed")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DrainManager:
    """Runs polling cycles over the preemptible instances of one cluster."""

    def __init__(
        self,
        cluster: ClusterRef,
        compute,
        discovery,
        waiter: OperationWaiter,
        kube=None,
        debug_mode: bool = False,
        max_parallel: int = 10,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the drain manager.

        Args:
            cluster: Cluster the instances belong to
            compute: ComputeRestClient
            discovery: FleetDiscovery producing the instance set
            waiter: OperationWaiter for label updates and deletions
            kube: Optional KubeDrainer; without it nodes are deleted undrained
            debug_mode: Assign minute-scale deadlines instead of hours
            max_parallel: Maximum number of instances processed concurrently
            rng: Random source for deadline jitter
            clock: Returns the current aware datetime
        """
        self.cluster = cluster
        self.compute = compute
        self.discovery = discovery
        self.waiter = waiter
        self.kube = kube
        self.debug_mode = debug_mode
        self.max_parallel = max_parallel
        self.rng = rng or random.Random()
        self.clock = clock or _utcnow

        self.results: List[NodeResult] = []

    @property
    def stop_event(self):
        return self.waiter.stop_event

    def stop(self) -> None:
        """Abandon pending work and operation waits."""
        self.stop_event.set()

    def monitor(self) -> Dict[str, int]:
        """
        Run one polling cycle over every preemptible instance.

        Returns:
            Statistics dictionary keyed by action

        Raises:
            ApiError: If the preemptible fleet cannot be listed
        """
        cycle_start = time.time()
        logger.info(
            f"Triggered monitor loop for cluster {self.cluster.cluster_name} "
            f"({self.cluster.project_id}/{self.cluster.zone})"
        )

        urls = self.discovery.refresh()
        stats = {"total": 0}
        stats.update({action: 0 for action in ACTIONS})
        results: List[NodeResult] = []

        if urls:
            workers = min(self.max_parallel, len(urls))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="spotter") as executor:
                futures = {executor.submit(self._run_worker, url): url for url in urls}
                for future in as_completed(futures):
                    result = future.result()
                    stats["total"] += 1
                    stats[result.action] += 1
                    results.append(result)
        else:
            logger.info("No preemptible instances found")

        self.results = results
        self._print_report(stats, time.time() - cycle_start)
        return stats

    def _run_worker(self, instance_url: str) -> NodeResult:
        """Process one instance; failures stay within this instance."""
        start = time.time()
        name = instance_url.rsplit("/", 1)[-1]

        if self.stop_event.is_set():
            return NodeResult(instance_name=name, zone="", action="skipped", error_message="shutting down")

        try:
            result = self.process_node(instance_url)
        except LabelFingerprintConflictError as e:
            logger.warning(f"Labels of {name} changed concurrently, retrying next cycle: {e}")
            result = NodeResult(instance_name=name, zone="", action="failed", error_message=str(e))
        except Exception as e:
            logger.error(f"Error while processing node {instance_url}: {e}")
            result = NodeResult(instance_name=name, zone="", action="failed", error_message=str(e))

        result.duration_seconds = time.time() - start
        return result

    def process_node(self, instance_url: str) -> NodeResult:
        """
        Decide and act on one instance based on its status and drain label.

        Args:
            instance_url: Self link of the instance

        Returns:
            NodeResult describing the action taken
        """
        project, zone, name = parse_gce_url(instance_url, RESOURCE_INSTANCES)
        instance = self.compute.get_instance(project, zone, name)
        now = self.clock()
        logger.info(f"host={name} status={instance.status}")

        if not instance.is_running:
            logger.info(f"Skipping node {name} because of status={instance.status}")
            return NodeResult(instance_name=name, zone=zone, action="skipped")

        try:
            drain_at = read_deadline(instance.labels)
        except InvalidDeadlineEncodingError as e:
            logger.warning(f"Node {name} has a corrupted drain label, reassigning: {e}")
            drain_at = None

        if drain_at is None:
            drain_at = self.assign_drain_deadline(instance, now)
            return NodeResult(instance_name=name, zone=zone, action="deadline_assigned", drain_at=drain_at)

        if drain_at <= now:
            logger.warning(
                f"Node {name} didn't get drained as scheduled at {drain_at.isoformat()}, draining now ({now.isoformat()})"
            )
            self.expire_node(instance)
            return NodeResult(instance_name=name, zone=zone, action="expired", drain_at=drain_at)

        if drain_at - now <= DRAIN_WINDOW:
            logger.info(f"Node {name} reached its drain time {drain_at.isoformat()}")
            self.expire_node(instance)
            return NodeResult(instance_name=name, zone=zone, action="drained", drain_at=drain_at)

        logger.info(f"Skipping node {name} because of healthy draining timeout {drain_at.isoformat()}")
        return NodeResult(instance_name=name, zone=zone, action="waiting", drain_at=drain_at)

    def assign_drain_deadline(self, instance: Instance, now: datetime) -> datetime:
        """
        Store a new drain deadline in the instance labels.

        Args:
            instance: Running instance without a usable deadline
            now: Current time

        Returns:
            The deadline written
        """
        drain_at = assign_deadline(
            instance.creation_timestamp, now, debug_mode=self.debug_mode, rng=self.rng
        )
        logger.info(
            f"Setting drainAt for {instance.name} to {drain_at.isoformat()} "
            f"(after {self._format_duration((drain_at - now).total_seconds())})"
        )

        labels = write_deadline(instance.labels, drain_at)
        logger.debug(f"Node {instance.name} setting labels: {labels}")
        op = self.compute.set_labels(
            instance.project,
            instance.zone,
            instance.name,
            labels,
            instance.label_fingerprint,
        )
        self.waiter.wait(op, instance.project, instance.zone)
        return drain_at

    def expire_node(self, instance: Instance) -> None:
        """
        Cordon and drain the node if possible, then delete its instance.

        Args:
            instance: Instance to remove
        """
        if self.kube is not None:
            try:
                self.kube.set_unschedulable(instance.name, True)
                deleted = self.kube.drain(instance.name)
                logger.info(f"Drained {deleted} pod(s) from node {instance.name}")
            except KubeError as e:
                logger.error(f"Draining node {instance.name} failed, deleting instance anyway: {e}")
        else:
            logger.warning(f"No Kubernetes client, deleting {instance.name} without draining")

        logger.info(f"Deleting node: {instance.name}")
        op = self.compute.delete_instance(instance.project, instance.zone, instance.name)
        self.waiter.wait(op, instance.project, instance.zone)
        logger.info(f"Deleted node: {instance.name}")

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            mins = int(seconds // 60)
            secs = seconds % 60
            return f"{mins}m {secs:.0f}s"
        else:
            hours = int(seconds // 3600)
            mins = int((seconds % 3600) // 60)
            return f"{hours}h {mins}m"

    def _print_report(self, stats: Dict[str, int], duration: float) -> None:
        """Log the outcome of the cycle."""
        logger.info("=" * 70)
        logger.info(f"CYCLE REPORT ({self._format_duration(duration)})")
        logger.info("-" * 40)
        for k, v in stats.items():
            logger.info(f"{k:20s}: {v}")

        scheduled = [r for r in self.results if r.action in ("deadline_assigned", "waiting")]
        removed = [r for r in self.results if r.action in ("drained", "expired")]
        failed = [r for r in self.results if r.action == "failed"]

        if scheduled:
            logger.info("")
            logger.info(f"{'Instance':<45} {'Drain at'}")
            logger.info("-" * 70)
            for r in sorted(scheduled, key=lambda r: r.drain_at):
                logger.info(f"{r.instance_name:<45} {r.drain_at.isoformat()}")

        if removed:
            logger.info("")
            logger.info("REMOVED NODES")
            for r in removed:
                late = " (missed deadline)" if r.action == "expired" else ""
                logger.info(f"  {r.instance_name}{late}")

        if failed:
            logger.info("")
            logger.info("FAILED NODES")
            for r in failed:
                error = (
                    (r.error_message[:60] + "...")
                    if r.error_message and len(r.error_message) > 60
                    else (r.error_message or "Unknown")
                )
                logger.info(f"  {r.instance_name:<45} {error}")

        logger.info("=" * 70)
