"""
Discovery of the preemptible instances that back a GKE cluster.
"""

import logging
from typing import Dict, List

from locator import RESOURCE_INSTANCE_GROUP_MANAGERS, parse_gce_url
from models import ClusterRef, NodePool

logger = logging.getLogger(__name__)


def is_preemptible(pool: Dict) -> bool:
    """True for node pools running on preemptible or spot capacity."""
    node_config = pool.get("config") or {}
    return bool(node_config.get("preemptible") or node_config.get("spot"))


class FleetDiscovery:
    """Resolves preemptible node pools to their current instances."""

    def __init__(self, container, compute, cluster: ClusterRef):
        """
        Args:
            container: ContainerRestClient
            compute: ComputeRestClient
            cluster: Cluster to inspect
        """
        self.container = container
        self.compute = compute
        self.cluster = cluster

    def fetch_node_pools(self) -> List[NodePool]:
        """
        List the preemptible node pools and their managed instances.

        Returns:
            Preemptible node pools; standard pools are ignored

        Raises:
            ApiError: If node pools or managed instances cannot be listed
            MalformedURLError: If a pool has an unexpected instance group URL
        """
        pools = self.container.list_node_pools(
            self.cluster.project_id, self.cluster.zone, self.cluster.cluster_name
        )
        logger.info(f"Number of node pools: {len(pools)}")

        result: List[NodePool] = []
        for pool in pools:
            if not is_preemptible(pool):
                logger.debug(f"Ignoring non-preemptible node pool {pool.get('name')}")
                continue

            group_urls = pool.get("instanceGroupUrls") or []
            if not group_urls:
                logger.warning(f"Node pool {pool.get('name')} has no instance group")
                continue

            project, zone, igm_name = parse_gce_url(
                group_urls[0], RESOURCE_INSTANCE_GROUP_MANAGERS
            )
            urls = self.compute.list_managed_instances(project, zone, igm_name)
            logger.info(
                f"Node pool {pool.get('name')} has {len(urls)} preemptible node(s) in {igm_name} group"
            )
            result.append(
                NodePool(name=pool.get("name", ""), instance_group_name=igm_name, instance_urls=urls)
            )

        return result

    def refresh(self) -> List[str]:
        """Return the deduplicated instance URLs of all preemptible pools."""
        seen = {}
        for pool in self.fetch_node_pools():
            for url in pool.instance_urls:
                seen.setdefault(url, None)
        return list(seen)
