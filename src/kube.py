"""
Cordon and drain of Kubernetes nodes backed by preemptible instances.
"""

import logging
from typing import List

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from errors import DrainPartialFailureError, KubeError

logger = logging.getLogger(__name__)

KUBE_SYSTEM_NAMESPACE = "kube-system"
DAEMONSET_KIND = "DaemonSet"


def _reason(error: Exception) -> str:
    # ApiException carries the HTTP reason; urllib3 errors only a message
    return getattr(error, "reason", None) or str(error)


def filter_out_pods_by_owner_kind(pods: List, kind: str) -> List:
    """Drop pods that have an owner reference of the given kind."""
    kept = []
    for pod in pods:
        owners = pod.metadata.owner_references or []
        if any(owner.kind == kind for owner in owners):
            continue
        kept.append(pod)
    return kept


class KubeDrainer:
    """Marks nodes unschedulable and evicts their workload pods."""

    def __init__(self, api: client.CoreV1Api):
        self.api = api

    def set_unschedulable(self, node_name: str, unschedulable: bool = True) -> None:
        """
        Set the unschedulable flag of a node.

        Args:
            node_name: Kubernetes node name
            unschedulable: True to cordon, False to uncordon

        Raises:
            KubeError: If the node cannot be read or updated
        """
        try:
            node = self.api.read_node(node_name)
        except (ApiException, HTTPError) as e:
            raise KubeError(
                f"Error getting node {node_name} before setting unschedulable state: {_reason(e)}"
            ) from e

        node.spec.unschedulable = unschedulable
        try:
            self.api.replace_node(node_name, node)
        except (ApiException, HTTPError) as e:
            raise KubeError(f"Error updating node {node_name}: {_reason(e)}") from e
        logger.info(f"Node {node_name}: unschedulable={unschedulable}")

    def drain(self, node_name: str) -> int:
        """
        Delete every non-DaemonSet pod running on a node outside kube-system.

        Args:
            node_name: Kubernetes node name

        Returns:
            Number of pods deleted

        Raises:
            KubeError: If pods cannot be listed
            DrainPartialFailureError: If a pod deletion fails; remaining pods
                are left in place
        """
        field_selector = (
            f"spec.nodeName={node_name},metadata.namespace!={KUBE_SYSTEM_NAMESPACE}"
        )
        try:
            pod_list = self.api.list_pod_for_all_namespaces(field_selector=field_selector)
        except (ApiException, HTTPError) as e:
            raise KubeError(f"Error listing pods on {node_name}: {_reason(e)}") from e

        pods = filter_out_pods_by_owner_kind(pod_list.items, DAEMONSET_KIND)
        logger.info(f"Node {node_name}: {len(pods)} pod(s) to evict")

        deleted = 0
        for pod in pods:
            name = pod.metadata.name
            namespace = pod.metadata.namespace
            logger.info(f"Node {node_name}: deleting pod {namespace}/{name}")
            try:
                self.api.delete_namespaced_pod(name, namespace)
            except (ApiException, HTTPError) as e:
                raise DrainPartialFailureError(node_name, name, deleted, e) from e
            deleted += 1

        return deleted


def load_kube_drainer(kubeconfig_path: str) -> KubeDrainer:
    """
    Build a drainer from a kubeconfig file.

    Raises:
        KubeError: If the kubeconfig cannot be loaded
    """
    try:
        api_client = config.new_client_from_config(config_file=kubeconfig_path)
    except (config.ConfigException, OSError) as e:
        raise KubeError(f"Cannot load kubeconfig {kubeconfig_path}: {e}") from e
    return KubeDrainer(client.CoreV1Api(api_client))
