"""
Preemptible GKE node drain scheduler.
"""

from clients import ComputeRestClient, ContainerRestClient
from config import SpotterConfig
from discovery import FleetDiscovery
from kube import KubeDrainer
from log_utils import setup_logging
from manager import DrainManager
from models import ClusterRef, Instance, NodePool, NodeResult
from operations import OperationWaiter

__all__ = [
    "ComputeRestClient",
    "ContainerRestClient",
    "SpotterConfig",
    "FleetDiscovery",
    "KubeDrainer",
    "setup_logging",
    "DrainManager",
    "ClusterRef",
    "Instance",
    "NodePool",
    "NodeResult",
    "OperationWaiter",
]
