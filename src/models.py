"""
Data models for the preemptible node drain scheduler.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

STATUS_RUNNING = "RUNNING"


@dataclass(frozen=True)
class ClusterRef:
    """Identifies the GKE cluster all API calls are scoped to."""

    project_id: str
    zone: str
    cluster_name: str


@dataclass
class Instance:
    """Compute instance state as fetched at the start of a worker."""

    url: str  # https://www.googleapis.com/compute/v1/projects/.../instances/<name>
    name: str
    project: str
    zone: str
    status: str
    creation_timestamp: datetime
    labels: Dict[str, str] = field(default_factory=dict)
    label_fingerprint: str = ""

    @property
    def is_running(self) -> bool:
        return self.status == STATUS_RUNNING


@dataclass
class NodePool:
    """Preemptible node pool and the instances its group currently manages."""

    name: str
    instance_group_name: str
    instance_urls: List[str] = field(default_factory=list)


@dataclass
class NodeResult:
    """Outcome of processing one instance during a cycle."""

    instance_name: str
    zone: str
    action: str  # "skipped", "waiting", "deadline_assigned", "drained", "expired", "failed"
    drain_at: Optional[datetime] = None
    error_message: Optional[str] = None
    duration_seconds: Optional[float] = None
