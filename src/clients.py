"""
REST API clients for Compute Engine (v1) and Google Kubernetes Engine (v1).
"""

import json
import logging
import random
import threading
from datetime import datetime
from typing import Dict, List, Optional

import google.auth
import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from errors import (
    ApiError,
    CredentialsError,
    LabelFingerprintConflictError,
    OperationCancelledError,
)
from locator import RESOURCE_INSTANCES, build_gce_url
from models import Instance

logger = logging.getLogger(__name__)

COMPUTE_API_BASE = "https://compute.googleapis.com/compute/v1"
CONTAINER_API_BASE = "https://container.googleapis.com/v1"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
USER_AGENT = "spotter"
SERVICE_ACCOUNT_TYPE = "service_account"


def _read_key_file(key_path: str) -> Dict:
    try:
        with open(key_path) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CredentialsError(f"Cannot read service account key {key_path}: {e}")

    if data.get("type") != SERVICE_ACCOUNT_TYPE:
        raise CredentialsError(
            f"Invalid service account type: {data.get('type')}"
        )
    return data


def get_project_id(key_path: str) -> str:
    """
    Extract the project ID from a service account key file.

    Args:
        key_path: Path to the JSON key file

    Returns:
        Project ID the service account belongs to

    Raises:
        CredentialsError: If the file is unreadable or not a service account key
    """
    project_id = _read_key_file(key_path).get("project_id")
    if not project_id:
        raise CredentialsError(f"No project_id in service account key {key_path}")
    return project_id


def load_credentials(key_path: str):
    """Load cloud-platform scoped credentials from a service account key file."""
    _read_key_file(key_path)
    return service_account.Credentials.from_service_account_file(
        key_path, scopes=[CLOUD_PLATFORM_SCOPE]
    )


class _RestClient:
    """Authorized session with retry for transient errors."""

    API_BASE = ""
    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        credentials=None,
        timeout_s: int = 60,
        max_retries: int = 5,
        base_delay: float = 5.0,
        stop_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the REST client.

        Args:
            credentials: google-auth credentials (application default if None)
            timeout_s: Request timeout in seconds
            max_retries: Maximum number of retries for transient errors
            base_delay: Base delay for exponential backoff
            stop_event: Event that interrupts backoff waits on shutdown
        """
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.stop_event = stop_event or threading.Event()

        if credentials is None:
            credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
        self.session = AuthorizedSession(credentials)
        self.session.headers["User-Agent"] = USER_AGENT

    def _url(self, path: str) -> str:
        """Construct full API URL from path."""
        return f"{self.API_BASE}/{path.lstrip('/')}"

    def _request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Execute HTTP request with exponential backoff retry for transient errors.

        Args:
            method: HTTP method (GET, POST, DELETE)
            url: Request URL
            **kwargs: Additional request parameters

        Returns:
            The final response (which may still carry a non-2xx status)

        Raises:
            ApiError: If max retries exceeded
            OperationCancelledError: If the stop event is set before or between attempts
        """
        last_error = None

        for attempt in range(self.max_retries + 1):
            if self.stop_event.is_set():
                raise OperationCancelledError(f"Stopped before {method.upper()} {url}")
            try:
                resp = self.session.request(
                    method.upper(), url, timeout=self.timeout_s, **kwargs
                )
            except requests.exceptions.RequestException as e:
                delay = self._calculate_delay(attempt)
                logger.warning(
                    f"Request error: {e}, attempt {attempt + 1}/{self.max_retries + 1}, waiting {delay:.1f}s..."
                )
                last_error = str(e)
                self._backoff(delay)
                continue

            if resp.status_code in self.RETRYABLE_STATUS_CODES:
                delay = self._calculate_delay(attempt, resp)
                error_info = _error_message(resp)
                logger.warning(
                    f"Retryable error {resp.status_code} ({error_info}), attempt {attempt + 1}/{self.max_retries + 1}, waiting {delay:.1f}s..."
                )
                last_error = f"HTTP {resp.status_code}: {error_info or resp.text[:200]}"
                self._backoff(delay)
                continue

            return resp

        raise ApiError(f"Max retries exceeded. Last error: {last_error}")

    def _backoff(self, delay: float) -> None:
        if self.stop_event.wait(delay):
            raise OperationCancelledError(f"Stopped while backing off ({delay:.1f}s)")

    def _calculate_delay(self, attempt: int, resp=None) -> float:
        """
        Calculate delay with exponential backoff and jitter.

        Args:
            attempt: Current attempt number
            resp: Optional response object (to check Retry-After header)

        Returns:
            Delay in seconds
        """
        if resp is not None and "Retry-After" in resp.headers:
            try:
                return float(resp.headers["Retry-After"])
            except ValueError:
                pass

        delay = self.base_delay * (2**attempt)
        jitter = delay * 0.2 * random.uniform(-0.5, 0.5)
        return min(delay + jitter, 180.0)

    def _call(self, method: str, path: str, what: str, **kwargs) -> Dict:
        resp = self._request_with_retry(method, self._url(path), **kwargs)
        if resp.status_code not in (200, 201, 202):
            raise ApiError(
                f"{what} failed ({resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )
        return resp.json()


def _error_message(resp: requests.Response) -> str:
    try:
        return resp.json().get("error", {}).get("message", "")
    except ValueError:
        return ""


def _parse_timestamp(value: str) -> datetime:
    # Compute returns RFC 3339 with a numeric offset, e.g. 2024-05-01T10:00:00.123-07:00
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class ComputeRestClient(_RestClient):
    """REST client for the Compute Engine v1 API."""

    API_BASE = COMPUTE_API_BASE

    def get_instance(self, project: str, zone: str, name: str) -> Instance:
        """
        Get an instance with its status and labels.

        Args:
            project: Project ID
            zone: Zone (e.g. 'europe-west1-b')
            name: Instance name

        Returns:
            Instance

        Raises:
            ApiError: If API call fails
        """
        data = self._call(
            "GET",
            f"projects/{project}/zones/{zone}/instances/{name}",
            "Get instance",
        )
        return Instance(
            url=data.get("selfLink")
            or build_gce_url(project, zone, RESOURCE_INSTANCES, name),
            name=data.get("name", name),
            project=project,
            zone=zone,
            status=str(data.get("status", "UNKNOWN")).upper(),
            creation_timestamp=_parse_timestamp(data["creationTimestamp"]),
            labels=dict(data.get("labels") or {}),
            label_fingerprint=data.get("labelFingerprint", ""),
        )

    def set_labels(
        self,
        project: str,
        zone: str,
        name: str,
        labels: Dict[str, str],
        label_fingerprint: str,
    ) -> Dict:
        """
        Replace the labels of an instance.

        Args:
            project: Project ID
            zone: Zone
            name: Instance name
            labels: Full label mapping to store
            label_fingerprint: Fingerprint of the labels the caller read

        Returns:
            Zonal operation

        Raises:
            LabelFingerprintConflictError: If labels changed since they were read
            ApiError: If API call fails
        """
        path = f"projects/{project}/zones/{zone}/instances/{name}/setLabels"
        body = {"labels": labels, "labelFingerprint": label_fingerprint}
        resp = self._request_with_retry("POST", self._url(path), json=body)
        if resp.status_code in (409, 412):
            raise LabelFingerprintConflictError(
                f"setLabels conflict for {name} ({resp.status_code}): {_error_message(resp)}",
                status_code=resp.status_code,
            )
        if resp.status_code not in (200, 202):
            raise ApiError(
                f"setLabels failed ({resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )
        return resp.json()

    def delete_instance(self, project: str, zone: str, name: str) -> Dict:
        """Delete an instance and return the zonal operation."""
        return self._call(
            "DELETE",
            f"projects/{project}/zones/{zone}/instances/{name}",
            "Delete instance",
        )

    def list_managed_instances(
        self, project: str, zone: str, instance_group_manager: str
    ) -> List[str]:
        """
        List the instance URLs managed by an instance group manager.

        Args:
            project: Project ID
            zone: Zone
            instance_group_manager: Instance group manager name

        Returns:
            Instance URLs

        Raises:
            ApiError: If API call fails
        """
        path = (
            f"projects/{project}/zones/{zone}/instanceGroupManagers/"
            f"{instance_group_manager}/listManagedInstances"
        )
        urls: List[str] = []
        page_token: Optional[str] = None

        while True:
            params = {}
            if page_token:
                params["pageToken"] = page_token

            data = self._call("POST", path, "List managed instances", params=params)
            for item in data.get("managedInstances", []):
                if item.get("instance"):
                    urls.append(item["instance"])

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return urls

    def get_zone_operation(self, project: str, zone: str, op_name: str) -> Dict:
        """Get the current state of a zonal operation."""
        return self._call(
            "GET",
            f"projects/{project}/zones/{zone}/operations/{op_name}",
            "Get operation",
        )


class ContainerRestClient(_RestClient):
    """REST client for the Google Kubernetes Engine v1 API."""

    API_BASE = CONTAINER_API_BASE

    def list_node_pools(self, project: str, zone: str, cluster: str) -> List[Dict]:
        """
        List the node pools of a zonal cluster.

        Args:
            project: Project ID
            zone: Cluster zone
            cluster: Cluster name

        Returns:
            Node pool resources as dictionaries

        Raises:
            ApiError: If API call fails
        """
        data = self._call(
            "GET",
            f"projects/{project}/zones/{zone}/clusters/{cluster}/nodePools",
            "List node pools",
        )
        return data.get("nodePools", [])
