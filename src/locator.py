"""
Parsing and building of Compute Engine zonal resource URLs.
"""

from typing import Tuple

from errors import MalformedURLError, ResourceKindMismatchError

GCE_URL_SCHEME = "https"
GCE_DOMAIN_SUFFIX = "googleapis.com/compute/v1/projects/"
GCE_URL_PREFIX = f"{GCE_URL_SCHEME}://www.{GCE_DOMAIN_SUFFIX}"

RESOURCE_INSTANCES = "instances"
RESOURCE_INSTANCE_GROUP_MANAGERS = "instanceGroupManagers"


def build_gce_url(project: str, zone: str, resource: str, name: str) -> str:
    """Build the self link of a zonal compute resource."""
    return f"{GCE_URL_PREFIX}{project}/zones/{zone}/{resource}/{name}"


def parse_gce_url(url: str, expected_resource: str) -> Tuple[str, str, str]:
    """
    Split a zonal compute resource URL into its components.

    Args:
        url: Self link such as
            https://www.googleapis.com/compute/v1/projects/p/zones/z/instances/n
        expected_resource: Resource kind the URL must name
            (e.g. 'instances', 'instanceGroupManagers')

    Returns:
        Tuple of (project, zone, name)

    Raises:
        MalformedURLError: If the URL does not follow the zonal schema
        ResourceKindMismatchError: If the URL names another resource kind
    """
    error_msg = (
        f"Wrong url: expected format https://www.googleapis.com/compute/v1/projects/"
        f"<project-id>/zones/<zone>/{expected_resource}/<name>, got {url}"
    )
    if GCE_DOMAIN_SUFFIX not in url:
        raise MalformedURLError(error_msg)
    if not url.startswith(GCE_URL_SCHEME):
        raise MalformedURLError(error_msg)

    parts = url.split(GCE_DOMAIN_SUFFIX, 1)[1].split("/")
    if len(parts) != 5 or parts[1] != "zones":
        raise MalformedURLError(error_msg)
    if parts[3] != expected_resource:
        raise ResourceKindMismatchError(
            f"Wrong resource in url: expected {expected_resource}, got {parts[3]}"
        )

    project, zone, name = parts[0], parts[2], parts[4]
    return project, zone, name
