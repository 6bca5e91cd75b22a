"""
Unit tests for compute resource URL parsing.
"""

import unittest

from errors import MalformedURLError, ResourceKindMismatchError
from locator import build_gce_url, parse_gce_url


class TestParseGceUrl(unittest.TestCase):
    """Test parse_gce_url."""

    def test_parse_instance_url(self):
        """Test a managed instance self link."""
        url = (
            "https://www.googleapis.com/compute/v1/projects/my-project/zones/"
            "europe-west1-b/instances/gke-spot-pool-1a2b"
        )
        self.assertEqual(
            parse_gce_url(url, "instances"),
            ("my-project", "europe-west1-b", "gke-spot-pool-1a2b"),
        )

    def test_parse_content_host(self):
        """Test the content.googleapis.com host is accepted."""
        url = (
            "https://content.googleapis.com/compute/v1/projects/p/zones/"
            "us-central1-a/instanceGroupManagers/gke-c-pool-grp"
        )
        self.assertEqual(
            parse_gce_url(url, "instanceGroupManagers"),
            ("p", "us-central1-a", "gke-c-pool-grp"),
        )

    def test_build_then_parse(self):
        """Test parse_gce_url inverts build_gce_url."""
        for resource in ("instances", "instanceGroupManagers"):
            url = build_gce_url("proj-1", "asia-east1-c", resource, "name-9")
            self.assertEqual(
                parse_gce_url(url, resource), ("proj-1", "asia-east1-c", "name-9")
            )

    def test_missing_domain_suffix(self):
        """Test URLs from another API are rejected."""
        with self.assertRaises(MalformedURLError):
            parse_gce_url("https://example.com/p/zones/z/instances/n", "instances")

    def test_wrong_scheme(self):
        """Test non-https URLs are rejected."""
        with self.assertRaises(MalformedURLError):
            parse_gce_url(
                "ftp://www.googleapis.com/compute/v1/projects/p/zones/z/instances/n",
                "instances",
            )

    def test_wrong_segment_count(self):
        """Test URLs with extra or missing segments are rejected."""
        with self.assertRaises(MalformedURLError):
            parse_gce_url(
                "https://www.googleapis.com/compute/v1/projects/p/zones/z/instances",
                "instances",
            )
        with self.assertRaises(MalformedURLError):
            parse_gce_url(
                "https://www.googleapis.com/compute/v1/projects/p/zones/z/instances/n/x",
                "instances",
            )

    def test_regional_url(self):
        """Test regional resources are rejected."""
        with self.assertRaises(MalformedURLError):
            parse_gce_url(
                "https://www.googleapis.com/compute/v1/projects/p/regions/r/instances/n",
                "instances",
            )

    def test_resource_kind_mismatch(self):
        """Test a URL for a different resource kind."""
        url = build_gce_url("p", "z", "instanceGroups", "g")
        with self.assertRaises(ResourceKindMismatchError):
            parse_gce_url(url, "instanceGroupManagers")


if __name__ == "__main__":
    unittest.main()
