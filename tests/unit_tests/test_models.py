"""
Unit tests for data models.
"""

import dataclasses
import unittest
from datetime import datetime, timezone

from models import ClusterRef, Instance, NodePool, NodeResult


class TestClusterRef(unittest.TestCase):
    """Test ClusterRef data model."""

    def test_cluster_ref_is_immutable(self):
        """Test ClusterRef cannot be changed after construction."""
        cluster = ClusterRef(project_id="p", zone="europe-west1-b", cluster_name="prod")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            cluster.zone = "us-east1-b"


class TestInstance(unittest.TestCase):
    """Test Instance data model."""

    def _instance(self, status):
        return Instance(
            url="https://www.googleapis.com/compute/v1/projects/p/zones/z/instances/n",
            name="n",
            project="p",
            zone="z",
            status=status,
            creation_timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
        )

    def test_is_running(self):
        """Test only RUNNING counts as running."""
        self.assertTrue(self._instance("RUNNING").is_running)
        self.assertFalse(self._instance("STOPPING").is_running)

    def test_defaults(self):
        """Test labels and fingerprint default to empty."""
        inst = self._instance("RUNNING")
        self.assertEqual(inst.labels, {})
        self.assertEqual(inst.label_fingerprint, "")


class TestNodePool(unittest.TestCase):
    """Test NodePool data model."""

    def test_instance_urls_not_shared(self):
        """Test each pool gets its own URL list."""
        a = NodePool(name="a", instance_group_name="ga")
        b = NodePool(name="b", instance_group_name="gb")
        a.instance_urls.append("x")
        self.assertEqual(b.instance_urls, [])


class TestNodeResult(unittest.TestCase):
    """Test NodeResult data model."""

    def test_node_result_defaults(self):
        """Test optional fields default to None."""
        result = NodeResult(instance_name="n", zone="z", action="skipped")
        self.assertIsNone(result.drain_at)
        self.assertIsNone(result.error_message)
        self.assertIsNone(result.duration_seconds)


if __name__ == "__main__":
    unittest.main()
