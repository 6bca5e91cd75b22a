"""
Unit tests for configuration.
"""

import unittest
from argparse import Namespace

from config import SpotterConfig, debug_mode_from_env


def _args(**overrides):
    values = dict(
        name="prod",
        key="/secrets/key.json",
        zone="europe-west1-b",
        kubeconfig="/secrets/kubeconfig",
        interval=5,
        max_parallel=20,
        poll_interval=15,
        operation_timeout=600,
        once=True,
        verbose=True,
    )
    values.update(overrides)
    return Namespace(**values)


class TestSpotterConfig(unittest.TestCase):
    """Test SpotterConfig data model."""

    def test_config_defaults(self):
        """Test default configuration values."""
        config = SpotterConfig(
            cluster_name="prod",
            key_path="key.json",
            zone="europe-west1-b",
            kubeconfig="kubeconfig",
        )
        self.assertEqual(config.interval, 10)
        self.assertEqual(config.max_parallel, 10)
        self.assertEqual(config.poll_interval, 10)
        self.assertEqual(config.operation_timeout, 1800)
        self.assertFalse(config.once)
        self.assertFalse(config.verbose)
        self.assertFalse(config.debug_mode)

    def test_config_from_args(self):
        """Test creating config from command-line arguments."""
        config = SpotterConfig.from_args(_args(), environ={})

        self.assertEqual(config.cluster_name, "prod")
        self.assertEqual(config.key_path, "/secrets/key.json")
        self.assertEqual(config.zone, "europe-west1-b")
        self.assertEqual(config.kubeconfig, "/secrets/kubeconfig")
        self.assertEqual(config.interval, 5)
        self.assertEqual(config.max_parallel, 20)
        self.assertEqual(config.poll_interval, 15)
        self.assertEqual(config.operation_timeout, 600)
        self.assertTrue(config.once)
        self.assertTrue(config.verbose)
        self.assertFalse(config.debug_mode)

    def test_debug_mode_from_environment(self):
        """Test SPOTTER_DEBUG=1 enables debug mode."""
        config = SpotterConfig.from_args(_args(), environ={"SPOTTER_DEBUG": "1"})
        self.assertTrue(config.debug_mode)

    def test_debug_mode_requires_exact_value(self):
        """Test other values leave debug mode off."""
        self.assertFalse(debug_mode_from_env({"SPOTTER_DEBUG": "true"}))
        self.assertFalse(debug_mode_from_env({"SPOTTER_DEBUG": "0"}))


if __name__ == "__main__":
    unittest.main()
