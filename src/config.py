"""
Configuration management for the preemptible node drain scheduler.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEBUG_ENV_VAR = "SPOTTER_DEBUG"


def debug_mode_from_env(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Debug mode is on when SPOTTER_DEBUG=1."""
    environ = os.environ if environ is None else environ
    return environ.get(DEBUG_ENV_VAR) == "1"


@dataclass
class SpotterConfig:
    """Configuration for the drain scheduler."""

    cluster_name: str
    key_path: str
    zone: str
    kubeconfig: str
    interval: int = 10  # minutes between cycles
    max_parallel: int = 10
    poll_interval: int = 10
    operation_timeout: int = 1800
    once: bool = False
    verbose: bool = False
    debug_mode: bool = False

    @classmethod
    def from_args(cls, args, environ: Optional[Mapping[str, str]] = None) -> "SpotterConfig":
        """
        Create configuration from command-line arguments.

        Args:
            args: Parsed argparse arguments
            environ: Environment to read SPOTTER_DEBUG from (os.environ if None)

        Returns:
            SpotterConfig instance
        """
        return cls(
            cluster_name=args.name,
            key_path=args.key,
            zone=args.zone,
            kubeconfig=args.kubeconfig,
            interval=args.interval,
            max_parallel=args.max_parallel,
            poll_interval=args.poll_interval,
            operation_timeout=args.operation_timeout,
            once=args.once,
            verbose=args.verbose,
            debug_mode=debug_mode_from_env(environ),
        )
