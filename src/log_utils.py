"""
Logging utilities for the preemptible node drain scheduler.
"""

import logging
import sys
from typing import Optional


def setup_logging(
    verbose: bool = False, log_file: Optional[str] = "spotter.log"
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        verbose: Enable verbose (DEBUG) logging
        log_file: Path to log file (stdout only if None)

    Returns:
        Logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - [%(threadName)s] %(message)s",
        handlers=handlers,
    )

    # Request-level chatter from the HTTP and Kubernetes clients
    for noisy in ("urllib3", "kubernetes.client.rest", "google.auth"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logging.getLogger(__name__)
