"""
Blocking wait on Compute Engine zonal operations.
"""

import json
import logging
import threading
import time
from typing import Dict, Optional

from errors import OperationCancelledError, OperationFailedError, OperationTimeoutError

logger = logging.getLogger(__name__)

STATUS_DONE = "DONE"


def operation_error(op: Dict) -> OperationFailedError:
    """Build the error for an operation that carries an error body."""
    try:
        body = json.dumps(op["error"], sort_keys=True)
    except (TypeError, ValueError):
        body = repr(op["error"])
    return OperationFailedError(
        op.get("name", "<unknown>"), op.get("operationType", "<unknown>"), body
    )


class OperationWaiter:
    """Polls a zonal operation until it is DONE or reports an error."""

    def __init__(
        self,
        client,
        poll_interval: float = 10,
        timeout: Optional[float] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the waiter.

        Args:
            client: ComputeRestClient used to fetch operation status
            poll_interval: Seconds between status checks
            timeout: Maximum seconds to wait per operation (None waits forever)
            stop_event: Set to abandon any wait in progress
        """
        self.client = client
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.stop_event = stop_event or threading.Event()

    def wait(self, op: Dict, project: str, zone: str) -> Dict:
        """
        Block until the operation finishes.

        Args:
            op: Operation returned by the mutating call
            project: Project ID of the operation
            zone: Zone of the operation

        Returns:
            The finished operation

        Raises:
            OperationFailedError: If the operation reports an error
            OperationCancelledError: If the stop event is set while waiting
            OperationTimeoutError: If the operation outlives the timeout
        """
        if op.get("error"):
            raise operation_error(op)

        op_name = op["name"]
        start = time.monotonic()

        while op.get("status") != STATUS_DONE:
            if self.timeout is not None and time.monotonic() - start > self.timeout:
                raise OperationTimeoutError(
                    f"Operation {op_name} not done after {self.timeout}s"
                )
            if self.stop_event.wait(self.poll_interval):
                raise OperationCancelledError(f"Stopped waiting for operation {op_name}")

            op = self.client.get_zone_operation(project, zone, op_name)
            logger.debug(f"Operation {op_name}: status={op.get('status')}")
            if op.get("error"):
                raise operation_error(op)

        return op
