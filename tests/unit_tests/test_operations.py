"""
Unit tests for the zonal operation waiter.
"""

import threading
import unittest
from unittest.mock import MagicMock

from errors import OperationCancelledError, OperationFailedError, OperationTimeoutError
from operations import OperationWaiter, operation_error


class TestOperationWaiter(unittest.TestCase):
    """Test OperationWaiter.wait."""

    def setUp(self):
        """Set up test fixtures."""
        self.client = MagicMock()
        self.waiter = OperationWaiter(self.client, poll_interval=0)

    def test_error_on_handle(self):
        """Test an operation that already failed raises without polling."""
        op = {
            "name": "operation-1",
            "operationType": "setLabels",
            "error": {"errors": [{"code": "CONDITION_NOT_MET"}]},
        }

        with self.assertRaises(OperationFailedError) as ctx:
            self.waiter.wait(op, "p", "z")

        self.assertEqual(ctx.exception.name, "operation-1")
        self.assertEqual(ctx.exception.operation_type, "setLabels")
        self.assertIn("CONDITION_NOT_MET", ctx.exception.body)
        self.client.get_zone_operation.assert_not_called()

    def test_polls_until_done(self):
        """Test polling continues until the operation is DONE."""
        self.client.get_zone_operation.side_effect = [
            {"name": "operation-2", "status": "RUNNING"},
            {"name": "operation-2", "status": "DONE"},
        ]

        result = self.waiter.wait({"name": "operation-2", "status": "PENDING"}, "p", "z")

        self.assertEqual(result["status"], "DONE")
        self.assertEqual(self.client.get_zone_operation.call_count, 2)
        self.client.get_zone_operation.assert_called_with("p", "z", "operation-2")

    def test_already_done(self):
        """Test an operation returned as DONE needs no polling."""
        result = self.waiter.wait({"name": "operation-3", "status": "DONE"}, "p", "z")

        self.assertEqual(result["name"], "operation-3")
        self.client.get_zone_operation.assert_not_called()

    def test_embedded_error_while_polling(self):
        """Test an error reported by a later poll raises OperationFailedError."""
        self.client.get_zone_operation.return_value = {
            "name": "operation-4",
            "operationType": "delete",
            "status": "DONE",
            "error": {"errors": [{"code": "RESOURCE_NOT_FOUND"}]},
        }

        with self.assertRaises(OperationFailedError) as ctx:
            self.waiter.wait({"name": "operation-4", "status": "RUNNING"}, "p", "z")

        self.assertIn("operation-4[delete] failed", str(ctx.exception))

    def test_cancelled_by_stop_event(self):
        """Test setting the stop event abandons the wait."""
        stop_event = threading.Event()
        stop_event.set()
        waiter = OperationWaiter(self.client, poll_interval=10, stop_event=stop_event)

        with self.assertRaises(OperationCancelledError):
            waiter.wait({"name": "operation-5", "status": "RUNNING"}, "p", "z")

        self.client.get_zone_operation.assert_not_called()

    def test_timeout(self):
        """Test an operation outliving the timeout raises."""
        waiter = OperationWaiter(self.client, poll_interval=0, timeout=-1)

        with self.assertRaises(OperationTimeoutError):
            waiter.wait({"name": "operation-6", "status": "RUNNING"}, "p", "z")

        self.client.get_zone_operation.assert_not_called()


class TestOperationError(unittest.TestCase):
    """Test operation_error."""

    def test_unserializable_body_falls_back_to_repr(self):
        """Test an error body json cannot encode is kept as repr."""
        err = operation_error({"name": "op", "operationType": "t", "error": {1, 2}})
        self.assertEqual(err.body, repr({1, 2}))

    def test_missing_name_and_type(self):
        """Test placeholders are used when the operation lacks metadata."""
        err = operation_error({"error": {"code": 3}})
        self.assertIn("<unknown>[<unknown>] failed", str(err))


if __name__ == "__main__":
    unittest.main()
