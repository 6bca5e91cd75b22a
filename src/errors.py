"""
Exception hierarchy for the preemptible node drain scheduler.
"""


class SpotterError(Exception):
    """Base exception for spotter."""

    pass


class MalformedURLError(SpotterError):
    """Raised when a compute resource URL does not follow the expected schema."""

    pass


class ResourceKindMismatchError(SpotterError):
    """Raised when a compute resource URL names a different resource kind."""

    pass


class InvalidDeadlineEncodingError(SpotterError):
    """Raised when the drain-at label value is not an integer timestamp."""

    pass


class CredentialsError(SpotterError):
    """Raised when a service account key file cannot be used."""

    pass


class ApiError(SpotterError):
    """Raised when a compute or container API call fails."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class LabelFingerprintConflictError(ApiError):
    """Raised when a label update is rejected because the fingerprint is stale."""

    pass


class OperationFailedError(SpotterError):
    """Raised when a zonal operation finishes with an error."""

    def __init__(self, name: str, operation_type: str, body: str):
        super().__init__(f"{name}[{operation_type}] failed: {body}")
        self.name = name
        self.operation_type = operation_type
        self.body = body


class OperationCancelledError(SpotterError):
    """Raised when waiting on an operation is interrupted by shutdown."""

    pass


class OperationTimeoutError(SpotterError):
    """Raised when an operation does not finish within the allowed time."""

    pass


class KubeError(SpotterError):
    """Raised when a Kubernetes API call fails."""

    pass


class DrainPartialFailureError(KubeError):
    """Raised when pod eviction stops partway through a node."""

    def __init__(self, node_name: str, pod_name: str, deleted: int, cause: Exception):
        super().__init__(
            f"Error draining pod {pod_name} on {node_name} "
            f"after {deleted} deletion(s): {cause}"
        )
        self.node_name = node_name
        self.pod_name = pod_name
        self.deleted = deleted
