from .prepare_deployment import (
    PrepareDeploymentOutcome,
    PrepareDeploymentRequest,
    PrepareDeploymentService,
)
from .result import (
    ServiceFailure,
    ServiceResult,
    ServiceSuccess,
    failure_from_error,
    service_failure,
    service_success,
)

__all__ = [
    "PrepareDeploymentOutcome",
    "PrepareDeploymentRequest",
    "PrepareDeploymentService",
    "ServiceFailure",
    "ServiceResult",
    "ServiceSuccess",
    "failure_from_error",
    "service_failure",
    "service_success",
]
