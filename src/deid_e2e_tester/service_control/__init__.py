"""Service control domain exports."""

from .service_controller import (
    CommandResult,
    ServiceControlError,
    ServiceController,
    ServiceHealth,
    ServiceStatus,
    WindowsServiceController,
    check_service_health,
)

__all__ = [
    "CommandResult",
    "ServiceControlError",
    "ServiceController",
    "ServiceHealth",
    "ServiceStatus",
    "WindowsServiceController",
    "check_service_health",
]
