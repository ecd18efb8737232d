"""Custom exception hierarchy for the slot orchestrator."""


class SlotOrchestratorError(Exception):
    """Base exception for all orchestrator errors."""


class ConfigError(SlotOrchestratorError):
    """Invalid or missing configuration."""


class UnsupportedOperationError(SlotOrchestratorError):
    """The gateway was handed something that is not a known operation."""


class GatewayError(SlotOrchestratorError):
    """A provider operation failed on every attempt."""

    def __init__(self, operation: str, activity: str, last_error: BaseException | str):
        super().__init__(f"{operation} failed while {activity}: {last_error}")
        self.operation = operation
        self.activity = activity
        self.last_error = last_error


class SlotDetectionError(SlotOrchestratorError):
    """The idle slot could not be determined from the Traffic Manager profile."""


class TeardownError(SlotOrchestratorError):
    """A resource of the idle slot could not be removed."""

    def __init__(self, message: str, resource: str = "", resource_type: str = "", step: str | None = None):
        super().__init__(message)
        self.resource = resource
        self.resource_type = resource_type
        self.step = step


class VersionResolutionError(SlotOrchestratorError):
    """The deployment version id is malformed or cannot be derived."""


class StatusListenerError(SlotOrchestratorError):
    """Error reading completion messages from the Service Bus queue."""

    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
