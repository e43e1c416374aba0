"""Error telemetry sinks."""

import logfire

from linkage.domain.service.collaborators import ErrorTelemetry


class LogfireErrorTelemetry(ErrorTelemetry):
    """Report unexpected faults to logfire with their traceback."""

    def capture_exception(self, error: BaseException) -> None:
        logfire.exception(
            "Unexpected fault captured",
            _exc_info=error,
            error_type=type(error).__name__,
        )


class InMemoryErrorTelemetry(ErrorTelemetry):
    """Collect captured exceptions for assertions in tests."""

    def __init__(self) -> None:
        self.captured: list[BaseException] = []

    def capture_exception(self, error: BaseException) -> None:
        self.captured.append(error)
