"""Exceptions for the furiosa_client library."""

from __future__ import annotations

from pathlib import Path


class FuriosaClientError(Exception):
    """Base exception for all furiosa_client errors."""


class ClientIOError(FuriosaClientError):
    """Raised when a config or credential file exists but cannot be read."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(f"IO Error: {message}")
        self.path = path


class ConfigParseError(FuriosaClientError):
    """Raised on a malformed line in ``~/.furiosa/config`` or ``~/.furiosa/credential``.

    ``line`` is the offending line without surrounding whitespace, ``index``
    its 1-based line number in the file.
    """

    def __init__(self, line: str, index: int) -> None:
        super().__init__(f"Error parsing line: '{line}', error at line index: {index}")
        self.line = line
        self.index = index


class ConfigEnvVarError(FuriosaClientError):
    """Raised when an environment variable is set to an unusable value."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"{name}: {reason}")
        self.name = name


class NoCredentials(FuriosaClientError):
    """Raised when no access key pair can be found."""

    def __init__(self) -> None:
        super().__init__("FURIOSA_ACCESS_KEY_ID, FURIOSA_SECRET_ACCESS_KEY must be set")


class InvalidTargetIr(FuriosaClientError, ValueError):
    """Raised when a target IR name is not recognised."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid target IR: '{value}'")
        self.value = value


class ApiError(FuriosaClientError):
    """Raised when the API returns an error or cannot be reached.

    ``status_code`` is ``None`` for transport failures (DNS, connect,
    read timeout) where no HTTP response was received.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        trace_id: str | None = None,
    ) -> None:
        super().__init__(f"ApiError: {message}")
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.trace_id = trace_id


class AuthError(ApiError):
    """Raised on 401/403 from the API."""


class MalformedErrorResponse(ApiError):
    """Raised when a non-2xx response body is not a valid API error object."""


class CompilationFailed(FuriosaClientError):
    """Raised when a compile task ends in the ``Failed`` phase.

    The message is the compiler log fetched from the task, so that
    ``print(e)`` shows what went wrong on the server.
    """

    def __init__(self, log: str, *, task_id: str, error_message: str | None = None) -> None:
        super().__init__(log)
        self.log = log
        self.task_id = task_id
        self.error_message = error_message


class TaskTimeout(FuriosaClientError):
    """Raised when polling a task exceeds its client-side timeout."""

    def __init__(self, task_id: str, timeout: float) -> None:
        super().__init__(f"Task {task_id} did not complete within {timeout}s")
        self.task_id = task_id
        self.timeout = timeout


class TaskCancelled(FuriosaClientError):
    """Raised when the caller's cancel event is set while polling."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Polling of task {task_id} was cancelled")
        self.task_id = task_id
