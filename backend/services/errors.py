"""
Relay error hierarchy

- RelayError: base for all relay errors
- ValidationError: rejected at the HTTP boundary, nothing is spawned or queued
- DuplicateResultError: a host reported a second result for the same task
- UnknownTaskError: a result was reported for an id that is not outstanding
- UpstreamProcessError: the model CLI failed to start or exited without output
- CodeExecutionError: the host reported a failure running submitted code
- ExecutionTimeoutError: a submitter gave up waiting for a result
"""

from __future__ import annotations


class RelayError(Exception):
    """Base exception for relay errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    """Request failed boundary validation"""

    status_code = 400


class DuplicateResultError(RelayError):
    """A result for this task id was already stored"""

    status_code = 409


class UnknownTaskError(RelayError):
    """No submitted task with this id is waiting for a result"""

    status_code = 404


class UpstreamProcessError(RelayError):
    """Model CLI could not be started or exited without producing output"""

    status_code = 502

    def __init__(self, message: str, returncode: int | None = None, signal: str | None = None):
        super().__init__(message)
        self.returncode = returncode
        self.signal = signal


class CodeExecutionError(RelayError):
    """Host reported an error while executing submitted code"""

    def __init__(self, message: str, task_id: str | None = None):
        super().__init__(message)
        self.task_id = task_id


class ExecutionTimeoutError(RelayError, TimeoutError):
    """No result arrived within the submitter's wait timeout"""

    status_code = 504

    def __init__(self, task_id: str, timeout: float):
        super().__init__(f"Code execution timed out after {timeout:g}s (task {task_id})")
        self.task_id = task_id
        self.timeout = timeout
