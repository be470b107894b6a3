# stack_orchestrator/core/errors.py

from typing import Any, Optional

# -----------------------------
# Base Errors
# -----------------------------

class OrchestratorError(Exception):
    """Base class for all stack orchestrator errors."""
    pass


# -----------------------------
# Configuration Errors
# -----------------------------

class ConfigurationError(OrchestratorError):
    """Required setting missing or invalid (fatal at startup)."""
    pass


# -----------------------------
# Remote API Errors
# -----------------------------

class StackApiError(OrchestratorError):
    """
    Remote stack API call failed or returned a non-JSON body.

    `detail` holds the parsed JSON body when available, else the raw text.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        detail: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class NotificationError(OrchestratorError):
    """Posting a comment to the source-control host failed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


# -----------------------------
# Convergence Errors
# -----------------------------

class ConvergenceError(OrchestratorError):
    """Stack did not reach the running state."""
    pass


class ConvergenceTimeoutError(ConvergenceError):
    """Retry budget exhausted while waiting for the stack."""
    pass


class StackTerminatedError(ConvergenceError):
    """Stack was observed terminated while waiting for it to run."""
    pass
