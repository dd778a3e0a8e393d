"""
Viral Video Custom Exceptions

Exception taxonomy shared by the kit generator and the render pipeline.
None of these are retried: a raised error is a failed run.
"""

from typing import Optional, Sequence


class ViralVideoError(Exception):
    """Base exception for all viral-video errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(ViralVideoError):
    """Raised for a missing topic or credential, or an unusable config value."""
    pass


# =============================================================================
# ASSET ERRORS
# =============================================================================

class ValidationError(ViralVideoError):
    """Raised when an intermediate file is missing or malformed."""
    pass


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================

class ExternalToolError(ViralVideoError):
    """Raised when the encoder exits non-zero or cannot be launched."""

    def __init__(
        self,
        stage: str,
        reason: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr_tail: str = "",
    ):
        message = f"ffmpeg failed during '{stage}': {reason}"
        details = {"stage": stage}
        if returncode is not None:
            details["returncode"] = returncode
        super().__init__(message, details)
        self.stage = stage
        self.command = list(command or [])
        self.returncode = returncode
        self.stderr_tail = stderr_tail


class TransportError(ViralVideoError):
    """Raised when a generative backend call fails."""

    def __init__(self, provider: str, reason: str):
        message = f"{provider} request failed: {reason}"
        super().__init__(message, {"provider": provider})
        self.provider = provider


# =============================================================================
# PIPELINE ERRORS
# =============================================================================

class PipelineStageError(ViralVideoError):
    """Raised by the render orchestrator when a stage fails."""

    def __init__(self, stage_name: str, cause: Exception):
        message = f"Pipeline stage '{stage_name}' failed: {cause}"
        super().__init__(message, {"stage": stage_name})
        self.stage = stage_name
        self.cause = cause
