"""Error Handler - provides user-friendly error messages and recovery hints."""

from typing import Optional

from viral_video.core.exceptions import (
    ConfigurationError,
    ExternalToolError,
    PipelineStageError,
    TransportError,
    ValidationError,
)


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
    suggestion: Optional[str] = None,
) -> str:
    """
    Format a user-friendly error message.

    Args:
        operation: What operation was being performed (e.g., "Rendering video kit")
        error: The exception that occurred
        context: Additional context (e.g., {"kit": "build/my-topic"})
        suggestion: Optional suggestion for how to fix the issue

    Returns:
        Formatted error message
    """
    error_type = type(error).__name__
    error_msg = str(error)

    context_str = ""
    if context:
        context_parts = [f"{k}={v}" for k, v in context.items()]
        context_str = f" ({', '.join(context_parts)})"

    message = f"❌ {operation} failed{context_str}\n"
    message += f"   Error: {error_type}: {error_msg}"

    if suggestion:
        message += f"\n   💡 Suggestion: {suggestion}"

    return message


def get_fallback_suggestion(error: Exception) -> Optional[str]:
    """
    Get a suggestion for how to recover from a failed run.

    Stage failures are unwrapped to their cause first.

    Args:
        error: The exception

    Returns:
        Suggestion string or None
    """
    if isinstance(error, PipelineStageError):
        return get_fallback_suggestion(error.cause)

    error_msg = str(error).lower()

    if isinstance(error, ConfigurationError):
        if "api_key" in error_msg or "api key" in error_msg:
            return "Set OPENAI_API_KEY in your environment or .env file, or run `viral setup`."
        if "topic" in error_msg:
            return "Pass a topic, e.g. `viral create --topic \"compound interest\"`."
        return "Check VIDEO_SEC and SCENES_COUNT in your environment or `viral setup` config."

    if isinstance(error, ExternalToolError):
        if error.returncode is None:
            return "Install ffmpeg (macOS: brew install ffmpeg, Ubuntu: sudo apt-get install -y ffmpeg)."
        if error.stderr_tail:
            return f"ffmpeg said:\n{error.stderr_tail}"
        return "Re-run with LOG_LEVEL=DEBUG to see the full ffmpeg command."

    if isinstance(error, TransportError):
        if "rate limit" in error_msg or "429" in error_msg:
            return f"{error.provider} rate limit exceeded. Wait a few minutes and try again."
        if "401" in error_msg or "authentication" in error_msg:
            return f"{error.provider} rejected the API key. Re-run `viral setup` with a valid key."
        if "network" in error_msg or "timeout" in error_msg or "connection" in error_msg:
            return "Network error. Check your internet connection and try again."
        return f"{error.provider} request failed. Partial artifacts are kept in the kit directory."

    if isinstance(error, ValidationError):
        if "storyboard" in error_msg:
            return "Fix storyboard.csv (filename,start,duration,cue rows with contiguous starts)."
        if "scene image" in error_msg:
            return "Make sure every scene listed in storyboard.csv exists in scenes/."
        return "Regenerate the kit with `viral create` to restore missing or malformed files."

    return None
