"""
Exception hierarchy for the slide pipeline.

Text and image failures are recovered where they happen with a fallback value.
Protocol failures become 400 responses, stream failures become a terminal
``error`` frame, and feedback revision failures are written onto the slide.
"""

from typing import Optional, Dict, Any


class SlidePipelineError(Exception):
    """Base exception for all pipeline errors"""

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context or {}

    def __str__(self):
        parts = [self.message]
        if self.cause:
            parts.append(f" (caused by: {type(self.cause).__name__}: {str(self.cause)})")
        if self.context:
            parts.append(f" Context: {self.context}")
        return "".join(parts)


class GenerationError(SlidePipelineError):
    """Text generation failed: provider error, timeout or unparseable reply"""
    pass


class ImageError(SlidePipelineError):
    """Image provider failed or returned nothing usable"""
    pass


class ProtocolError(SlidePipelineError):
    """Request is missing required fields"""
    pass


class StreamError(SlidePipelineError):
    """Unexpected failure after the event stream started"""
    pass


class FeedbackRevisionError(SlidePipelineError):
    """A single slide could not be revised from user feedback"""
    pass
