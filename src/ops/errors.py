"""
Exception types raised by pipeline stages.

Transient errors (FrameError, InferenceError, DecodeError) cost one tick and
never end a session. SessionStartError is surfaced to the caller of start().
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for detection pipeline errors."""


class FrameError(PipelineError):
    """The captured frame cannot be turned into a model input."""


class InferenceError(PipelineError):
    """The inference runtime failed for one frame."""


class DecodeError(PipelineError):
    """The raw model output does not match the expected layout."""


class SessionStartError(PipelineError):
    """External resources needed for a session could not be acquired."""
