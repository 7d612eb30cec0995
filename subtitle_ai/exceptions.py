"""Exception types raised by subtitle-ai.

All subtitle-ai specific exceptions inherit from SubtitleAIError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import Segment


class SubtitleAIError(Exception):
    """Base exception for all subtitle-ai errors."""

    pass


class ConfigError(SubtitleAIError):
    """Configuration loading or validation error."""

    pass


class ProvisioningError(SubtitleAIError):
    """Downloading or installing a cached asset failed."""

    pass


class TranscodingError(SubtitleAIError):
    """FFmpeg failed to decode the input media."""

    def __init__(self, message: str, stderr: str | None = None):
        self.stderr = stderr
        super().__init__(message)


class RecognitionError(SubtitleAIError):
    """The speech recognition engine failed."""

    pass


class OperationCancelled(SubtitleAIError):
    """The run was cancelled before it completed.

    Segments recognized before the cancellation are kept on ``segments``.
    """

    def __init__(self, message: str = "Operation cancelled", segments: list[Segment] | None = None):
        self.segments = segments if segments is not None else []
        super().__init__(message)


class DependencyError(SubtitleAIError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")
