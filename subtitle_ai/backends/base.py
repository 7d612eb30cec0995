"""Engine contracts for decoding media and recognizing speech."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    import numpy as np

    from ..cancellation import CancellationToken
    from ..types import Segment


@dataclass
class ModelInfo:
    """Metadata for a curated whisper.cpp GGML model variant."""

    model_id: str
    """Variant name as published by whisper.cpp (e.g., 'large-v3')."""

    description: str = ""
    """Human-readable description for CLI display."""

    english_only: bool = False
    """Whether the variant only recognizes English."""

    aliases: list[str] = field(default_factory=list)
    """Short names for CLI convenience (e.g., ['large', 'v3'])."""

    @property
    def filename(self) -> str:
        """File name of the GGML weights in the working cache."""
        return f"ggml-{self.model_id}.bin"


@runtime_checkable
class Transcoder(Protocol):
    """Decodes any media file to mono PCM audio."""

    def decode(self, source: "Path", sample_rate: int) -> "np.ndarray":
        """Decode ``source`` to mono float32 samples at ``sample_rate``.

        Args:
            source: Path to the input video or audio file.
            sample_rate: Output sample rate in Hz.

        Returns:
            1-D float32 array with samples in [-1.0, 1.0].
        """
        ...


@runtime_checkable
class Recognizer(Protocol):
    """Turns decoded audio into timestamped text segments."""

    def transcribe(
        self,
        audio: "np.ndarray",
        language: str = "auto",
        cancel: "CancellationToken | None" = None,
    ) -> "Iterator[Segment]":
        """Recognize speech in ``audio``.

        Args:
            audio: Mono float32 samples at 16 kHz.
            language: Language code, or "auto" to detect it.
            cancel: Token checked between produced segments.

        Returns:
            Lazy iterator of segments in non-decreasing start order.
        """
        ...
