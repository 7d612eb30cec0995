"""Subtitle generation pipeline: media in, SRT file out."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import numpy as np

from .assets import (
    ModelSource,
    ProgressCallback,
    TranscoderSource,
    ensure_model_available,
    ensure_transcoder_available,
)
from .backends.base import Recognizer, Transcoder
from .backends.ffmpeg import FFmpegTranscoder
from .backends.registry import resolve_model
from .backends.whisper_cpp import WhisperCppRecognizer
from .cache import WorkingCache
from .cancellation import NEVER_CANCELLED, CancellationToken
from .config import Settings
from .exceptions import OperationCancelled, TranscodingError
from .formatters import subtitle_path_for, write_srt
from .types import Segment

logger = logging.getLogger(__name__)

SegmentCallback = Callable[[Segment], None]


class SubtitleGenerator:
    """
    Turns one media file into a SubRip file beside it.

    The steps run strictly in order: prepare the working cache, provision
    FFmpeg and the model, decode the media, recognize speech, write the
    subtitles. Engines passed in explicitly skip their provisioning step.
    """

    def __init__(
        self,
        input_path: Path | str,
        settings: Settings | None = None,
        *,
        transcoder: Transcoder | None = None,
        recognizer: Recognizer | None = None,
        model_source: ModelSource | None = None,
        transcoder_source: TranscoderSource | None = None,
        on_download: ProgressCallback | None = None,
        on_segment: SegmentCallback | None = None,
    ):
        """
        Args:
            input_path: Video or audio file to subtitle.
            settings: Run configuration (defaults if None).
            transcoder: Decoder to use instead of the cached FFmpeg.
            recognizer: Recognizer to use instead of the cached GGML model.
            model_source: Where to download the model from.
            transcoder_source: Where to download FFmpeg from.
            on_download: Receives sampled download progress.
            on_segment: Receives each recognized segment.
        """
        self.input_path = Path(input_path)
        self.settings = settings or Settings()
        self.cache = WorkingCache(self.settings.cache_dir)
        self.model_source = model_source
        self.transcoder_source = transcoder_source
        self.on_download = on_download
        self.on_segment = on_segment
        self.segments: list[Segment] = []
        self.media_duration: float | None = None
        self._transcoder = transcoder
        self._recognizer = recognizer

    def _prepare_transcoder(self, cancel: CancellationToken) -> Transcoder:
        if self._transcoder is not None:
            return self._transcoder

        if self.settings.ffmpeg_path is not None:
            ffmpeg_dir = self.settings.ffmpeg_path
            logger.debug("Using FFmpeg from %s", ffmpeg_dir)
        else:
            ffmpeg_dir = ensure_transcoder_available(
                self.cache,
                source=self.transcoder_source,
                cancel=cancel,
                on_progress=self.on_download,
            )
        self._transcoder = FFmpegTranscoder(
            ffmpeg_dir,
            self.cache.root,
            keep_temp_files=self.settings.keep_temp_files,
        )
        return self._transcoder

    def _prepare_recognizer(self, cancel: CancellationToken) -> Recognizer:
        if self._recognizer is not None:
            return self._recognizer

        info = resolve_model(self.settings.model)
        logger.info("Creating whisper.cpp recognizer...")
        asset = ensure_model_available(
            info,
            self.cache,
            source=self.model_source,
            cancel=cancel,
            on_progress=self.on_download,
            poll_interval=self.settings.progress_interval,
        )
        self._recognizer = WhisperCppRecognizer(asset.path, threads=self.settings.threads)
        return self._recognizer

    def _recognize(
        self,
        recognizer: Recognizer,
        audio: np.ndarray,
        cancel: CancellationToken,
    ) -> list[Segment]:
        """Drain the recognizer into ``self.segments``.

        Raises:
            OperationCancelled: Carrying the segments recognized so far.
        """
        self.segments = []
        for segment in recognizer.transcribe(audio, self.settings.language, cancel):
            self.segments.append(segment)
            logger.info("Recognized speech: %s", segment.text)
            if self.on_segment is not None:
                self.on_segment(segment)
            if cancel.cancelled:
                break

        if cancel.cancelled:
            raise OperationCancelled("Recognition cancelled", segments=list(self.segments))
        return self.segments

    def generate_subtitles(self, cancel: CancellationToken | None = None) -> Path:
        """
        Run the whole pipeline.

        Returns:
            Path of the written .srt file.

        Raises:
            OperationCancelled: If ``cancel`` is signalled; no file is written.
            SubtitleAIError: If provisioning, decoding or recognition fails.
        """
        cancel = cancel or NEVER_CANCELLED
        self.cache.ensure()

        logger.info("Checking libraries...")
        transcoder = self._prepare_transcoder(cancel)
        recognizer = self._prepare_recognizer(cancel)

        measure = getattr(transcoder, "probe_duration", None)
        if measure is not None:
            self.media_duration = measure(self.input_path)

        logger.info("Converting media to wave...")
        try:
            audio = transcoder.decode(self.input_path, self.settings.sample_rate)
        except TranscodingError as e:
            # Ctrl+C also reaches the FFmpeg child, which then exits non-zero
            if cancel.cancelled:
                raise OperationCancelled("Decoding cancelled") from e
            raise
        cancel.raise_if_cancelled()

        logger.info("Recognizing speech...")
        segments = self._recognize(recognizer, audio, cancel)

        logger.info("Generating subtitle...")
        return write_srt(segments, subtitle_path_for(self.input_path))


def generate_subtitles(
    input_path: Path | str,
    settings: Settings | None = None,
    cancel: CancellationToken | None = None,
    **options,
) -> Path:
    """Convenience wrapper: generate subtitles for ``input_path`` in one call.

    Extra keyword arguments (engines, sources, callbacks) are passed on to
    ``SubtitleGenerator``.
    """
    return SubtitleGenerator(input_path, settings, **options).generate_subtitles(cancel)
