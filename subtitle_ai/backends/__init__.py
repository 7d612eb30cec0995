"""Engines used by the subtitle pipeline.

This module provides:
- Transcoder and Recognizer protocols the pipeline depends on
- ModelInfo metadata and the curated GGML model registry
- FFmpegTranscoder, decoding media with the cached FFmpeg executables
- WhisperCppRecognizer, running GGML models through whisper.cpp
"""

from .base import ModelInfo, Recognizer, Transcoder
from .ffmpeg import FFmpegTranscoder
from .whisper_cpp import WhisperCppRecognizer

__all__ = [
    "FFmpegTranscoder",
    "ModelInfo",
    "Recognizer",
    "Transcoder",
    "WhisperCppRecognizer",
]
