"""Generate SubRip subtitles from video and audio files with whisper.cpp."""

__version__ = "0.1.0"
