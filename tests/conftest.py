"""
Test configuration and shared fakes for the engines and download sources.
"""

from __future__ import annotations

import io
import threading
import zipfile
from pathlib import Path
from types import SimpleNamespace

import numpy as np
import pytest
import requests

from subtitle_ai.backends.ffmpeg import executable_path
from subtitle_ai.backends.registry import resolve_model
from subtitle_ai.types import Segment


class FakeTranscoder:
    """Transcoder that returns one second of silence and records calls."""

    def __init__(self):
        self.calls: list[tuple[Path, int]] = []

    def decode(self, source: Path, sample_rate: int) -> np.ndarray:
        self.calls.append((Path(source), sample_rate))
        return np.zeros(sample_rate, dtype=np.float32)


class FakeRecognizer:
    """Recognizer yielding canned segments.

    With ``cancel_after=n`` the token is cancelled once the consumer has
    taken ``n`` segments, like a Ctrl+C arriving mid-recognition.
    """

    def __init__(self, segments: list[Segment], cancel_after: int | None = None, error: Exception | None = None):
        self.segments = segments
        self.cancel_after = cancel_after
        self.error = error
        self.languages: list[str] = []

    def transcribe(self, audio, language="auto", cancel=None):
        self.languages.append(language)
        for i, segment in enumerate(self.segments, start=1):
            if cancel is not None and cancel.cancelled:
                return
            yield segment
            if self.cancel_after == i and cancel is not None:
                cancel.cancel()
        if self.error is not None:
            raise self.error


class BlockingWhisperModel:
    """Stands in for pywhispercpp's Model: emits one segment, then blocks.

    The native decode keeps running until ``release`` is set, so tests can
    cancel while whisper.cpp is still busy.
    """

    def __init__(self):
        self.release = threading.Event()
        self.finished = threading.Event()

    def transcribe(self, media, new_segment_callback=None, **params):
        new_segment_callback(SimpleNamespace(t0=0, t1=150, text=" Hello"))
        self.release.wait(5)
        new_segment_callback(SimpleNamespace(t0=150, t1=325, text=" world"))
        self.finished.set()


class FakeModelSource:
    """In-memory model download source.

    ``fail_after`` makes the stream break after that many chunks.
    """

    def __init__(self, payload: bytes, size: int | None = -1, chunk_size: int = 4, fail_after: int | None = None):
        self.payload = payload
        self.size = len(payload) if size == -1 else size
        self.chunk_size = chunk_size
        self.fail_after = fail_after
        self.probe_calls = 0
        self.download_calls = 0

    def probe_size(self, info):
        self.probe_calls += 1
        return self.size

    def iter_chunks(self, info):
        self.download_calls += 1
        for n, offset in enumerate(range(0, len(self.payload), self.chunk_size)):
            if self.fail_after is not None and n == self.fail_after:
                raise requests.ConnectionError("connection reset")
            yield self.payload[offset:offset + self.chunk_size]


def make_zip(member: str, content: bytes) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr(member, content)
    return buffer.getvalue()


class FakeTranscoderSource:
    """Serves ZIP archives containing fake ffmpeg/ffprobe executables."""

    def __init__(self):
        self.listing_calls = 0
        self.platforms: list[str] = []
        self.archives = {
            name: make_zip(f"{name}-6.1/{executable_path(Path('.'), name).name}", f"#!{name}".encode())
            for name in ("ffmpeg", "ffprobe")
        }

    def archive_urls(self, platform_key):
        self.listing_calls += 1
        self.platforms.append(platform_key)
        return {name: f"mem://{name}" for name in self.archives}

    def iter_chunks(self, url):
        yield self.archives[url.removeprefix("mem://")]


@pytest.fixture
def tiny_model():
    return resolve_model("tiny")


@pytest.fixture
def sample_segments() -> list[Segment]:
    return [
        Segment(start=0.0, end=1.5, text="Hello"),
        Segment(start=1.5, end=3.25, text="world"),
    ]


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"not really a video")
    return path
