"""FFmpeg transcoder: decodes any media file to mono 16-bit PCM."""

import logging
import os
import subprocess
import wave
from pathlib import Path

import numpy as np

from ..exceptions import TranscodingError

logger = logging.getLogger(__name__)

FFMPEG = "ffmpeg"
FFPROBE = "ffprobe"


def executable_path(directory: Path, name: str) -> Path:
    """Path of executable ``name`` inside ``directory`` for this platform."""
    suffix = ".exe" if os.name == "nt" else ""
    return directory / f"{name}{suffix}"


def read_wav(path: Path) -> np.ndarray:
    """Read a 16-bit PCM WAV file into mono float32 samples in [-1, 1]."""
    with wave.open(str(path), "rb") as wav:
        if wav.getsampwidth() != 2:
            raise TranscodingError(
                f"Expected 16-bit PCM in {path}, got {wav.getsampwidth() * 8}-bit"
            )
        channels = wav.getnchannels()
        frames = wav.readframes(wav.getnframes())

    samples = np.frombuffer(frames, dtype=np.int16)
    if channels > 1:
        samples = samples.reshape(-1, channels).mean(axis=1)
    return samples.astype(np.float32) / 32768.0


class FFmpegTranscoder:
    """Transcoder backed by the FFmpeg executables in the working cache.

    The decoded audio is written as a WAV intermediate into ``work_dir`` and
    then buffered in memory. Unless ``keep_temp_files`` is set, both the
    intermediate and the source media are deleted after a successful decode.
    """

    def __init__(
        self,
        ffmpeg_dir: Path,
        work_dir: Path,
        keep_temp_files: bool = False,
    ):
        self.ffmpeg_dir = Path(ffmpeg_dir)
        self.work_dir = Path(work_dir)
        self.keep_temp_files = keep_temp_files

    @property
    def ffmpeg(self) -> Path:
        return executable_path(self.ffmpeg_dir, FFMPEG)

    @property
    def ffprobe(self) -> Path:
        return executable_path(self.ffmpeg_dir, FFPROBE)

    def build_command(self, source: Path, target: Path, sample_rate: int) -> list[str]:
        # Output options follow -i so they apply to the output stream
        return [
            str(self.ffmpeg),
            "-nostdin",
            "-y",
            "-i", str(source),
            "-ar", str(sample_rate),
            "-ac", "1",
            "-acodec", "pcm_s16le",
            str(target),
        ]

    def decode(self, source: Path, sample_rate: int) -> np.ndarray:
        """Decode ``source`` to mono float32 samples at ``sample_rate``.

        Raises:
            TranscodingError: If FFmpeg cannot be started or exits non-zero.
        """
        source = Path(source)
        self.work_dir.mkdir(parents=True, exist_ok=True)
        target = self.work_dir / f"{source.stem}.wav"

        cmd = self.build_command(source, target, sample_rate)
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise TranscodingError(f"Could not run {self.ffmpeg}: {e}") from e
        if proc.returncode != 0:
            raise TranscodingError(proc.stderr.strip(), stderr=proc.stderr)

        audio = read_wav(target)
        logger.debug("Decoded %d samples from %s", audio.size, source)

        if not self.keep_temp_files:
            source.unlink(missing_ok=True)
            target.unlink(missing_ok=True)
        return audio

    def probe_duration(self, path: Path) -> float | None:
        """
        Get media duration in seconds using ffprobe.

        Returns None if ffprobe is not available or fails.
        """
        if not self.ffprobe.exists():
            return None

        try:
            result = subprocess.run(
                [
                    str(self.ffprobe),
                    "-v", "quiet",
                    "-show_entries", "format=duration",
                    "-of", "csv=p=0",
                    str(path),
                ],
                capture_output=True,
                text=True,
                timeout=10,
            )
            if result.returncode == 0 and result.stdout.strip():
                return float(result.stdout.strip())
        except (subprocess.TimeoutExpired, ValueError, OSError):
            pass

        return None
