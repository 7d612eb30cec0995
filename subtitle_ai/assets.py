"""
Provisioning of the assets a run needs: FFmpeg and the GGML model.

Each asset moves UNCHECKED -> READY when a valid copy is already cached, or
UNCHECKED -> DOWNLOADING -> READY otherwise. There is no retry: a failed or
interrupted download leaves whatever was written on disk, and the next
run's size check purges it.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import stat
import sys
import threading
import zipfile
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

import requests

from .backends.base import ModelInfo
from .backends.ffmpeg import FFMPEG, FFPROBE, executable_path
from .backends.registry import model_url
from .cache import TRANSCODER_DIRNAME, WorkingCache
from .cancellation import NEVER_CANCELLED, CancellationToken
from .exceptions import ProvisioningError
from .types import CachedAsset, DownloadProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[DownloadProgress], None]

FFBINARIES_API_URL = "https://ffbinaries.com/api/v1/version/latest"

CHUNK_SIZE = 1024 * 1024
# (connect, read) seconds
HTTP_TIMEOUT = (10, 60)


def _iter_http_chunks(url: str) -> Iterator[bytes]:
    with requests.get(url, stream=True, timeout=HTTP_TIMEOUT) as response:
        response.raise_for_status()
        yield from response.iter_content(chunk_size=CHUNK_SIZE)


class ModelSource:
    """Remote location of the GGML weights on Hugging Face."""

    def probe_size(self, info: ModelInfo) -> int | None:
        """Expected byte length of the remote file, from a metadata request."""
        from huggingface_hub import get_hf_file_metadata

        return get_hf_file_metadata(model_url(info)).size

    def iter_chunks(self, info: ModelInfo) -> Iterator[bytes]:
        return _iter_http_chunks(model_url(info))


class TranscoderSource:
    """Static FFmpeg builds listed by the ffbinaries release API."""

    def __init__(self, api_url: str = FFBINARIES_API_URL):
        self.api_url = api_url

    def archive_urls(self, platform_key: str) -> dict[str, str]:
        """Map of executable name to ZIP archive URL for ``platform_key``."""
        response = requests.get(self.api_url, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
        builds = response.json().get("bin", {})
        if platform_key not in builds:
            raise ProvisioningError(f"No FFmpeg build published for platform '{platform_key}'")
        return builds[platform_key]

    def iter_chunks(self, url: str) -> Iterator[bytes]:
        return _iter_http_chunks(url)


def platform_key(system: str | None = None, machine: str | None = None) -> str:
    """ffbinaries platform key for the running interpreter."""
    system = system or sys.platform
    machine = (machine or platform.machine()).lower()

    if system.startswith("win"):
        return "windows-64"
    if system == "darwin":
        return "osx-64"
    if system.startswith("linux"):
        if machine in ("x86_64", "amd64"):
            return "linux-64"
        if machine in ("aarch64", "arm64"):
            return "linux-arm64"
        if machine.startswith("armv7"):
            return "linux-armhf"
        if machine.startswith("armv6"):
            return "linux-armel"
        if machine in ("i386", "i686", "x86"):
            return "linux-32"
    raise ProvisioningError(f"Unsupported platform for FFmpeg download: {system}/{machine}")


def download_to_file(
    chunks: Iterable[bytes],
    path: Path,
    cancel: CancellationToken | None = None,
) -> int:
    """Stream ``chunks`` into ``path``; return the number of bytes written.

    Raises:
        OperationCancelled: If ``cancel`` is signalled between chunks. The
            partially written file is left in place.
    """
    cancel = cancel or NEVER_CANCELLED
    written = 0
    with open(path, "wb") as f:
        for chunk in chunks:
            cancel.raise_if_cancelled()
            f.write(chunk)
            written += len(chunk)
    return written


class ProgressSampler:
    """Periodically samples a growing file and reports download progress.

    Sampling is advisory: it runs on its own thread, only reads the file
    size, and ends when stopped or when ``cancel`` is signalled. Events are
    published only when the rounded fraction changes (or, with an unknown
    total, when the byte count changes).
    """

    def __init__(
        self,
        path: Path,
        name: str,
        total: int | None,
        callback: ProgressCallback,
        interval: float = 1.0,
        cancel: CancellationToken | None = None,
    ):
        self.path = path
        self.name = name
        self.total = total
        self.callback = callback
        self.interval = interval
        self.cancel = cancel or NEVER_CANCELLED
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None
        self._last: float | int | None = None

    def sample(self) -> DownloadProgress | None:
        """Read the current size; return an event if progress changed."""
        try:
            downloaded = self.path.stat().st_size
        except FileNotFoundError:
            downloaded = 0

        fraction = None
        if self.total:
            fraction = round(downloaded / self.total, 4)
            key: float | int = fraction
        else:
            key = downloaded

        if key == self._last:
            return None
        self._last = key
        return DownloadProgress(self.name, downloaded, self.total, fraction)

    def _run(self) -> None:
        while not self.cancel.cancelled:
            event = self.sample()
            if event is not None:
                try:
                    self.callback(event)
                except Exception:
                    logger.debug("Progress callback failed; sampling stopped", exc_info=True)
                    return
            if self._stopped.wait(self.interval):
                return

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name=f"progress-{self.name}", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join()

    def __enter__(self) -> ProgressSampler:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _extract_executable(archive: Path, name: str, directory: Path) -> Path:
    """Copy executable ``name`` out of ``archive`` into ``directory``."""
    target = executable_path(directory, name)
    with zipfile.ZipFile(archive) as zf:
        for member in zf.namelist():
            if Path(member).name == target.name:
                with zf.open(member) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                return target
    raise ProvisioningError(f"{archive.name} does not contain {target.name}")


def ensure_transcoder_available(
    cache: WorkingCache,
    *,
    source: TranscoderSource | None = None,
    cancel: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> Path:
    """
    Make sure FFmpeg and FFprobe are present in the cache.

    A non-empty transcoder directory is assumed valid and is never
    re-verified.

    Returns:
        The directory holding the executables.

    Raises:
        ProvisioningError: If the release listing or an archive cannot be fetched.
    """
    directory = cache.transcoder_dir
    directory.mkdir(parents=True, exist_ok=True)
    logger.info("Checking FFmpeg...")

    if any(directory.iterdir()):
        logger.debug("FFmpeg already present in %s", directory)
        return directory

    source = source or TranscoderSource()
    logger.info("FFmpeg not found - downloading...")
    # Executables are staged outside the transcoder directory and moved in
    # only once both are extracted, so a failed run never leaves it non-empty
    staging = cache.root / f"{TRANSCODER_DIRNAME}.partial"
    shutil.rmtree(staging, ignore_errors=True)
    staging.mkdir(parents=True)
    try:
        urls = source.archive_urls(platform_key())
        staged = []
        for name in (FFMPEG, FFPROBE):
            archive = staging / f"{name}.zip"
            size = download_to_file(source.iter_chunks(urls[name]), archive, cancel)
            if on_progress is not None:
                on_progress(DownloadProgress(name, size, size, 1.0))
            try:
                binary = _extract_executable(archive, name, staging)
            except zipfile.BadZipFile as e:
                raise ProvisioningError(f"FFmpeg archive {archive.name} is corrupt: {e}") from e
            archive.unlink()
            if os.name == "posix":
                _make_executable(binary)
            staged.append(binary)
        for binary in staged:
            binary.replace(directory / binary.name)
    except requests.RequestException as e:
        raise ProvisioningError(f"FFmpeg download failed: {e}") from e
    except KeyError as e:
        raise ProvisioningError(f"FFmpeg release listing has no {e} build") from e
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info("FFmpeg downloaded")
    return directory


def ensure_model_available(
    info: ModelInfo,
    cache: WorkingCache,
    *,
    source: ModelSource | None = None,
    cancel: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
    poll_interval: float = 1.0,
) -> CachedAsset:
    """
    Make sure the GGML weights for ``info`` are cached with the right size.

    A cached file whose size differs from the remote size is deleted and
    downloaded again. A correctly sized file is reused without downloading.

    Returns:
        The ready CachedAsset.

    Raises:
        ProvisioningError: If the size probe or the download fails.
        OperationCancelled: If cancelled mid-download; the partial file stays.
    """
    source = source or ModelSource()
    path = cache.model_path(info)

    try:
        expected = source.probe_size(info)
    except Exception as e:
        raise ProvisioningError(f"Could not query size of {info.filename}: {e}") from e

    asset = CachedAsset(info.model_id, path, expected)
    if asset.exists and not asset.is_valid:
        logger.info("Model size mismatch - deleting model")
        path.unlink()

    if asset.exists:
        logger.info("Model already exists: %s", path)
        return asset

    logger.info("Downloading model: %s", info.model_id)
    try:
        if on_progress is not None:
            with ProgressSampler(path, info.model_id, expected, on_progress, poll_interval, cancel):
                download_to_file(source.iter_chunks(info), path, cancel)
        else:
            download_to_file(source.iter_chunks(info), path, cancel)
    except requests.RequestException as e:
        raise ProvisioningError(f"Model download failed: {e}") from e

    if not asset.is_valid:
        raise ProvisioningError(
            f"Downloaded {path} is {asset.size} bytes, expected {expected}"
        )
    logger.info("Model downloaded: %s", path)
    return asset
