"""Value types shared between provisioning, engines and the pipeline."""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class Segment:
    """A timestamped span of recognized speech."""

    start: float  # seconds
    end: float  # seconds
    text: str


@dataclass
class CachedAsset:
    """A downloadable dependency stored in the working cache.

    The asset is valid only if it exists and either its expected size is
    unknown or the on-disk size matches it.
    """

    name: str
    path: Path
    expected_size: int | None = None

    @property
    def exists(self) -> bool:
        return self.path.is_file()

    @property
    def size(self) -> int:
        return self.path.stat().st_size if self.exists else 0

    @property
    def is_valid(self) -> bool:
        if not self.exists:
            return False
        return self.expected_size is None or self.size == self.expected_size


@dataclass(frozen=True)
class DownloadProgress:
    """A sampled download progress event."""

    name: str
    downloaded: int
    total: int | None = None
    fraction: float | None = None  # rounded to 4 decimal places

    @property
    def percent(self) -> float | None:
        if self.fraction is None:
            return None
        return self.fraction * 100
