"""The hidden working cache holding downloaded assets and intermediates."""

import ctypes
import logging
import os
from pathlib import Path

from .backends.base import ModelInfo

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = ".subtitle-ai-cache"
TRANSCODER_DIRNAME = "ffmpeg"

_FILE_ATTRIBUTE_HIDDEN = 0x02


def _hide(path: Path) -> None:
    """Set the hidden attribute on Windows; dot-names are hidden elsewhere."""
    if os.name != "nt":
        return
    if not ctypes.windll.kernel32.SetFileAttributesW(str(path), _FILE_ATTRIBUTE_HIDDEN):
        logger.debug("Could not mark %s hidden", path)


class WorkingCache:
    """Layout of the working cache directory.

    ``root/``
        ``ffmpeg/`` - transcoder executables
        ``ggml-<variant>.bin`` - recognition model weights
        ``<stem>.wav`` - transient decoded audio
    """

    def __init__(self, root: Path | str = DEFAULT_CACHE_DIR):
        self.root = Path(root)

    def ensure(self) -> Path:
        """Create the cache directory if absent and return it."""
        if not self.root.is_dir():
            self.root.mkdir(parents=True, exist_ok=True)
            _hide(self.root)
            logger.debug("Created working cache %s", self.root)
        return self.root

    @property
    def transcoder_dir(self) -> Path:
        return self.root / TRANSCODER_DIRNAME

    def model_path(self, info: ModelInfo) -> Path:
        return self.root / info.filename
