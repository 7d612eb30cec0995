"""whisper.cpp recognizer backed by pywhispercpp.

whisper.cpp runs the whole decode in one blocking call and reports segments
through a callback, so the call runs on a worker thread and segments are
handed to the consumer through a queue. The consumer checks the
cancellation token between segments.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..cancellation import NEVER_CANCELLED, CancellationToken
from ..exceptions import DependencyError, RecognitionError
from ..types import Segment

if TYPE_CHECKING:
    import numpy as np

logger = logging.getLogger(__name__)

# whisper.cpp timestamps are in units of 10 ms
_TICKS_PER_SECOND = 100

# How often the consumer wakes up to check for cancellation
_POLL_SECONDS = 0.25

_DONE = object()


class _Failure:
    def __init__(self, error: BaseException):
        self.error = error


def is_whisper_cpp_available() -> bool:
    """Check if pywhispercpp is installed and importable."""
    try:
        import pywhispercpp.model  # noqa: F401
    except ImportError:
        return False
    return True


class WhisperCppRecognizer:
    """Recognizer for GGML models using whisper.cpp.

    Loads the model once, on first use, and reuses it.
    """

    def __init__(self, model_path: Path | str, threads: int | None = None):
        """
        Args:
            model_path: Path to a ggml-*.bin weights file.
            threads: Number of CPU threads for inference (library default if None).
        """
        self.model_path = Path(model_path)
        self.threads = threads
        self._model: Any = None

    def _load_model(self) -> Any:
        """Lazy load the model on first use."""
        if self._model is None:
            try:
                from pywhispercpp.model import Model
            except ImportError as e:
                raise DependencyError(
                    "pywhispercpp",
                    "whisper.cpp bindings are not installed",
                    install_hint="pip install pywhispercpp",
                ) from e

            params: dict[str, Any] = {"print_progress": False, "print_realtime": False}
            if self.threads:
                params["n_threads"] = self.threads
            logger.debug("Loading whisper.cpp model %s", self.model_path)
            try:
                self._model = Model(str(self.model_path), **params)
            except Exception as e:
                raise RecognitionError(str(e)) from e
        return self._model

    def transcribe(
        self,
        audio: np.ndarray,
        language: str = "auto",
        cancel: CancellationToken | None = None,
    ) -> Iterator[Segment]:
        """Yield recognized segments as whisper.cpp produces them.

        Stops yielding once ``cancel`` is signalled. The native decode is not
        interrupted; it finishes on its daemon thread and its output is
        discarded.

        Raises:
            RecognitionError: If whisper.cpp fails.
        """
        cancel = cancel or NEVER_CANCELLED
        model = self._load_model()
        results: queue.Queue = queue.Queue()

        def on_segment(raw: Any) -> None:
            results.put(
                Segment(
                    start=raw.t0 / _TICKS_PER_SECOND,
                    end=raw.t1 / _TICKS_PER_SECOND,
                    text=raw.text,
                )
            )

        def run() -> None:
            try:
                model.transcribe(
                    audio,
                    language=language,
                    new_segment_callback=on_segment,
                )
            except Exception as e:
                results.put(_Failure(e))
            finally:
                results.put(_DONE)

        worker = threading.Thread(target=run, name="whisper-cpp", daemon=True)
        worker.start()

        while not cancel.cancelled:
            try:
                item = results.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            if item is _DONE:
                return
            if isinstance(item, _Failure):
                raise RecognitionError(str(item.error)) from item.error
            yield item

        logger.debug("Recognition cancelled; abandoning whisper.cpp worker")
