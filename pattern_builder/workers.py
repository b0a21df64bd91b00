# -*- coding: utf-8 -*-
"""Background directory analysis.

``AnalysisWorker`` lists and tokenizes one directory on a ``QThread``.
``AnalysisController`` owns the workers for an editing session: each request
gets a sequence number, starting a new request cancels the previous one, and
results carrying an older sequence number are discarded.
"""

from __future__ import annotations

import os
import logging
from typing import Optional

from PySide6.QtCore import QObject, QThread, Signal

from pattern_builder.extensions import IMAGE_EXTENSIONS
from pattern_builder.scanner import DEFAULT_SAMPLE_LIMIT, AnalysisFailure, list_image_files
from pattern_builder.tasks import CancellationToken, OperationCancelled
from pattern_builder.tokenizer import FilenameTokenizer
from pattern_builder.tokens import TokenAnalysis

logger = logging.getLogger(__name__)


class AnalysisWorker(QThread):
    """Lists and tokenizes a directory in a background thread."""

    finished_analysis = Signal(int, object)
    failed = Signal(int, object)
    cancelled = Signal(int)

    def __init__(
        self,
        seq: int,
        directory: str,
        cancel: CancellationToken,
        sample_limit: Optional[int] = DEFAULT_SAMPLE_LIMIT,
        extensions=IMAGE_EXTENSIONS,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.seq = seq
        self.directory = directory
        self._cancel = cancel
        self._limit = sample_limit
        self._extensions = extensions
        self._tokenizer = FilenameTokenizer()

    def run(self) -> None:
        try:
            names = list_image_files(self.directory, self._limit, self._extensions, self._cancel)
            analysis = self._tokenizer.analyze(names, self._cancel)
            self.finished_analysis.emit(self.seq, analysis)
        except OperationCancelled:
            self.cancelled.emit(self.seq)
        except AnalysisFailure as exc:
            self.failed.emit(self.seq, exc)
        except Exception as exc:
            self.failed.emit(self.seq, AnalysisFailure(self.directory, exc))


class AnalysisController(QObject):
    """Runs one analysis at a time and caches finished analyses per directory."""

    analysis_ready = Signal(str, object)
    analysis_failed = Signal(str, object)
    busy_changed = Signal(bool)

    def __init__(
        self,
        sample_limit: Optional[int] = DEFAULT_SAMPLE_LIMIT,
        extensions=IMAGE_EXTENSIONS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._limit = sample_limit
        self._extensions = extensions
        self._seq = 0
        self._directory = ""
        self._cancel: Optional[CancellationToken] = None
        self._cache: dict[str, TokenAnalysis] = {}
        self._busy = False
        # Kept alive until their thread has finished
        self._workers: list[AnalysisWorker] = []

    @property
    def current_seq(self) -> int:
        return self._seq

    def is_busy(self) -> bool:
        return self._busy

    def cached(self, directory: str) -> Optional[TokenAnalysis]:
        return self._cache.get(_normalize(directory))

    def clear_cache(self, directory: Optional[str] = None) -> None:
        if directory is None:
            self._cache.clear()
        else:
            self._cache.pop(_normalize(directory), None)

    def analyze(self, directory: str, force: bool = False) -> int:
        """Start analysing *directory* and return the request's sequence number.

        A cached analysis is re-emitted unless *force* is set. Any running
        request is cancelled and its result will be ignored.
        """
        key = _normalize(directory)
        self._seq += 1
        seq = self._seq
        self.cancel()

        if not force and key in self._cache:
            logger.debug(f"Reusing cached analysis for {key}")
            self.analysis_ready.emit(key, self._cache[key])
            return seq

        cancel = CancellationToken()
        self._cancel = cancel
        self._directory = key
        worker = AnalysisWorker(seq, key, cancel, self._limit, self._extensions)
        worker.finished_analysis.connect(self._on_worker_finished)
        worker.failed.connect(self._on_worker_failed)
        worker.cancelled.connect(self._on_worker_cancelled)
        worker.finished.connect(self._on_thread_finished)
        self._workers.append(worker)
        self._set_busy(True)
        logger.info(f"Analysing {key} (request {seq})")
        worker.start()
        return seq

    def cancel(self) -> None:
        """Cancel the running request, if any."""
        if self._cancel is not None:
            self._cancel.cancel()
            self._cancel = None
        self._set_busy(False)

    def wait(self, timeout_ms: int = 5000) -> bool:
        """Block until every worker thread has stopped. Returns False on timeout."""
        return all(w.wait(timeout_ms) for w in list(self._workers))

    def shutdown(self) -> None:
        self.cancel()
        self.wait()

    # -- Worker callbacks ----------------------------------------------------

    def _is_current(self, seq: int) -> bool:
        if seq != self._seq:
            logger.warning(f"Discarding stale analysis result (request {seq}, current {self._seq})")
            return False
        return True

    def _on_worker_finished(self, seq: int, analysis: TokenAnalysis) -> None:
        if not self._is_current(seq):
            return
        self._cancel = None
        self._cache[self._directory] = analysis
        self._set_busy(False)
        self.analysis_ready.emit(self._directory, analysis)

    def _on_worker_failed(self, seq: int, failure: AnalysisFailure) -> None:
        if not self._is_current(seq):
            return
        self._cancel = None
        self._set_busy(False)
        logger.warning(str(failure))
        self.analysis_failed.emit(self._directory, failure)

    def _on_worker_cancelled(self, seq: int) -> None:
        logger.debug(f"Analysis request {seq} cancelled")

    def _on_thread_finished(self) -> None:
        self._workers = [w for w in self._workers if not w.isFinished()]

    def _set_busy(self, busy: bool) -> None:
        if busy != self._busy:
            self._busy = busy
            self.busy_changed.emit(busy)


def _normalize(directory: str) -> str:
    return os.path.normpath(os.path.abspath(str(directory)))
