# -*- coding: utf-8 -*-
"""Debounced live validation of the configuration being edited.

The model is owned by the interactive (Qt) thread. Every mutation bumps a
revision number and restarts a single-shot debounce timer; when the timer
elapses the latest snapshot is validated once, on a one-thread executor, and
the result is queued back to the owning thread. Results computed for an older
revision are dropped, so only the final state of a burst of edits is published.
"""

from __future__ import annotations

import logging
import concurrent.futures
from enum import Enum
from typing import Iterable, Optional

from PySide6.QtCore import QObject, QTimer, Qt, Signal

from pattern_builder.config import DEFAULT_DEBOUNCE_MS
from pattern_builder.models import PatternConfiguration
from pattern_builder.tasks import CancellationToken, OperationCancelled
from pattern_builder.validator import (
    PatternValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
    is_blocking,
)

logger = logging.getLogger(__name__)


class ValidationState(Enum):
    IDLE = "idle"
    PENDING_REVALIDATE = "pending_revalidate"
    VALIDATING = "validating"


def _missing_config_result() -> ValidationResult:
    return ValidationResult.from_problems([
        ValidationError(
            ValidationErrorType.NO_GROUP_ID_SELECTED,
            "Pattern configuration cannot be None",
        )
    ])


class ValidationModel(QObject):
    """Holds the current configuration and samples and revalidates on change."""

    validation_changed = Signal(object)
    """Emitted with the new ``ValidationResult`` for the latest revision."""
    validation_failed = Signal(str)
    state_changed = Signal(object)

    # (revision, ValidationResult | Exception | None), emitted from the executor thread
    _worker_done = Signal(int, object)

    def __init__(
        self,
        validator: Optional[PatternValidator] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        use_worker: bool = True,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._validator = validator or PatternValidator()
        self._config: Optional[PatternConfiguration] = None
        self._samples: list[str] = []
        self._result: Optional[ValidationResult] = None
        self._state = ValidationState.IDLE

        self._revision = 0
        self._in_flight = False
        self._rerun_after = False
        self._cancel: Optional[CancellationToken] = None
        self._closed = False

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(debounce_ms)
        self._timer.timeout.connect(self._run_validation)

        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        if use_worker:
            self._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="pattern-validation"
            )
        self._worker_done.connect(self._on_worker_done, Qt.QueuedConnection)

    # -- Read side -------------------------------------------------------------

    @property
    def result(self) -> Optional[ValidationResult]:
        return self._result

    @property
    def state(self) -> ValidationState:
        return self._state

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def debounce_interval(self) -> int:
        return self._timer.interval()

    @property
    def configuration(self) -> Optional[PatternConfiguration]:
        return self._config

    @property
    def sample_filenames(self) -> list[str]:
        return list(self._samples)

    def can_generate_patterns(self) -> bool:
        return self._result is not None and self._result.valid

    def should_show_success_banner(self) -> bool:
        """Valid and settled: no revalidation pending or running."""
        return self.can_generate_patterns() and self._state == ValidationState.IDLE

    def is_blocked(self) -> bool:
        return is_blocking(self._result)

    # -- Mutations ---------------------------------------------------------------

    def update_configuration(self, config: Optional[PatternConfiguration]) -> None:
        self._config = config.copy() if config is not None else None
        self._schedule()

    def update_sample_filenames(self, filenames: Iterable[str]) -> None:
        self._samples = list(filenames)
        self._schedule()

    def request_validation_refresh(self) -> None:
        self._schedule()

    def set_debounce_interval(self, ms: int) -> None:
        self._timer.setInterval(ms)

    def shutdown(self) -> None:
        """Stop the timer, cancel running work and release the executor."""
        self._closed = True
        self._timer.stop()
        if self._cancel is not None:
            self._cancel.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # -- Internals ---------------------------------------------------------------

    def _set_state(self, state: ValidationState) -> None:
        if state != self._state:
            logger.debug(f"Live validation: {self._state.name} -> {state.name}")
            self._state = state
            self.state_changed.emit(state)

    def _schedule(self) -> None:
        self._revision += 1
        if self._in_flight and self._cancel is not None:
            # The running pass is stale now; stop it early
            self._cancel.cancel()
        self._set_state(ValidationState.PENDING_REVALIDATE)
        self._timer.start()

    def _run_validation(self) -> None:
        if self._in_flight:
            self._rerun_after = True
            return

        revision = self._revision
        config = self._config.copy() if self._config is not None else None
        samples = list(self._samples)
        self._set_state(ValidationState.VALIDATING)

        if config is None:
            self._publish(revision, _missing_config_result())
            return

        cancel = CancellationToken()
        if self._executor is None:
            self._publish(revision, self._validate(config, samples, cancel))
            return

        self._in_flight = True
        self._cancel = cancel
        self._executor.submit(self._validate_in_worker, revision, config, samples, cancel)

    def _validate(
        self,
        config: PatternConfiguration,
        samples: list[str],
        cancel: CancellationToken,
    ) -> ValidationResult | Exception | None:
        try:
            return self._validator.validate(config, samples or None, cancel)
        except OperationCancelled:
            return None
        except Exception as exc:
            logger.error(f"Live validation failed: {exc}")
            return exc

    def _validate_in_worker(
        self,
        revision: int,
        config: PatternConfiguration,
        samples: list[str],
        cancel: CancellationToken,
    ) -> None:
        self._worker_done.emit(revision, self._validate(config, samples, cancel))

    def _on_worker_done(self, revision: int, payload) -> None:
        self._in_flight = False
        self._cancel = None
        if self._closed:
            return

        if revision != self._revision or payload is None:
            logger.debug(f"Discarding validation result for stale revision {revision}")
            if self._rerun_after or not self._timer.isActive():
                self._rerun_after = False
                self._run_validation()
            return

        self._publish(revision, payload)

    def _publish(self, revision: int, payload) -> None:
        if payload is None:
            # Cancelled inline; a newer revision is already scheduled
            return
        self._set_state(ValidationState.IDLE)
        if isinstance(payload, Exception):
            self.validation_failed.emit(str(payload))
            return
        self._result = payload
        logger.debug(f"Published validation for revision {revision}: {payload.summary()}")
        self.validation_changed.emit(payload)
