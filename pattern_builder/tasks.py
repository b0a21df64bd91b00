# -*- coding: utf-8 -*-
"""Cooperative cancellation for background scans and validation passes.

Long-running loops call ``token.raise_if_cancelled()`` at their boundaries
(per filename, per rule) so superseded work stops promptly.
"""

from __future__ import annotations

import threading
from typing import Optional


class OperationCancelled(Exception):
    """Raised inside a loop whose cancellation token has been triggered."""


class CancellationToken:
    """Thread-safe one-way cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """Raise ``OperationCancelled`` if *token* is set; ``None`` never cancels."""
    if token is not None:
        token.raise_if_cancelled()
