"""
Transient violation alert.

activate() raises the alert for a fixed duration and clears it automatically.
It carries no detection state; it only drives UI/audio cues.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional


AlertListener = Callable[[bool], None]


class AlertSignal:
    """Fire-and-forget alert that auto-clears on the running event loop."""

    def __init__(self):
        self._active = False
        self._clear_handle: Optional[asyncio.TimerHandle] = None
        self._listeners: List[AlertListener] = []
        self.activation_count = 0

    @property
    def is_active(self) -> bool:
        return self._active

    def add_listener(self, listener: AlertListener) -> None:
        """Register a callable receiving True on activation and False on clear."""
        self._listeners.append(listener)

    def activate(self, duration_s: float) -> None:
        self.activation_count += 1
        logging.warning(f"ALERT: stop-line violation ({duration_s:.1f}s)")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to schedule the clear on; the cue is log-only
            self._notify(True)
            self._notify(False)
            return

        if self._clear_handle is not None:
            self._clear_handle.cancel()
        self._active = True
        self._notify(True)
        self._clear_handle = loop.call_later(duration_s, self.clear)

    def clear(self) -> None:
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None
        if self._active:
            self._active = False
            self._notify(False)

    def _notify(self, active: bool) -> None:
        for listener in self._listeners:
            try:
                listener(active)
            except Exception as e:
                logging.warning(f"Alert listener error: {e}")
