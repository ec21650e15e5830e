"""
Alert dispatch with at-most-one active alert.
"""

from __future__ import annotations

import functools
import itertools
import logging
import threading
from typing import Dict, Mapping, Optional, Sequence

from models.config import DEFAULT_ALERTS
from models.detection import BoundingBox
from .sinks import AlertSink


class AlertDispatcher:
    """
    Starts an alert for confirmed detections unless one is already playing.

    The active flag is the only state shared with the sink's completion
    callback, which may run on another thread. Check-and-set happens under a
    lock, and each playback gets a token so a late or repeated completion
    cannot clear a newer alert.
    """

    def __init__(self, sink: AlertSink, alert_map: Optional[Mapping[str, str]] = None):
        self.sink = sink
        self.alert_map: Dict[str, str] = dict(DEFAULT_ALERTS if alert_map is None else alert_map)
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._active_token: Optional[int] = None
        self._active_alert: Optional[str] = None
        self._idle = threading.Event()
        self._idle.set()

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active_token is not None

    @property
    def active_alert(self) -> Optional[str]:
        with self._lock:
            return self._active_alert

    def dispatch(self, boxes: Sequence[BoundingBox]) -> Optional[str]:
        """
        Try to start one alert for a frame's confirmed boxes.

        Boxes are visited in order; unmapped class names are skipped. At most
        one alert is started per call, and none if one is already active.

        Returns:
            The alert id that was started, or None.
        """
        for box in boxes:
            alert_id = self.alert_map.get(box.class_name)
            if alert_id is None:
                logging.debug(f"No alert mapped for class '{box.class_name}'")
                continue

            token = self._acquire(alert_id)
            if token is None:
                return None

            try:
                self.sink.play(alert_id, functools.partial(self._on_complete, token))
            except Exception as e:
                logging.error(f"Alert playback failed for '{alert_id}': {e}")
                self._release(token)
                continue

            logging.info(f"Alert started: {alert_id} (class '{box.class_name}', confidence {box.confidence:.2f})")
            return alert_id

        return None

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no alert is active. Returns False on timeout."""
        return self._idle.wait(timeout)

    def _acquire(self, alert_id: str) -> Optional[int]:
        with self._lock:
            if self._active_token is not None:
                return None
            token = next(self._tokens)
            self._active_token = token
            self._active_alert = alert_id
            self._idle.clear()
            return token

    def _release(self, token: int) -> bool:
        with self._lock:
            if self._active_token != token:
                return False
            self._active_token = None
            self._active_alert = None
            self._idle.set()
            return True

    def _on_complete(self, token: int) -> None:
        if not self._release(token):
            logging.debug(f"Ignoring stale alert completion (token {token})")
