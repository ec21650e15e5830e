"""
Alert sinks: where a started alert is actually played.

A sink must call on_complete exactly once per successful play() call.
If play() raises, on_complete must not be called.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from typing import Callable, List, Optional, Protocol, Sequence


class AlertSink(Protocol):
    def play(self, alert_id: str, on_complete: Callable[[], None]) -> None:
        ...

    def close(self) -> None:
        ...


class LoggingAlertSink:
    """Logs the alert and completes immediately. Useful headless."""

    def play(self, alert_id: str, on_complete: Callable[[], None]) -> None:
        logging.warning(f"ALERT: {alert_id}")
        on_complete()

    def close(self) -> None:
        pass


class CommandAlertSink:
    """
    Plays sound files with an external player (e.g. `aplay -q`).

    Playback runs on a background thread; on_complete fires from that thread
    when the player exits, whatever its exit status.
    """

    def __init__(self, command: Sequence[str], sounds_dir: str):
        if not command:
            raise ValueError("player command must not be empty")
        self.command: List[str] = list(command)
        self.sounds_dir = sounds_dir
        self._thread: Optional[threading.Thread] = None

    def sound_path(self, alert_id: str) -> str:
        return os.path.join(self.sounds_dir, alert_id)

    def play(self, alert_id: str, on_complete: Callable[[], None]) -> None:
        path = self.sound_path(alert_id)
        if not os.path.exists(path):
            raise FileNotFoundError(f"Alert sound not found: {path}")

        self._thread = threading.Thread(
            target=self._run,
            args=(path, on_complete),
            name=f"alert-{alert_id}",
            daemon=True,
        )
        self._thread.start()

    def _run(self, path: str, on_complete: Callable[[], None]) -> None:
        try:
            result = subprocess.run(
                self.command + [path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                check=False,
            )
            if result.returncode != 0:
                stderr = result.stderr.decode(errors="replace").strip()
                logging.warning(f"Player exited with {result.returncode} for {path}: {stderr}")
        except OSError as e:
            logging.error(f"Failed to run player {self.command[0]}: {e}")
        finally:
            on_complete()

    def close(self, timeout: float = 5.0) -> None:
        """Wait for a playing alert to finish."""
        thread = self._thread
        if thread is not None and thread.is_alive():
            thread.join(timeout)


def create_alert_sink(backend: str, player_command: Sequence[str], sounds_dir: str) -> AlertSink:
    """Factory function for the configured alert backend."""
    if backend == "log":
        return LoggingAlertSink()
    if backend == "command":
        return CommandAlertSink(player_command, sounds_dir)
    raise ValueError(f"Unknown alert backend: {backend}")
