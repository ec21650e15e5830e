"""
Alerting: temporal confirmation of detections and exclusive alert playback.
"""

from .confirmer import TemporalConfirmer
from .dispatcher import AlertDispatcher, DEFAULT_ALERTS
from .sinks import AlertSink, CommandAlertSink, LoggingAlertSink, create_alert_sink

__all__ = [
    "TemporalConfirmer",
    "AlertDispatcher",
    "DEFAULT_ALERTS",
    "AlertSink",
    "CommandAlertSink",
    "LoggingAlertSink",
    "create_alert_sink",
]
