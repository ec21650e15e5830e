"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

# Class name -> alert sound file.
DEFAULT_ALERTS: Dict[str, str] = {
    "texting": "texting.wav",
    "talking on a phone": "talkingonaphone.wav",
    "drinking": "drinking.wav",
    "eating": "eating.wav",
    "smoking": "smoking.wav",
}


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [640, 480])
    fps: int = 30
    rotate: int = 0
    flip_horizontal: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
        }


@dataclass
class ModelConfig:
    """Model artifact and input normalization."""
    path: str = ""
    labels_path: str = ""
    num_threads: int = 4
    input_mean: float = 0.0
    input_std: float = 255.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            path=d.get("path", ""),
            labels_path=d.get("labels_path", ""),
            num_threads=d.get("num_threads", 4),
            input_mean=float(d.get("input_mean", 0.0)),
            input_std=float(d.get("input_std", 255.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "labels_path": self.labels_path,
            "num_threads": self.num_threads,
            "input_mean": self.input_mean,
            "input_std": self.input_std,
        }


@dataclass
class DetectionConfig:
    """Decoder and NMS thresholds."""
    confidence_threshold: float = 0.3
    iou_threshold: float = 0.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            confidence_threshold=float(d.get("confidence_threshold", 0.3)),
            iou_threshold=float(d.get("iou_threshold", 0.5)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence_threshold": self.confidence_threshold,
            "iou_threshold": self.iou_threshold,
        }


@dataclass
class ConfirmationConfig:
    """Debounce settings for the temporal confirmer."""
    detection_threshold: int = 8
    time_window_ms: int = 2000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ConfirmationConfig":
        return cls(
            detection_threshold=d.get("detection_threshold", 8),
            time_window_ms=d.get("time_window_ms", 2000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detection_threshold": self.detection_threshold,
            "time_window_ms": self.time_window_ms,
        }


@dataclass
class AlertConfig:
    """
    Alert playback configuration.

    Attributes:
        backend: "command" plays sound files with player_command, "log" only logs.
        player_command: Command prefix; the sound file path is appended.
        sounds_dir: Directory holding the sound files.
        sounds: Class name -> sound file name.
    """
    backend: str = "command"
    player_command: List[str] = field(default_factory=lambda: ["aplay", "-q"])
    sounds_dir: str = "assets/sounds"
    sounds: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALERTS))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AlertConfig":
        return cls(
            backend=d.get("backend", "command"),
            player_command=list(d.get("player_command", ["aplay", "-q"])),
            sounds_dir=d.get("sounds_dir", "assets/sounds"),
            sounds=dict(d.get("sounds") or DEFAULT_ALERTS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "player_command": self.player_command,
            "sounds_dir": self.sounds_dir,
            "sounds": self.sounds,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    confirmation: ConfirmationConfig = field(default_factory=ConfirmationConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    stats_log_interval: float = 60.0
    log_path: str = "logs/distraction_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        pipeline = d.get("pipeline") or {}
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            model=ModelConfig.from_dict(d.get("model") or {}),
            detection=DetectionConfig.from_dict(d.get("detection") or {}),
            confirmation=ConfirmationConfig.from_dict(d.get("confirmation") or {}),
            alerts=AlertConfig.from_dict(d.get("alerts") or {}),
            stats_log_interval=float(pipeline.get("stats_log_interval", 60.0)),
            log_path=d.get("log_path", "logs/distraction_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "camera": self.camera.to_dict(),
            "model": self.model.to_dict(),
            "detection": self.detection.to_dict(),
            "confirmation": self.confirmation.to_dict(),
            "alerts": self.alerts.to_dict(),
            "pipeline": {"stats_log_interval": self.stats_log_interval},
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
