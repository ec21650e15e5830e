"""
Pipeline module for the distraction monitor.

The pipeline orchestrates the full processing flow:
- Frame acquisition from observation sources (latest frame wins)
- Detection: inference, decoding and non-max suppression
- Temporal confirmation and exclusive alert dispatch
"""

from .engine import (
    FrameOutcome,
    PipelineConfig,
    PipelineEngine,
    PipelineStats,
    create_engine_from_config,
)
from .frame_slot import LatestFrameSlot

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "PipelineStats",
    "FrameOutcome",
    "create_engine_from_config",
    "LatestFrameSlot",
]
