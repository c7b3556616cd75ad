"""
Actionflow Sync

Per-transcript pipeline and bulk sync orchestration.
"""

from .orchestrator import SyncOrchestrator, SyncResult
from .pipeline import (
    FanOutResult,
    ProcessorOutcome,
    TranscriptPipeline,
    TranscriptProcessingResult,
    fan_out,
)

__all__ = [
    "SyncOrchestrator",
    "SyncResult",
    "FanOutResult",
    "ProcessorOutcome",
    "TranscriptPipeline",
    "TranscriptProcessingResult",
    "fan_out",
]
