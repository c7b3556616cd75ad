"""
Base Processor

Abstract base class for action item destinations.

Every processor:
- validates its configuration before any item is processed
- realizes a batch of items in one destination system
- never lets one item's failure abort the batch
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ..common.schemas import (
    ActionStatus,
    ConfigValidation,
    ParsedActionItem,
    ProcessorKind,
    ProcessorResult,
    ProcessorStatus,
)


@dataclass
class ProcessorConfig:
    """Context a processor runs in"""
    user_id: str
    project_id: Optional[str] = None
    team_id: Optional[str] = None
    transcription_id: Optional[str] = None
    integration_id: Optional[str] = None
    action_status: ActionStatus = ActionStatus.ACTIVE
    screenshot_ids: List[str] = field(default_factory=list)  # ordered; refs are 1-based
    channel: Optional[str] = None


def strip_prefixes(text: str, prefixes: List["re.Pattern[str]"]) -> str:
    """Apply each prefix pattern once, in order; keep the original if nothing is left"""
    cleaned = text.strip()
    for prefix in prefixes:
        cleaned = prefix.sub("", cleaned)
    cleaned = cleaned.strip()
    return cleaned or text


class BaseProcessor(ABC):
    """
    Abstract base class for processors.

    Each processor must implement:
    - validate_config: Check identity, credential and destination fields
    - get_status: Lightweight reachability/auth check
    - process_action_items: Realize a batch of items in the destination
    """

    kind: ProcessorKind
    name: str = "processor"

    def __init__(self, config: ProcessorConfig):
        """
        Initialize processor.

        Args:
            config: Run context (user, project, transcript, integration)
        """
        self.config = config

    @abstractmethod
    async def validate_config(self) -> ConfigValidation:
        """
        Check configuration before processing.

        Returns:
            ConfigValidation with every problem found
        """
        pass

    @abstractmethod
    async def get_status(self) -> ProcessorStatus:
        pass

    @abstractmethod
    async def process_action_items(self, items: List[ParsedActionItem]) -> ProcessorResult:
        """
        Realize items in the destination.

        Per-item failures are collected in ``ProcessorResult.errors``;
        implementations do not raise.
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(user_id={self.config.user_id!r}, integration_id={self.config.integration_id!r})"
