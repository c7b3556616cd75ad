"""
Action Item Schemas

Core principle: an action item is only ever created from a non-empty,
imperative text. Everything else (assignee, due date, priority) is a hint
that each destination maps onto its own model.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Enums
# ============================================================================

class ActionPriority(str, Enum):
    """Priority tiers of the internal task store"""
    FIRST = "1st Priority"
    SECOND = "2nd Priority"
    THIRD = "3rd Priority"
    SOMEDAY = "Someday Maybe"
    QUICK = "Quick"


class ActionStatus(str, Enum):
    """Internal task lifecycle"""
    ACTIVE = "ACTIVE"
    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"
    DELETED = "DELETED"


class ProcessorKind(str, Enum):
    """Closed set of destination variants"""
    INTERNAL = "internal"
    CHAT_NOTIFICATION = "chat_notification"
    EXTERNAL_BOARD = "external_board"


# ============================================================================
# Extraction
# ============================================================================

class ParsedActionItem(BaseModel):
    """Action item produced by extraction and consumed by processors"""
    text: str = Field(..., description="Imperative, cleaned action description")
    assignee: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[str] = None
    context: Optional[str] = None
    screenshot_refs: Optional[List[int]] = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("action text must not be empty")
        return value


class ExtractedAction(BaseModel):
    """One action as returned by the extraction model"""
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1)
    assignee_name: Optional[str] = Field(default=None, alias="assigneeName")
    due_date_text: Optional[str] = Field(default=None, alias="dueDateText")
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    is_first_person: Optional[bool] = Field(default=None, alias="isFirstPerson")
    screenshot_refs: Optional[List[int]] = Field(default=None, alias="screenshotRefs")


class ActionExtractionPayload(BaseModel):
    """Wire schema of the extraction model's JSON object"""
    actions: List[ExtractedAction]


# ============================================================================
# Processor results
# ============================================================================

@dataclass
class CreatedItem:
    """Handle to something a processor created in its destination"""
    id: str
    title: str
    external_id: Optional[str] = None
    url: Optional[str] = None


@dataclass
class ProcessorResult:
    """Outcome of one processor over one batch"""
    success: bool = True
    processed_count: int = 0
    errors: List[str] = field(default_factory=list)
    created_items: List[CreatedItem] = field(default_factory=list)

    @property
    def is_partial_success(self) -> bool:
        return bool(self.created_items) and bool(self.errors)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.success = False


@dataclass
class ConfigValidation:
    """Result of a processor's configuration check"""
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class ProcessorStatus:
    """Lightweight reachability/auth check result"""
    available: bool
    message: Optional[str] = None
