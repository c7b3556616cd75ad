"""
Actionflow Schemas

Action items, processor results and the store entities they touch.
"""

from .action_item import (
    ActionExtractionPayload,
    ActionPriority,
    ActionStatus,
    ConfigValidation,
    CreatedItem,
    ExtractedAction,
    ParsedActionItem,
    ProcessorKind,
    ProcessorResult,
    ProcessorStatus,
)
from .entities import (
    Action,
    ActionAssignee,
    ActionScreenshot,
    BoardConfig,
    ChannelConfig,
    ColumnMapping,
    CredentialType,
    ExternalLink,
    Integration,
    IntegrationStatus,
    Project,
    Screenshot,
    Team,
    TranscriptSession,
    User,
    generate_id,
    utcnow,
)
from .templates import (
    DIGEST_TITLE,
    priority_glyph,
    render_action_digest,
    render_notification,
    render_project_context,
    render_sync_summary,
    section_blocks,
)

__all__ = [
    "ActionExtractionPayload",
    "ActionPriority",
    "ActionStatus",
    "ConfigValidation",
    "CreatedItem",
    "ExtractedAction",
    "ParsedActionItem",
    "ProcessorKind",
    "ProcessorResult",
    "ProcessorStatus",
    "Action",
    "ActionAssignee",
    "ActionScreenshot",
    "BoardConfig",
    "ChannelConfig",
    "ColumnMapping",
    "CredentialType",
    "ExternalLink",
    "Integration",
    "IntegrationStatus",
    "Project",
    "Screenshot",
    "Team",
    "TranscriptSession",
    "User",
    "generate_id",
    "utcnow",
    "DIGEST_TITLE",
    "priority_glyph",
    "render_action_digest",
    "render_notification",
    "render_project_context",
    "render_sync_summary",
    "section_blocks",
]
