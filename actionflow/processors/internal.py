"""
Internal Processor

Creates one task per action item in the internal store, owned by the user
who ran the pipeline. A resolved assignee gets a separate assignment link;
an unresolved one leaves the task unassigned.
"""

import logging
import re
from typing import List, Optional

from ..common.schemas import (
    Action,
    ActionPriority,
    ConfigValidation,
    CreatedItem,
    ParsedActionItem,
    ProcessorKind,
    ProcessorResult,
    ProcessorStatus,
    User,
)
from ..common.store import BaseStore
from .base import BaseProcessor, ProcessorConfig, strip_prefixes

logger = logging.getLogger("actionflow.processors.internal")

# First keyword hit wins, top tier first
PRIORITY_KEYWORDS = [
    (("urgent", "asap"), ActionPriority.FIRST),
    (("high", "important"), ActionPriority.SECOND),
    (("medium", "normal"), ActionPriority.THIRD),
    (("low", "someday"), ActionPriority.SOMEDAY),
]

ACTION_PREFIXES = [
    re.compile(r"^action item:?\s*", re.IGNORECASE),
    re.compile(r"^todo:?\s*", re.IGNORECASE),
    re.compile(r"^task:?\s*", re.IGNORECASE),
    re.compile(r"^follow up:?\s*", re.IGNORECASE),
    re.compile(r"^next step:?\s*", re.IGNORECASE),
    re.compile(r"^@\w+\s*"),
]

UNASSIGNED = "unassigned"


def map_priority(priority: Optional[str]) -> ActionPriority:
    """Map a free-text priority to an internal priority tier"""
    if not priority:
        return ActionPriority.QUICK
    lowered = priority.lower()
    for keywords, tier in PRIORITY_KEYWORDS:
        if any(k in lowered for k in keywords):
            return tier
    return ActionPriority.QUICK


def clean_action_text(text: str) -> str:
    """Strip list/marker prefixes and capitalize the first letter"""
    cleaned = strip_prefixes(text, ACTION_PREFIXES)
    return cleaned[:1].upper() + cleaned[1:]


class InternalProcessor(BaseProcessor):
    """Writes action items to the internal task store"""

    kind = ProcessorKind.INTERNAL
    name = "Internal Actions"

    def __init__(self, config: ProcessorConfig, store: BaseStore):
        super().__init__(config)
        self._store = store

    async def validate_config(self) -> ConfigValidation:
        errors = []

        if not self.config.user_id:
            errors.append("User ID is required")
        elif not await self._store.get_user(self.config.user_id):
            errors.append("User not found")

        if self.config.project_id:
            project = await self._store.get_project(self.config.project_id)
            if not project or (project.created_by_id and project.created_by_id != self.config.user_id):
                errors.append("Project not found or user does not have access")

        return ConfigValidation(valid=not errors, errors=errors)

    async def get_status(self) -> ProcessorStatus:
        try:
            await self._store.get_user(self.config.user_id)
        except Exception as e:
            return ProcessorStatus(available=False, message=f"Store unavailable: {e}")
        return ProcessorStatus(available=True)

    async def find_user_by_name(self, name: str) -> Optional[User]:
        """Exact case-insensitive match, then the first user matching any name token"""
        user = await self._store.find_user_by_exact_name(name)
        if user:
            return user
        return await self._store.find_user_by_name_parts(name.split())

    async def process_action_items(self, items: List[ParsedActionItem]) -> ProcessorResult:
        result = ProcessorResult()

        for item in items:
            try:
                action = await self._create_action(item)
            except Exception as e:
                logger.warning("Failed to create action %r: %s", item.text, e)
                result.add_error(f'Failed to create action "{item.text}": {e}')
                continue

            result.created_items.append(CreatedItem(id=action.id, title=action.name))
            result.processed_count += 1

        return result

    async def _create_action(self, item: ParsedActionItem) -> Action:
        assignee: Optional[User] = None
        if item.assignee and item.assignee.strip().lower() != UNASSIGNED:
            assignee = await self.find_user_by_name(item.assignee)
            if assignee is None:
                logger.debug("No user matches assignee %r, leaving unassigned", item.assignee)

        action = await self._store.create_action(Action(
            name=clean_action_text(item.text),
            description=item.context,
            priority=map_priority(item.priority),
            status=self.config.action_status,
            created_by_id=self.config.user_id,
            project_id=self.config.project_id,
            transcription_session_id=self.config.transcription_id,
            due_date=item.due_date,
        ))

        if assignee:
            await self._store.create_action_assignee(action.id, assignee.id)

        for ref in item.screenshot_refs or []:
            if 1 <= ref <= len(self.config.screenshot_ids):
                await self._store.link_action_screenshot(action.id, self.config.screenshot_ids[ref - 1])

        return action
