"""
Monday Processor

Creates one Monday.com item per action item on a configured board.

Only explicitly mapped columns are written, and only when the board column
has the expected type:
- assignee    -> people/person column, set only when a board user matches
- due_date    -> date column
- priority    -> status/priority column (urgent/high -> High, ...)
- description -> long-text column, filled with the item context
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional

from ..common.schemas import (
    BoardConfig,
    ConfigValidation,
    CreatedItem,
    CredentialType,
    ExternalLink,
    ParsedActionItem,
    ProcessorKind,
    ProcessorResult,
    ProcessorStatus,
)
from ..common.store import BaseStore
from ..integrations.monday import MondayClient, MondayColumn, MondayUser, format_column_value
from .base import BaseProcessor, ProcessorConfig, strip_prefixes

logger = logging.getLogger("actionflow.processors.monday")

PROVIDER = "monday"

PRIORITY_LABELS = {
    "urgent": "High",
    "high": "High",
    "medium": "Medium",
    "low": "Low",
}

PERSON_TYPES = ("people", "person")
PRIORITY_TYPES = ("status", "priority")
LONG_TEXT_TYPES = ("long-text", "long_text")

ITEM_PREFIXES = [
    re.compile(r"^action item:?\s*", re.IGNORECASE),
    re.compile(r"^todo:?\s*", re.IGNORECASE),
    re.compile(r"^task:?\s*", re.IGNORECASE),
    re.compile(r"^action:?\s*", re.IGNORECASE),
    re.compile(r"^item:?\s*", re.IGNORECASE),
    re.compile(r"^-\s*"),
    re.compile(r"^\*\s*"),
    re.compile(r"^\d+\.\s*"),
]


def map_priority_label(priority: str) -> str:
    return PRIORITY_LABELS.get(priority.strip().lower(), priority)


def clean_item_name(text: str) -> str:
    return strip_prefixes(text, ITEM_PREFIXES)


class MondayProcessor(BaseProcessor):
    """External-board destination backed by a Monday.com API key"""

    kind = ProcessorKind.EXTERNAL_BOARD
    name = "Monday.com Action Processor"

    def __init__(
        self,
        config: ProcessorConfig,
        board: BoardConfig,
        store: BaseStore,
        monday_client_factory: Callable[[str], MondayClient] = MondayClient,
    ):
        super().__init__(config)
        self.board = board
        self._store = store
        self._monday_client_factory = monday_client_factory
        self._client: Optional[MondayClient] = None

    async def _get_client(self) -> Optional[MondayClient]:
        if self._client:
            return self._client
        if not self.config.integration_id:
            return None
        integration = await self._store.get_integration(self.config.integration_id)
        if not integration:
            return None
        api_key = integration.credential(CredentialType.API_KEY)
        if not api_key:
            return None
        self._client = self._monday_client_factory(api_key)
        return self._client

    async def validate_config(self) -> ConfigValidation:
        if not self.board.board_id:
            return ConfigValidation(False, ["Board ID is required for Monday.com integration"])

        client = await self._get_client()
        if client is None:
            return ConfigValidation(False, ["Monday.com integration or API key not found"])

        try:
            await client.test_connection()
        except Exception as e:
            return ConfigValidation(False, [f"Monday.com connection failed: {e}"])

        try:
            boards = await client.get_boards()
        except Exception as e:
            return ConfigValidation(False, [f"Monday.com configuration validation failed: {e}"])

        if not any(b.id == self.board.board_id for b in boards):
            return ConfigValidation(
                False, [f"Board with ID {self.board.board_id} not found or not accessible"]
            )
        return ConfigValidation(True)

    async def get_status(self) -> ProcessorStatus:
        client = await self._get_client()
        if client is None:
            return ProcessorStatus(available=False, message="Monday.com service not initialized")
        try:
            await client.test_connection()
        except Exception as e:
            return ProcessorStatus(available=False, message=f"Connection failed: {e}")
        return ProcessorStatus(available=True, message="Connected to Monday.com")

    def item_url(self, item_id: str) -> str:
        host = f"{self.board.workspace}.monday.com" if self.board.workspace else "monday.com"
        return f"https://{host}/boards/{self.board.board_id}/pulses/{item_id}"

    def _column(self, columns: Dict[str, MondayColumn], column_id: Optional[str], types) -> Optional[str]:
        if not column_id:
            return None
        column = columns.get(column_id)
        if column and column.type in types:
            return column.type
        return None

    def build_column_values(
        self,
        item: ParsedActionItem,
        columns: Dict[str, MondayColumn],
        users: List[MondayUser],
    ) -> Dict[str, Any]:
        """Encode the mapped fields of one item for create_item"""
        mapping = self.board.columns
        values: Dict[str, Any] = {}

        if item.assignee and self._column(columns, mapping.assignee, PERSON_TYPES):
            wanted = item.assignee.strip().lower()
            match = next((u for u in users if u.name.lower() == wanted), None)
            if match:
                values[mapping.assignee] = format_column_value("people", [match.id])

        if item.due_date and self._column(columns, mapping.due_date, ("date",)):
            values[mapping.due_date] = format_column_value("date", item.due_date)

        if item.priority and self._column(columns, mapping.priority, PRIORITY_TYPES):
            values[mapping.priority] = format_column_value("status", map_priority_label(item.priority))

        if item.context and self._column(columns, mapping.description, LONG_TEXT_TYPES):
            values[mapping.description] = format_column_value("long-text", item.context)

        return values

    async def process_action_items(self, items: List[ParsedActionItem]) -> ProcessorResult:
        result = ProcessorResult()

        client = await self._get_client()
        if client is None:
            result.add_error("Monday.com service not initialized")
            return result

        try:
            columns = {c.id: c for c in await client.get_board_columns(self.board.board_id)}
        except Exception as e:
            result.add_error(f"Failed to fetch board columns: {e}")
            return result

        users: List[MondayUser] = []
        if self.board.columns.assignee and any(i.assignee for i in items):
            try:
                users = await client.get_board_users(self.board.board_id)
            except Exception as e:
                logger.warning("Could not load board users, assignees left empty: %s", e)

        for item in items:
            try:
                created = await client.create_item(
                    self.board.board_id,
                    clean_item_name(item.text),
                    self.build_column_values(item, columns, users),
                )
            except Exception as e:
                logger.warning("Monday.com item creation failed for %r: %s", item.text, e)
                result.add_error(f'Failed to create Monday.com item for "{item.text}": {e}')
                continue

            url = self.item_url(created.id)
            result.created_items.append(CreatedItem(
                id=created.id,
                external_id=created.id,
                title=created.name,
                url=url,
            ))
            result.processed_count += 1

            try:
                await self._store.upsert_external_link(ExternalLink(
                    provider=PROVIDER,
                    external_id=created.id,
                    integration_id=self.config.integration_id,
                    transcription_session_id=self.config.transcription_id,
                    title=created.name,
                    url=url,
                ))
            except Exception as e:
                result.add_error(f"Created item {created.id} but failed to record link: {e}")

        return result
