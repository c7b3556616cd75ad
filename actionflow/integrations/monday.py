"""
Monday.com Client

Async client for the Monday.com GraphQL API (v2): connection test, board
discovery, column/user lookup and item creation.
"""

import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from .errors import MondayError
from .graphql import DEFAULT_TIMEOUT, GraphQLClient

logger = logging.getLogger("actionflow.integrations.monday")

MONDAY_API_URL = "https://api.monday.com/v2"

ME_QUERY = "query { me { id name email } }"

BOARDS_QUERY = "query { boards { id name description board_kind state } }"

BOARD_COLUMNS_QUERY = """
query ($boardId: ID!) {
  boards(ids: [$boardId]) {
    columns { id title type settings_str }
  }
}
"""

BOARD_USERS_QUERY = """
query ($boardId: ID!) {
  boards(ids: [$boardId]) {
    subscribers { id name email }
  }
}
"""

CREATE_ITEM_MUTATION = """
mutation ($boardId: ID!, $itemName: String!, $columnValues: JSON) {
  create_item (board_id: $boardId, item_name: $itemName, column_values: $columnValues) {
    id
    name
    board { id name }
  }
}
"""


class _MondayModel(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)


class MondayUser(_MondayModel):
    id: str
    name: str = ""
    email: Optional[str] = None


class MondayBoard(_MondayModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    board_kind: Optional[str] = None
    state: Optional[str] = None


class MondayColumn(_MondayModel):
    id: str
    title: str = ""
    type: str = ""
    settings_str: Optional[str] = None


class MondayItem(_MondayModel):
    id: str
    name: str = ""


def format_column_value(column_type: str, value: Any) -> Any:
    """Encode a value for a column of the given Monday.com type"""
    if column_type in ("text", "long-text", "long_text"):
        return {"text": str(value or "")}
    if column_type in ("people", "person"):
        ids = value if isinstance(value, (list, tuple)) else []
        return {"personsAndTeams": [{"id": int(i) if str(i).isdigit() else str(i), "kind": "person"} for i in ids]}
    if column_type == "date":
        if isinstance(value, (datetime, date)):
            return {"date": value.strftime("%Y-%m-%d")}
        return {"date": str(value)[:10] if value else None}
    if column_type in ("status", "priority"):
        return {"label": str(value or "")}
    if column_type == "numbers":
        try:
            return {"number": float(value)}
        except (TypeError, ValueError):
            return {"number": 0}
    return value


class MondayClient(GraphQLClient):
    """Async Monday.com GraphQL client bound to one API key"""

    error_class = MondayError
    provider_name = "Monday.com"

    format_column_value = staticmethod(format_column_value)

    def __init__(
        self,
        api_key: str,
        api_url: str = MONDAY_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            api_url,
            headers={"Authorization": api_key},
            timeout=timeout,
            transport=transport,
        )

    async def test_connection(self) -> MondayUser:
        """
        Verify the API key.

        Raises:
            MondayError: request failed or no user came back
        """
        data = await self.execute(ME_QUERY)
        if not data.get("me"):
            raise MondayError("Invalid API key - no user data returned")
        return MondayUser.model_validate(data["me"])

    async def get_boards(self) -> List[MondayBoard]:
        data = await self.execute(BOARDS_QUERY)
        return [MondayBoard.model_validate(b) for b in data.get("boards") or []]

    async def get_board_columns(self, board_id: str) -> List[MondayColumn]:
        data = await self.execute(BOARD_COLUMNS_QUERY, {"boardId": board_id})
        boards = data.get("boards") or []
        columns = boards[0].get("columns") if boards else None
        return [MondayColumn.model_validate(c) for c in columns or []]

    async def get_board_users(self, board_id: str) -> List[MondayUser]:
        data = await self.execute(BOARD_USERS_QUERY, {"boardId": board_id})
        boards = data.get("boards") or []
        users = boards[0].get("subscribers") if boards else None
        return [MondayUser.model_validate(u) for u in users or []]

    async def create_item(
        self,
        board_id: str,
        item_name: str,
        column_values: Optional[Dict[str, Any]] = None,
    ) -> MondayItem:
        """Create one item; column values are sent as a JSON-encoded string"""
        data = await self.execute(
            CREATE_ITEM_MUTATION,
            {
                "boardId": board_id,
                "itemName": item_name,
                "columnValues": json.dumps(column_values or {}),
            },
        )
        created = data.get("create_item")
        if not created:
            raise MondayError("Monday.com returned no item for create_item")
        return MondayItem.model_validate(created)
