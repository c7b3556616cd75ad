"""
Slack Client

Minimal async Slack Web API client for posting digests and notifications.
Slack answers HTTP 200 with ``{"ok": false, "error": ...}`` on most
failures; both that and non-2xx statuses raise SlackError.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import SlackError

logger = logging.getLogger("actionflow.integrations.slack")

SLACK_API_URL = "https://slack.com/api"
DEFAULT_TIMEOUT = 15.0


class SlackClient:
    """Async Slack Web API client bound to one bot token"""

    def __init__(
        self,
        bot_token: str,
        api_url: str = SLACK_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token = bot_token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def _call(
        self,
        method: str,
        payload: Optional[Dict[str, Any]] = None,
        form: bool = False,
    ) -> Dict[str, Any]:
        """POST a Web API method; read methods such as conversations.list take form arguments"""
        headers = {"Authorization": f"Bearer {self._token}"}
        if form:
            fields = {
                key: str(value).lower() if isinstance(value, bool) else str(value)
                for key, value in (payload or {}).items()
            }
            body = {"data": fields}
        else:
            headers["Content-Type"] = "application/json; charset=utf-8"
            body = {"json": payload or {}}

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            ) as client:
                response = await client.post(f"{self._api_url}/{method}", headers=headers, **body)
        except httpx.HTTPError as e:
            raise SlackError(f"Slack {method} request failed: {e}") from e

        if response.status_code >= 400:
            raise SlackError(
                f"Slack {method} error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SlackError(f"Slack {method} returned invalid JSON") from e

        if not data.get("ok"):
            raise SlackError(data.get("error") or f"Slack {method} failed")
        return data

    async def auth_test(self) -> Dict[str, Any]:
        """Verify the bot token; returns team/user identity"""
        return await self._call("auth.test")

    async def post_message(
        self,
        channel: str,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
    ) -> str:
        """
        Post a message to a channel.

        Args:
            channel: Channel id or ``#name``
            text: Plain-text fallback, always sent
            blocks: Optional Block Kit blocks

        Returns:
            Message timestamp (Slack's message id)
        """
        payload: Dict[str, Any] = {"channel": channel, "text": text}
        if blocks:
            payload["blocks"] = blocks
        data = await self._call("chat.postMessage", payload)
        logger.info("Posted message to %s", channel)
        return data.get("ts", "")

    async def list_channels(self, limit: int = 200) -> List[Dict[str, Any]]:
        """Channels the bot can see, for picking a channel config"""
        data = await self._call(
            "conversations.list",
            {"limit": limit, "exclude_archived": True, "types": "public_channel,private_channel"},
            form=True,
        )
        return data.get("channels", [])
