"""
GraphQL Client Base

Shared POST-a-query transport for the GraphQL providers (Fireflies,
Monday.com). Each call opens a short-lived ``httpx.AsyncClient`` with a
finite timeout; tests inject an ``httpx.MockTransport``.
"""

import logging
from typing import Any, Dict, Optional, Type

import httpx

from .errors import IntegrationError

logger = logging.getLogger("actionflow.integrations.graphql")

DEFAULT_TIMEOUT = 15.0


class GraphQLClient:
    """POSTs ``{query, variables}`` and unwraps ``data``"""

    error_class: Type[IntegrationError] = IntegrationError
    provider_name = "GraphQL"

    def __init__(
        self,
        api_url: str,
        headers: Dict[str, str],
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self._headers = {"Content-Type": "application/json", **headers}
        self._timeout = timeout
        self._transport = transport

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run one GraphQL operation.

        Raises:
            IntegrationError subclass: transport failure, non-2xx status,
                or a GraphQL ``errors`` array
        """
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.api_url,
                    headers=self._headers,
                    json={"query": query, "variables": variables or {}},
                )
        except httpx.HTTPError as e:
            raise self.error_class(f"{self.provider_name} request failed: {e}") from e

        if response.status_code >= 400:
            logger.debug("%s error body: %s", self.provider_name, response.text[:500])
            raise self.error_class(
                f"{self.provider_name} API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise self.error_class(f"{self.provider_name} returned invalid JSON") from e

        errors = body.get("errors")
        if errors:
            message = errors[0].get("message", "Unknown error") if isinstance(errors[0], dict) else str(errors[0])
            raise self.error_class(f"{self.provider_name} GraphQL error: {message}")

        return body.get("data") or {}
