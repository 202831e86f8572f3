"""
monday.com GraphQL client — just enough to create board items.

Every call returns a CreateItemResult; transport errors, timeouts and
error payloads are reported as failures, never raised, so one bad call
can't abort a dispatcher run.
"""

import json
import logging
from typing import Any, Optional

import httpx

from .config import ApiCredentials
from .models import CreateItemResult

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.monday.com/v2"

CREATE_ITEM_MUTATION = """
mutation ($board: ID!, $name: String!, $cols: JSON!) {
  create_item (board_id: $board, item_name: $name, column_values: $cols) {
    id
  }
}
""".strip()


class MondayClient:
    """Thin synchronous GraphQL client with a request timeout."""

    def __init__(
        self,
        credentials: ApiCredentials,
        api_url: str = DEFAULT_API_URL,
        api_version: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not credentials.api_token:
            raise ValueError("monday.com API token is required")
        headers = {
            "Authorization": credentials.api_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if api_version:
            headers["API-Version"] = api_version

        self.api_url = api_url
        self._client = httpx.Client(headers=headers, timeout=timeout, transport=transport)
        logger.debug(f"monday.com client initialized | url={api_url} | timeout={timeout}s")

    def graphql(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """POST a GraphQL document and return the decoded response body.

        Raises:
            httpx.HTTPError: on transport failures and timeouts.
            ValueError: if the body is not a JSON object.
        """
        resp = self._client.post(self.api_url, json={"query": query, "variables": variables or {}})
        body = resp.json()
        if not isinstance(body, dict):
            raise ValueError(f"Unexpected response body (HTTP {resp.status_code}): {body!r}")
        return body

    def create_item(
        self,
        board_id: str,
        item_name: str,
        column_values: dict[str, Any],
    ) -> CreateItemResult:
        """Create one item on a board."""
        variables = {
            "board": str(board_id),
            "name": item_name,
            "cols": json.dumps(column_values),
        }
        try:
            body = self.graphql(CREATE_ITEM_MUTATION, variables)
        except httpx.TimeoutException as e:
            logger.debug(f"create_item timed out: {e}")
            return CreateItemResult(success=False, error={"error_message": f"timeout: {e}"})
        except httpx.HTTPError as e:
            logger.debug(f"create_item transport error: {e}")
            return CreateItemResult(success=False, error={"error_message": str(e)})
        except ValueError as e:
            return CreateItemResult(success=False, error={"error_message": str(e)})

        data = body.get("data")
        item = data.get("create_item") if isinstance(data, dict) else None
        if isinstance(item, dict) and item.get("id") is not None and not body.get("errors"):
            return CreateItemResult(success=True, item_id=str(item["id"]))
        return CreateItemResult(success=False, error=body)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "MondayClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
