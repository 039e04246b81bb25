"""
Monday.com GraphQL API client.

Every value is sent as a GraphQL variable. Monday IDs are typed ``ID!``
and column values travel as a JSON-encoded string (``JSON!``).
"""

import json
from typing import Any

from ..config import config
from ..errors import ProviderApiError
from .http import ProviderHttpClient

MONDAY_API_URL = 'https://api.monday.com'

CREATE_ITEM_MUTATION = """
mutation CreateItem($boardId: ID!, $groupId: String!, $itemName: String!) {
  create_item(board_id: $boardId, group_id: $groupId, item_name: $itemName) {
    id
  }
}
"""

BOARD_COLUMNS_QUERY = """
query BoardColumns($boardId: [ID!]) {
  boards(ids: $boardId) {
    columns {
      id
      title
      type
    }
  }
}
"""

CHANGE_COLUMN_VALUES_MUTATION = """
mutation ChangeColumnValues($boardId: ID!, $itemId: ID!, $columnValues: JSON!) {
  change_multiple_column_values(board_id: $boardId, item_id: $itemId, column_values: $columnValues) {
    id
  }
}
"""


class MondayClient(ProviderHttpClient):
    """Monday.com API client."""

    provider = 'Monday.com'

    def __init__(self, base_url: str = MONDAY_API_URL, **kwargs: Any):
        super().__init__(base_url, **kwargs)

    @staticmethod
    def _headers(access_token: str) -> dict[str, str]:
        # Monday expects the raw token, without a Bearer prefix
        return {
            'Authorization': access_token,
            'API-Version': config.MONDAY_API_VERSION,
            'Content-Type': 'application/json',
        }

    async def create_item(
        self,
        access_token: str,
        board_id: str,
        group_id: str,
        item_name: str,
    ) -> str:
        """
        Create an item on a board group.

        Returns:
            The new item's id
        """
        data = await self.graphql(
            '/v2',
            CREATE_ITEM_MUTATION,
            {'boardId': str(board_id), 'groupId': group_id, 'itemName': item_name},
            headers=self._headers(access_token),
        )
        item = data.get('create_item') or {}
        if not item.get('id'):
            raise ProviderApiError(
                'Monday.com create_item returned no item id',
                provider=self.provider,
                payload=data,
                context={'board_id': board_id, 'group_id': group_id},
            )
        return str(item['id'])

    async def get_board_columns(self, access_token: str, board_id: str) -> list[dict[str, Any]]:
        """Return ``[{id, title, type}, ...]`` for a board."""
        data = await self.graphql(
            '/v2',
            BOARD_COLUMNS_QUERY,
            {'boardId': [str(board_id)]},
            headers=self._headers(access_token),
        )
        boards = data.get('boards') or []
        if not boards:
            return []
        return list(boards[0].get('columns') or [])

    async def change_column_values(
        self,
        access_token: str,
        board_id: str,
        item_id: str,
        column_values: dict[str, Any],
    ) -> None:
        """Update several columns of one item in a single mutation."""
        await self.graphql(
            '/v2',
            CHANGE_COLUMN_VALUES_MUTATION,
            {
                'boardId': str(board_id),
                'itemId': str(item_id),
                'columnValues': json.dumps(column_values),
            },
            headers=self._headers(access_token),
        )
