"""
Notion REST API client.

Uses the public REST API directly with the user's OAuth access token.
"""

from typing import Any

from ..config import config
from .http import ProviderHttpClient

NOTION_API_URL = 'https://api.notion.com'

# Notion rejects requests with more than 100 children
MAX_CHILDREN_PER_REQUEST = 100


class NotionClient(ProviderHttpClient):
    """Notion API client: token verification, page creation, block append."""

    provider = 'Notion'

    def __init__(self, base_url: str = NOTION_API_URL, **kwargs: Any):
        super().__init__(base_url, **kwargs)

    def _headers(self, access_token: str) -> dict[str, str]:
        return {
            'Authorization': f"Bearer {access_token}",
            'Notion-Version': config.NOTION_VERSION,
            'Content-Type': 'application/json',
        }

    async def get_me(self, access_token: str) -> dict[str, Any]:
        """Return the bot user behind the token (cheap token check)."""
        return await self.request('GET', '/v1/users/me', headers=self._headers(access_token))

    async def create_page(
        self,
        access_token: str,
        parent_page_id: str,
        title: str,
        children: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """
        Create a child page under ``parent_page_id``.

        Only the first MAX_CHILDREN_PER_REQUEST blocks are sent; the caller
        appends the rest with ``append_children``.
        """
        body = {
            'parent': {'page_id': parent_page_id},
            'properties': {
                'title': {'title': [{'type': 'text', 'text': {'content': title}}]},
            },
            'children': children[:MAX_CHILDREN_PER_REQUEST],
        }
        return await self.request(
            'POST', '/v1/pages', headers=self._headers(access_token), json=body
        )

    async def append_children(
        self,
        access_token: str,
        block_id: str,
        children: list[dict[str, Any]],
    ) -> None:
        """Append blocks to a page in batches Notion accepts."""
        for start in range(0, len(children), MAX_CHILDREN_PER_REQUEST):
            await self.request(
                'PATCH',
                f"/v1/blocks/{block_id}/children",
                headers=self._headers(access_token),
                json={'children': children[start : start + MAX_CHILDREN_PER_REQUEST]},
            )
