"""
HubSpot REST API client.

Covers OAuth token refresh, engagement creation and the CRM lookups used to
associate an engagement with contacts and deals.
"""

from typing import Any

from .http import ProviderHttpClient

HUBSPOT_API_URL = 'https://api.hubapi.com'

# CRM search accepts at most 100 values for an IN filter
_MAX_IN_VALUES = 100


class HubSpotClient(ProviderHttpClient):
    """HubSpot API client."""

    provider = 'HubSpot'

    def __init__(self, base_url: str = HUBSPOT_API_URL, **kwargs: Any):
        super().__init__(base_url, **kwargs)

    @staticmethod
    def _headers(access_token: str) -> dict[str, str]:
        return {
            'Authorization': f"Bearer {access_token}",
            'Content-Type': 'application/json',
        }

    async def refresh_access_token(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
    ) -> dict[str, Any]:
        """
        Exchange a refresh token for a new access token.

        Returns:
            Token response with access_token, refresh_token and expires_in
        """
        return await self.request(
            'POST',
            '/oauth/v1/token',
            headers={'Content-Type': 'application/x-www-form-urlencoded'},
            data={
                'grant_type': 'refresh_token',
                'client_id': client_id,
                'client_secret': client_secret,
                'refresh_token': refresh_token,
            },
        )

    async def create_engagement(
        self,
        access_token: str,
        engagement: dict[str, Any],
    ) -> dict[str, Any]:
        """Create an engagement (meeting/note/task activity)."""
        return await self.request(
            'POST',
            '/engagements/v1/engagements',
            headers=self._headers(access_token),
            json=engagement,
        )

    async def find_contact_ids(self, access_token: str, emails: list[str]) -> list[str]:
        """Resolve contact emails to HubSpot contact ids (unknown emails are ignored)."""
        contact_ids: list[str] = []
        for start in range(0, len(emails), _MAX_IN_VALUES):
            batch = emails[start : start + _MAX_IN_VALUES]
            body = await self.request(
                'POST',
                '/crm/v3/objects/contacts/search',
                headers=self._headers(access_token),
                json={
                    'filterGroups': [
                        {'filters': [{'propertyName': 'email', 'operator': 'IN', 'values': batch}]}
                    ],
                    'properties': ['email'],
                    'limit': len(batch),
                },
            )
            for result in (body or {}).get('results', []):
                if result.get('id'):
                    contact_ids.append(str(result['id']))
        return contact_ids

    async def get_contact_deal_ids(self, access_token: str, contact_id: str) -> list[str]:
        """List deal ids associated with a contact."""
        body = await self.request(
            'GET',
            f"/crm/v4/objects/contacts/{contact_id}/associations/deals",
            headers=self._headers(access_token),
        )
        return [
            str(result['toObjectId'])
            for result in (body or {}).get('results', [])
            if result.get('toObjectId') is not None
        ]
