"""
Salesforce REST API client.

The REST base depends on the org, so every call takes the credential's
``instance_url``.
"""

from typing import Any

from ..config import config
from ..errors import ProviderApiError
from .http import ProviderHttpClient


def escape_soql(value: str) -> str:
    """Escape a value for use inside a single-quoted SOQL string literal."""
    return value.replace('\\', '\\\\').replace("'", "\\'")


class SalesforceClient(ProviderHttpClient):
    """Salesforce REST client for Tasks and Contacts."""

    provider = 'Salesforce'

    def __init__(self, api_version: str | None = None, **kwargs: Any):
        super().__init__('', **kwargs)
        self.api_version = api_version or config.SALESFORCE_API_VERSION

    def _data_url(self, instance_url: str, path: str) -> str:
        return f"{instance_url.rstrip('/')}/services/data/{self.api_version}{path}"

    @staticmethod
    def _headers(access_token: str) -> dict[str, str]:
        return {
            'Authorization': f"Bearer {access_token}",
            'Content-Type': 'application/json',
        }

    async def _create(
        self,
        access_token: str,
        instance_url: str,
        sobject: str,
        fields: dict[str, Any],
    ) -> str:
        body = await self.request(
            'POST',
            self._data_url(instance_url, f"/sobjects/{sobject}"),
            headers=self._headers(access_token),
            json=fields,
        )
        if not isinstance(body, dict) or not body.get('success', True) or not body.get('id'):
            raise ProviderApiError(
                f"Salesforce {sobject} creation failed",
                provider=self.provider,
                payload=body,
            )
        return str(body['id'])

    async def create_task(
        self,
        access_token: str,
        instance_url: str,
        fields: dict[str, Any],
    ) -> str:
        """Create a Task record and return its id."""
        return await self._create(access_token, instance_url, 'Task', fields)

    async def create_contact(
        self,
        access_token: str,
        instance_url: str,
        fields: dict[str, Any],
    ) -> str:
        """Create a Contact record and return its id."""
        return await self._create(access_token, instance_url, 'Contact', fields)

    async def find_contact_id(
        self,
        access_token: str,
        instance_url: str,
        email: str,
    ) -> str | None:
        """Return the id of the first Contact with this email, if any."""
        soql = f"SELECT Id FROM Contact WHERE Email = '{escape_soql(email)}' LIMIT 1"
        body = await self.request(
            'GET',
            self._data_url(instance_url, '/query'),
            headers=self._headers(access_token),
            params={'q': soql},
        )
        records = (body or {}).get('records') or []
        if not records:
            return None
        return records[0].get('Id')
