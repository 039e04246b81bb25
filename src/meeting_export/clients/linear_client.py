"""
Linear GraphQL API client.
"""

from typing import Any

from ..errors import ProviderApiError
from .http import ProviderHttpClient

LINEAR_API_URL = 'https://api.linear.app'

ISSUE_CREATE_MUTATION = """
mutation IssueCreate($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue {
      id
      identifier
      url
    }
  }
}
"""


class LinearClient(ProviderHttpClient):
    """Linear API client."""

    provider = 'Linear'

    def __init__(self, base_url: str = LINEAR_API_URL, **kwargs: Any):
        super().__init__(base_url, **kwargs)

    async def create_issue(
        self,
        access_token: str,
        team_id: str,
        title: str,
        description: str,
        priority: int = 2,
    ) -> dict[str, Any]:
        """
        Create one issue.

        Returns:
            The created issue (id, identifier, url)

        Raises:
            ProviderApiError: On GraphQL errors or ``issueCreate.success == false``
        """
        data = await self.graphql(
            '/graphql',
            ISSUE_CREATE_MUTATION,
            {
                'input': {
                    'teamId': team_id,
                    'title': title,
                    'description': description,
                    'priority': priority,
                }
            },
            headers={
                'Authorization': f"Bearer {access_token}",
                'Content-Type': 'application/json',
            },
        )
        result = data.get('issueCreate') or {}
        if not result.get('success'):
            raise ProviderApiError(
                'Linear issueCreate returned success=false',
                provider=self.provider,
                payload=result,
                context={'team_id': team_id},
            )
        return result.get('issue') or {}
