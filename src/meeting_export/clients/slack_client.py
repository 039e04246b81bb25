"""
Slack Web API client.

Posts Block Kit messages with a workspace bot token. The Web API reports
failures with HTTP 200 and ``{"ok": false, "error": ...}``, so the body is
checked as well as the status code.
"""

from typing import Any

from ..errors import InvalidCredentialError, ProviderApiError, reconnect_message
from .http import ProviderHttpClient

SLACK_API_URL = 'https://slack.com/api'

# Slack error codes meaning the bot token is unusable
_AUTH_ERRORS = frozenset({
    'invalid_auth',
    'not_authed',
    'token_revoked',
    'token_expired',
    'account_inactive',
})


class SlackClient(ProviderHttpClient):
    """Slack Web API client."""

    provider = 'Slack'

    def __init__(self, base_url: str = SLACK_API_URL, **kwargs: Any):
        super().__init__(base_url, **kwargs)

    async def post_message(
        self,
        bot_token: str,
        channel: str,
        blocks: list[dict[str, Any]],
        text: str = '',
    ) -> dict[str, Any]:
        """
        Post a Block Kit message to a channel (chat.postMessage).

        Args:
            bot_token: Workspace bot token
            channel: Channel ID
            blocks: Block Kit blocks
            text: Notification fallback text
        """
        body = await self.request(
            'POST',
            '/chat.postMessage',
            headers={
                'Authorization': f"Bearer {bot_token}",
                'Content-Type': 'application/json; charset=utf-8',
            },
            json={
                'channel': channel,
                'blocks': blocks,
                'text': text,
                'unfurl_links': False,
                'unfurl_media': False,
            },
        )
        if not isinstance(body, dict) or not body.get('ok'):
            error = body.get('error') if isinstance(body, dict) else None
            if error in _AUTH_ERRORS:
                raise InvalidCredentialError(
                    reconnect_message(self.provider),
                    provider=self.provider,
                    context={'slack_error': error},
                )
            raise ProviderApiError(
                f"Slack chat.postMessage failed: {error or 'unknown_error'}",
                provider=self.provider,
                payload=body,
                context={'channel': channel},
            )
        return body
