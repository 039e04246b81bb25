"""
Slack adapter: one Block Kit message per meeting.

The message is posted by the workspace bot. Its token is stored per
workspace (``slack_workspaces/{teamId}``), not on the user's credential.
"""

from typing import Any

from ..clients.slack_client import SlackClient
from ..errors import IncompleteIntegrationError, PartialSuccessResult, reconnect_message
from ..models.automation import SlackStepConfig, StepType
from ..models.credentials import SlackCredential
from ..models.transcript import TranscriptData
from ..utils import format_timestamp, truncate
from .base import ExportContext, ProviderAdapter

# Block Kit limits
MAX_SECTION_TEXT = 3000
MAX_HEADER_TEXT = 150


def _section(text: str) -> dict[str, Any]:
    return {'type': 'section', 'text': {'type': 'mrkdwn', 'text': truncate(text, MAX_SECTION_TEXT)}}


def _context(text: str) -> dict[str, Any]:
    return {
        'type': 'context',
        'elements': [{'type': 'mrkdwn', 'text': truncate(text, MAX_SECTION_TEXT)}],
    }


def build_blocks(transcript: TranscriptData, config: SlackStepConfig) -> list[dict[str, Any]]:
    """Build the message blocks for a transcript."""
    blocks: list[dict[str, Any]] = [
        {
            'type': 'header',
            'text': {
                'type': 'plain_text',
                'text': truncate(f"📝 {transcript.display_name}", MAX_HEADER_TEXT),
                'emoji': True,
            },
        },
        _context(f"📅 {format_timestamp(transcript.timestamp)}"),
        {'type': 'divider'},
    ]

    if config.send_notes and transcript.has_notes:
        blocks.append(_section(f"*Meeting Notes*\n{transcript.notes}"))
        blocks.append({'type': 'divider'})

    if config.send_action_items:
        for index, item in enumerate(transcript.action_items):
            check = ' ✅' if item.done else ''
            blocks.append(_section(f"{index + 1}. {item.title}{check}"))
            if item.description:
                blocks.append(_context(f"_{item.description}_"))

    return blocks


class SlackAdapter(ProviderAdapter):
    step_type = StepType.SLACK
    credential_model = SlackCredential
    provider_name = 'Slack'

    def __init__(self, client: SlackClient):
        self.client = client

    def _incomplete(self, missing: str) -> IncompleteIntegrationError:
        return IncompleteIntegrationError(
            reconnect_message(self.provider_name),
            provider=self.provider_name,
            context={'missing': missing},
        )

    async def export(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        config: SlackStepConfig,
        credential: SlackCredential,
    ) -> PartialSuccessResult:
        for name in ('team_id', 'bot_user_id', 'bot_email'):
            if not getattr(credential, name):
                raise self._incomplete(name)

        workspace = await ctx.repository.get_slack_workspace(credential.team_id)
        if workspace is None:
            raise self._incomplete('workspace')
        if not workspace.bot_access_token:
            raise self._incomplete('bot_access_token')

        blocks = build_blocks(transcript, config)
        response = await self.client.post_message(
            workspace.bot_access_token,
            config.channel_id,
            blocks,
            text=f"📝 {transcript.display_name}",
        )

        ctx.log.info(
            'slack.message_posted',
            channel_id=config.channel_id,
            block_count=len(blocks),
            ts=response.get('ts'),
        )
        result = PartialSuccessResult()
        result.add_success(item_id=response.get('ts'), data={'channel': config.channel_id})
        return result
