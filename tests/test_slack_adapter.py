"""
Tests for the Slack adapter.

Tests cover:
- Notes omitted, exactly three action-item blocks
- Workspace bot token lookup and incomplete-integration errors
- chat.postMessage payload and ok=false handling
"""

import httpx
import pytest

from meeting_export.adapters.slack import build_blocks, SlackAdapter
from meeting_export.clients.document_store import InMemoryDocumentStore
from meeting_export.clients.slack_client import SlackClient
from meeting_export.errors import IncompleteIntegrationError, InvalidCredentialError, ProviderApiError
from meeting_export.models import SlackCredential, SlackStepConfig, StepType

from conftest import request_json

HEADER_BLOCKS = 3


def _adapter(transport) -> SlackAdapter:
    return SlackAdapter(SlackClient(transport=transport, max_retries=0))


def _credential(**overrides) -> SlackCredential:
    data = {'accessToken': 'xoxp-user', 'teamId': 'T1', 'botUserId': 'B1', 'botEmail': 'bot@acme.com'}
    data.update(overrides)
    return SlackCredential.model_validate(data)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Store holding the bot installation for workspace T1."""
    return InMemoryDocumentStore({
        'slack_workspaces/T1': {'botAccessToken': 'xoxb-bot', 'teamName': 'Acme'},
    })


class TestBuildBlocks:
    def test_items_without_notes(self, transcript):
        """No notes section; one section per item plus one italic context line."""
        config = SlackStepConfig(channel_id='C1', send_notes=False, send_action_items=True)
        blocks = build_blocks(transcript, config)

        assert blocks[0]['type'] == 'header'
        assert blocks[0]['text']['text'] == '📝 Q3 Planning'
        assert blocks[1]['elements'][0]['text'] == '📅 January 15, 2026 at 10:30 AM UTC'
        assert blocks[2] == {'type': 'divider'}

        item_blocks = blocks[HEADER_BLOCKS:]
        assert len(item_blocks) == 3
        assert item_blocks[0]['text']['text'] == '1. Ship v2'
        assert item_blocks[1]['text']['text'] == '2. Email client ✅'
        assert item_blocks[2]['type'] == 'context'
        assert item_blocks[2]['elements'][0]['text'] == '_re: pricing_'
        assert not any('Meeting Notes' in str(b) for b in blocks)

    def test_notes_section(self, transcript):
        config = SlackStepConfig(channel_id='C1', send_notes=True, send_action_items=False)
        blocks = build_blocks(transcript, config)
        assert blocks[HEADER_BLOCKS]['text']['text'] == '*Meeting Notes*\nDiscussed Q3 roadmap'
        assert blocks[HEADER_BLOCKS + 1] == {'type': 'divider'}
        assert len(blocks) == HEADER_BLOCKS + 2


class TestSlackExport:
    @pytest.mark.asyncio
    async def test_posts_with_bot_token(self, transcript, make_ctx, make_transport):
        transport, requests = make_transport(
            lambda r: httpx.Response(200, json={'ok': True, 'ts': '1700000000.0001'})
        )
        config = SlackStepConfig(channel_id='C123', send_notes=False)

        result = await _adapter(transport).export(make_ctx(StepType.SLACK), transcript, config, _credential())

        assert result.succeeded[0].item_id == '1700000000.0001'
        request = requests[0]
        assert request.url.path == '/api/chat.postMessage'
        assert request.headers['Authorization'] == 'Bearer xoxb-bot'
        body = request_json(request)
        assert body['channel'] == 'C123'
        assert body['unfurl_links'] is False
        assert body['unfurl_media'] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize('missing', ['teamId', 'botUserId', 'botEmail'])
    async def test_incomplete_credential(self, transcript, make_ctx, make_transport, missing):
        transport, requests = make_transport(lambda r: httpx.Response(200, json={'ok': True}))
        with pytest.raises(IncompleteIntegrationError):
            await _adapter(transport).export(
                make_ctx(StepType.SLACK), transcript, SlackStepConfig(channel_id='C1'),
                _credential(**{missing: None}),
            )
        assert requests == []

    @pytest.mark.asyncio
    async def test_missing_workspace(self, transcript, make_ctx, make_transport):
        transport, requests = make_transport(lambda r: httpx.Response(200, json={'ok': True}))
        with pytest.raises(IncompleteIntegrationError):
            await _adapter(transport).export(
                make_ctx(StepType.SLACK), transcript, SlackStepConfig(channel_id='C1'), _credential(teamId='T2')
            )
        assert requests == []

    @pytest.mark.asyncio
    async def test_ok_false_is_api_error(self, transcript, make_ctx, make_transport):
        transport, _ = make_transport(
            lambda r: httpx.Response(200, json={'ok': False, 'error': 'channel_not_found'})
        )
        with pytest.raises(ProviderApiError) as exc_info:
            await _adapter(transport).export(
                make_ctx(StepType.SLACK), transcript, SlackStepConfig(channel_id='C1'), _credential()
            )
        assert 'channel_not_found' in exc_info.value.message

    @pytest.mark.asyncio
    async def test_revoked_token_requires_reconnect(self, transcript, make_ctx, make_transport):
        transport, _ = make_transport(
            lambda r: httpx.Response(200, json={'ok': False, 'error': 'token_revoked'})
        )
        with pytest.raises(InvalidCredentialError):
            await _adapter(transport).export(
                make_ctx(StepType.SLACK), transcript, SlackStepConfig(channel_id='C1'), _credential()
            )
