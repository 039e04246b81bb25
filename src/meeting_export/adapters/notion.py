"""
Notion adapter: one child page per meeting.

Page layout:
    heading_1   meeting name
    paragraph   Meeting Date: ...
    heading_2   Meeting Notes          (exportNotes and notes present)
    paragraph   notes
    heading_2   Action Items           (exportActionItems and items present)
    to_do       per item (checked = done)
    paragraph   item description, only when non-empty
"""

from typing import Any

from ..clients.notion_client import MAX_CHILDREN_PER_REQUEST, NotionClient
from ..errors import (
    InvalidCredentialError,
    PartialSuccessResult,
    StepError,
    TransientProviderError,
    reconnect_message,
)
from ..models.automation import NotionStepConfig, StepType
from ..models.credentials import NotionCredential
from ..models.transcript import TranscriptData
from ..utils import chunk_text, format_timestamp
from .base import ExportContext, ProviderAdapter

# Notion rejects rich-text objects longer than this
MAX_RICH_TEXT_LENGTH = 2000


def _rich_text(text: str) -> list[dict[str, Any]]:
    return [
        {'type': 'text', 'text': {'content': chunk}}
        for chunk in chunk_text(text, MAX_RICH_TEXT_LENGTH)
    ]


def heading(level: int, text: str) -> dict[str, Any]:
    block_type = f"heading_{level}"
    return {'object': 'block', 'type': block_type, block_type: {'rich_text': _rich_text(text)}}


def paragraph(text: str) -> dict[str, Any]:
    return {'object': 'block', 'type': 'paragraph', 'paragraph': {'rich_text': _rich_text(text)}}


def to_do(text: str, checked: bool) -> dict[str, Any]:
    return {
        'object': 'block',
        'type': 'to_do',
        'to_do': {'rich_text': _rich_text(text), 'checked': checked},
    }


def build_blocks(transcript: TranscriptData, config: NotionStepConfig) -> list[dict[str, Any]]:
    """Build the page body for a transcript."""
    blocks = [
        heading(1, transcript.display_name),
        paragraph(f"Meeting Date: {format_timestamp(transcript.timestamp)}"),
    ]

    if config.export_notes and transcript.has_notes:
        blocks.append(heading(2, 'Meeting Notes'))
        blocks.append(paragraph(transcript.notes or ''))

    if config.export_action_items and transcript.action_items:
        blocks.append(heading(2, 'Action Items'))
        for item in transcript.action_items:
            blocks.append(to_do(item.title, item.done))
            if item.description:
                blocks.append(paragraph(item.description))

    return blocks


class NotionAdapter(ProviderAdapter):
    step_type = StepType.NOTION
    credential_model = NotionCredential
    provider_name = 'Notion'

    def __init__(self, client: NotionClient):
        self.client = client

    async def export(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        config: NotionStepConfig,
        credential: NotionCredential,
    ) -> PartialSuccessResult:
        result = PartialSuccessResult()

        try:
            await self.client.get_me(credential.access_token)
        except TransientProviderError:
            raise
        except StepError as e:
            raise InvalidCredentialError(
                reconnect_message(self.provider_name),
                provider=self.provider_name,
                context={'verify_error': e.message},
            ) from e

        blocks = build_blocks(transcript, config)
        page = await self.client.create_page(
            credential.access_token,
            config.page_id,
            transcript.display_name,
            blocks,
        )
        page_id = page.get('id') if isinstance(page, dict) else None

        overflow = blocks[MAX_CHILDREN_PER_REQUEST:]
        if overflow and page_id:
            await self.client.append_children(credential.access_token, page_id, overflow)

        ctx.log.info(
            'notion.page_created',
            page_id=page_id,
            parent_page_id=config.page_id,
            block_count=len(blocks),
        )
        result.add_success(
            item_id=page_id,
            data={'url': page.get('url') if isinstance(page, dict) else None},
        )
        return result
