"""
Monday.com adapter: one board item per action item.

After the first item is created the board's columns are introspected once.
A text column titled like "description"/"notes"/"details" receives the item
description with the meeting attribution, and a status column titled like
"status"/"state" is set to Done for completed items. Both updates go out in
one mutation; a board without such columns just gets bare items.
"""

from typing import Any

from ..clients.monday_client import MondayClient
from ..errors import InvalidCredentialError, PartialSuccessResult, StepError
from ..models.automation import MondayStepConfig, StepType
from ..models.credentials import MondayCredential
from ..models.transcript import ActionItem, TranscriptData
from ..utils import describe_with_attribution
from .base import ExportContext, ProviderAdapter

TEXT_COLUMN_TYPES = frozenset({'text', 'long_text', 'long-text'})
TEXT_COLUMN_TERMS = ('description', 'notes', 'details')
STATUS_COLUMN_TYPES = frozenset({'status', 'color'})
STATUS_COLUMN_TERMS = ('status', 'state')
DONE_LABEL = 'Done'


def _find_column(
    columns: list[dict[str, Any]],
    types: frozenset[str],
    terms: tuple[str, ...],
) -> dict[str, Any] | None:
    for column in columns:
        column_type = str(column.get('type') or '').lower()
        title = str(column.get('title') or '').lower()
        if column_type in types and any(term in title for term in terms):
            return column
    return None


def build_column_values(
    columns: list[dict[str, Any]],
    item: ActionItem,
    transcript: TranscriptData,
) -> dict[str, Any]:
    """Column updates that apply to this item on this board (may be empty)."""
    values: dict[str, Any] = {}

    text_column = _find_column(columns, TEXT_COLUMN_TYPES, TEXT_COLUMN_TERMS)
    if text_column:
        text = describe_with_attribution(item.description, transcript)
        if str(text_column.get('type')).lower() == 'text':
            values[text_column['id']] = text
        else:
            values[text_column['id']] = {'text': text}

    if item.done:
        status_column = _find_column(columns, STATUS_COLUMN_TYPES, STATUS_COLUMN_TERMS)
        if status_column:
            values[status_column['id']] = {'label': DONE_LABEL}

    return values


class MondayAdapter(ProviderAdapter):
    step_type = StepType.MONDAY
    credential_model = MondayCredential
    provider_name = 'Monday.com'

    def __init__(self, client: MondayClient):
        self.client = client

    async def _columns(
        self,
        ctx: ExportContext,
        credential: MondayCredential,
        board_id: str,
    ) -> list[dict[str, Any]]:
        try:
            return await self.client.get_board_columns(credential.access_token, board_id)
        except StepError as e:
            ctx.log.warning('monday.column_lookup_failed', board_id=board_id, error=e.message)
            return []

    async def export(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        config: MondayStepConfig,
        credential: MondayCredential,
    ) -> PartialSuccessResult:
        result = PartialSuccessResult()
        if not transcript.action_items:
            ctx.log.info('monday.no_action_items')
            return result

        columns: list[dict[str, Any]] | None = None

        for item in transcript.action_items:
            try:
                item_id = await self.client.create_item(
                    credential.access_token, config.board, config.group, item.title
                )
            except InvalidCredentialError:
                raise
            except StepError as e:
                ctx.log.warning(
                    'monday.item_failed',
                    action_item_id=item.id,
                    error=e.message,
                    payload=getattr(e, 'payload', None),
                )
                result.add_failure(e, item_id=item.id)
                continue

            if columns is None:
                columns = await self._columns(ctx, credential, config.board)

            values = build_column_values(columns, item, transcript)
            if values:
                try:
                    await self.client.change_column_values(
                        credential.access_token, config.board, item_id, values
                    )
                except StepError as e:
                    ctx.log.warning(
                        'monday.column_update_failed',
                        action_item_id=item.id,
                        item_id=item_id,
                        error=e.message,
                    )

            ctx.log.info(
                'monday.item_created',
                action_item_id=item.id,
                item_id=item_id,
                columns_updated=sorted(values),
            )
            result.add_success(item_id=item.id, data={'monday_item_id': item_id})

        return result
