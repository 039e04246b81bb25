"""
Salesforce adapter: meeting summary task, action item tasks, contact sync.

Every record is created independently; a failing Task or Contact is
recorded and the rest proceed.
"""

from typing import Any

from ..clients.salesforce_client import SalesforceClient
from ..errors import InvalidCredentialError, PartialSuccessResult, StepError
from ..models.automation import SalesforceStepConfig, StepType
from ..models.credentials import SalesforceCredential
from ..models.transcript import Attendee, TranscriptData
from ..utils import describe_with_attribution, truncate
from .base import ExportContext, ProviderAdapter

NO_LAST_NAME = '(no last name)'
# Task.Subject is limited to 255 characters
MAX_SUBJECT_LENGTH = 255


def split_name(full_name: str) -> tuple[str | None, str]:
    """First token is the first name, the rest is the last name."""
    parts = full_name.split()
    if not parts:
        return None, NO_LAST_NAME
    if len(parts) == 1:
        return parts[0], NO_LAST_NAME
    return parts[0], ' '.join(parts[1:])


def meeting_task_fields(transcript: TranscriptData) -> dict[str, Any]:
    description = transcript.notes or ''
    if transcript.action_items:
        lines = [f"- {item.title}" for item in transcript.action_items]
        description = '\n\n'.join(filter(None, [description, 'Action Items:\n' + '\n'.join(lines)]))
    return {
        'Subject': truncate(f"Meeting: {transcript.display_name}", MAX_SUBJECT_LENGTH),
        'Description': description,
        'ActivityDate': transcript.timestamp.date().isoformat(),
        'Status': 'Completed',
        'Priority': 'Normal',
    }


def contact_fields(attendee: Attendee) -> dict[str, Any]:
    first, last = split_name(attendee.name or '')
    fields: dict[str, Any] = {'LastName': last, 'Email': attendee.email}
    if first:
        fields['FirstName'] = first
    return fields


class SalesforceAdapter(ProviderAdapter):
    step_type = StepType.SALESFORCE
    credential_model = SalesforceCredential
    provider_name = 'Salesforce'

    def __init__(self, client: SalesforceClient):
        self.client = client

    async def _create_action_item_tasks(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        credential: SalesforceCredential,
        result: PartialSuccessResult,
    ) -> None:
        for item in transcript.action_items:
            fields = {
                'Subject': truncate(item.title, MAX_SUBJECT_LENGTH),
                'Description': describe_with_attribution(item.description, transcript),
                'ActivityDate': transcript.timestamp.date().isoformat(),
                'Type': 'Action Item',
                'Status': 'Not Started',
                'Priority': 'Normal',
            }
            try:
                task_id = await self.client.create_task(
                    credential.access_token, credential.instance_url, fields
                )
            except InvalidCredentialError:
                raise
            except StepError as e:
                ctx.log.warning('salesforce.task_failed', action_item_id=item.id, error=e.message)
                result.add_failure(e, item_id=item.id)
                continue
            result.add_success(item_id=item.id, data={'task_id': task_id})

    async def _sync_contacts(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        credential: SalesforceCredential,
        result: PartialSuccessResult,
    ) -> None:
        for attendee in transcript.attendees:
            key = f"contact:{attendee.email}"
            try:
                contact_id = await self.client.find_contact_id(
                    credential.access_token, credential.instance_url, attendee.email
                )
                created = contact_id is None
                if created:
                    contact_id = await self.client.create_contact(
                        credential.access_token, credential.instance_url, contact_fields(attendee)
                    )
            except InvalidCredentialError:
                raise
            except StepError as e:
                ctx.log.warning('salesforce.contact_failed', email=attendee.email, error=e.message)
                result.add_failure(e, item_id=key)
                continue
            result.add_success(item_id=key, data={'contact_id': contact_id, 'created': created})

    async def export(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        config: SalesforceStepConfig,
        credential: SalesforceCredential,
    ) -> PartialSuccessResult:
        result = PartialSuccessResult()

        if config.include_meeting_notes:
            try:
                task_id = await self.client.create_task(
                    credential.access_token,
                    credential.instance_url,
                    meeting_task_fields(transcript),
                )
            except InvalidCredentialError:
                raise
            except StepError as e:
                ctx.log.warning('salesforce.meeting_task_failed', error=e.message)
                result.add_failure(e, item_id='meeting')
            else:
                result.add_success(item_id='meeting', data={'task_id': task_id})

        if config.include_action_items:
            await self._create_action_item_tasks(ctx, transcript, credential, result)

        if config.update_contacts:
            await self._sync_contacts(ctx, transcript, credential, result)

        ctx.log.info('salesforce.export_completed', **result.to_dict())
        return result
