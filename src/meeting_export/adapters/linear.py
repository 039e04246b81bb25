"""
Linear adapter: one issue per action item.

Each item is created independently; a failing item is recorded and the
remaining items still go through.
"""

from ..clients.linear_client import LinearClient
from ..errors import InvalidCredentialError, PartialSuccessResult, StepConfigError, StepError
from ..models.automation import LinearStepConfig, StepType
from ..models.credentials import LinearCredential
from ..models.transcript import TranscriptData
from ..utils import describe_with_attribution
from .base import ExportContext, ProviderAdapter

DEFAULT_PRIORITY = 2


def resolve_team_id(config: LinearStepConfig, credential: LinearCredential) -> str:
    """Configured team, or the credential's only team when none is configured."""
    if config.team_id:
        return config.team_id
    if len(credential.teams) == 1:
        return credential.teams[0].id
    raise StepConfigError(
        'No Linear team selected for this automation step',
        provider='Linear',
        context={'available_teams': len(credential.teams)},
    )


class LinearAdapter(ProviderAdapter):
    step_type = StepType.LINEAR
    credential_model = LinearCredential
    provider_name = 'Linear'

    def __init__(self, client: LinearClient):
        self.client = client

    async def export(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        config: LinearStepConfig,
        credential: LinearCredential,
    ) -> PartialSuccessResult:
        result = PartialSuccessResult()
        if not transcript.action_items:
            ctx.log.info('linear.no_action_items')
            return result

        team_id = resolve_team_id(config, credential)

        for item in transcript.action_items:
            try:
                issue = await self.client.create_issue(
                    credential.access_token,
                    team_id,
                    item.title,
                    describe_with_attribution(item.description, transcript),
                    priority=DEFAULT_PRIORITY,
                )
            except InvalidCredentialError:
                raise
            except StepError as e:
                ctx.log.warning(
                    'linear.issue_failed',
                    action_item_id=item.id,
                    error=e.message,
                    payload=getattr(e, 'payload', None),
                )
                result.add_failure(e, item_id=item.id)
                continue

            ctx.log.info(
                'linear.issue_created',
                action_item_id=item.id,
                issue_id=issue.get('id'),
                identifier=issue.get('identifier'),
            )
            result.add_success(item_id=item.id, data={'issue': issue})

        return result
