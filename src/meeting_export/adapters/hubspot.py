"""
HubSpot adapter and OAuth token refresher.

HubSpot access tokens are short-lived. Before exporting, the refresher checks
``expiresAt`` and, inside the refresh margin, exchanges the refresh token for
a new access token, persists it onto the user document, and only then lets
the adapter continue. The refresh is memoized in the run cache, so a run with
several HubSpot steps refreshes at most once (a failed refresh is memoized
as well).
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

from ..clients.hubspot_client import HubSpotClient
from ..config import config as app_config
from ..errors import MeetingExportError, PartialSuccessResult, StepError, TokenRefreshError
from ..models.automation import HubSpotStepConfig, StepType
from ..models.credentials import HubSpotCredential
from ..models.transcript import TranscriptData
from .base import ExportContext, ProviderAdapter

MEETING_DURATION = timedelta(hours=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HubSpotTokenRefresher:
    """Refreshes expiring HubSpot tokens at most once per run."""

    def __init__(
        self,
        client: HubSpotClient,
        client_id: str | None = None,
        client_secret: str | None = None,
        margin_seconds: float | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.client_id = client_id if client_id is not None else app_config.HUBSPOT_CLIENT_ID
        self.client_secret = (
            client_secret if client_secret is not None else app_config.HUBSPOT_CLIENT_SECRET
        )
        self.margin_seconds = (
            margin_seconds
            if margin_seconds is not None
            else app_config.HUBSPOT_REFRESH_MARGIN_SECONDS
        )
        self.clock = clock

    def needs_refresh(self, credential: HubSpotCredential) -> bool:
        return credential.expires_within(self.margin_seconds, now=self.clock())

    async def access_token(self, ctx: ExportContext, credential: HubSpotCredential) -> str:
        """
        Return a usable access token, refreshing it first when needed.

        Raises:
            TokenRefreshError: If the refresh (or its persistence) fails
        """
        if not self.needs_refresh(credential):
            return credential.access_token
        return await ctx.cache.get_or_create(
            f"hubspot_token:{ctx.user_id}",
            lambda: self._refresh(ctx, credential),
        )

    async def _refresh(self, ctx: ExportContext, credential: HubSpotCredential) -> str:
        if not self.client_id or not self.client_secret:
            raise TokenRefreshError(
                'HubSpot OAuth client credentials are not configured',
                provider='HubSpot',
            )

        ctx.log.info('hubspot.token_refresh_started', expires_at=credential.expires_at.isoformat())
        try:
            body = await self.client.refresh_access_token(
                self.client_id, self.client_secret, credential.refresh_token
            )
        except StepError as e:
            raise TokenRefreshError(
                f"HubSpot token refresh failed: {e.message}",
                provider='HubSpot',
                context={'status_code': getattr(e, 'status_code', None)},
            ) from e

        access_token = body.get('access_token') if isinstance(body, dict) else None
        if not access_token:
            raise TokenRefreshError(
                'HubSpot token refresh returned no access token',
                provider='HubSpot',
            )
        refresh_token = body.get('refresh_token') or credential.refresh_token
        expires_at = self.clock() + timedelta(seconds=int(body.get('expires_in') or 1800))

        try:
            await ctx.repository.save_hubspot_token(
                ctx.user_id, access_token, refresh_token, expires_at
            )
        except MeetingExportError as e:
            raise TokenRefreshError(
                f"Failed to persist refreshed HubSpot token: {e.message}",
                provider='HubSpot',
            ) from e

        ctx.log.info('hubspot.token_refreshed', expires_at=expires_at.isoformat())
        return access_token


def build_body(transcript: TranscriptData, config: HubSpotStepConfig) -> str:
    """Engagement body: notes and/or action items as plain text."""
    sections = []
    if config.include_meeting_notes and transcript.has_notes:
        sections.append(f"Meeting Notes:\n{transcript.notes}")
    if config.include_action_items and transcript.action_items:
        lines = ['Action Items:']
        for item in transcript.action_items:
            lines.append(f"- {item.title}")
            if item.description:
                lines.append(f"  {item.description}")
        sections.append('\n'.join(lines))
    return '\n\n'.join(sections)


class HubSpotAdapter(ProviderAdapter):
    step_type = StepType.HUBSPOT
    credential_model = HubSpotCredential
    provider_name = 'HubSpot'

    def __init__(self, client: HubSpotClient, refresher: HubSpotTokenRefresher):
        self.client = client
        self.refresher = refresher

    async def _associations(
        self,
        ctx: ExportContext,
        access_token: str,
        transcript: TranscriptData,
        config: HubSpotStepConfig,
    ) -> tuple[list[str], list[str]]:
        """Resolve attendee contacts (and their deals). Failures are only logged."""
        contact_ids: list[str] = []
        deal_ids: list[str] = []
        emails = [a.email for a in transcript.attendees if a.email]
        if not (config.contacts or config.deals) or not emails:
            return contact_ids, deal_ids

        try:
            contact_ids = await self.client.find_contact_ids(access_token, emails)
        except StepError as e:
            ctx.log.warning('hubspot.contact_lookup_failed', error=e.message)
            return [], []

        if config.deals:
            for contact_id in contact_ids:
                try:
                    for deal_id in await self.client.get_contact_deal_ids(access_token, contact_id):
                        if deal_id not in deal_ids:
                            deal_ids.append(deal_id)
                except StepError as e:
                    ctx.log.warning(
                        'hubspot.deal_lookup_failed', contact_id=contact_id, error=e.message
                    )

        return (contact_ids if config.contacts else []), deal_ids

    async def export(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        config: HubSpotStepConfig,
        credential: HubSpotCredential,
    ) -> PartialSuccessResult:
        access_token = await self.refresher.access_token(ctx, credential)
        contact_ids, deal_ids = await self._associations(ctx, access_token, transcript, config)

        start = transcript.timestamp
        engagement: dict = {
            'active': True,
            'type': 'MEETING',
            'timestamp': int(start.timestamp() * 1000),
        }
        portal_id = config.portal_id or credential.portal_id
        if portal_id:
            engagement['portalId'] = int(portal_id) if portal_id.isdigit() else portal_id

        payload = {
            'engagement': engagement,
            'associations': {
                'contactIds': [int(c) if c.isdigit() else c for c in contact_ids],
                'companyIds': [],
                'dealIds': [int(d) if d.isdigit() else d for d in deal_ids],
                'ownerIds': [],
            },
            'metadata': {
                'title': transcript.display_name,
                'body': build_body(transcript, config),
                'startTime': start.isoformat(),
                'endTime': (start + MEETING_DURATION).isoformat(),
            },
        }

        response = await self.client.create_engagement(access_token, payload)
        engagement_id = None
        if isinstance(response, dict):
            engagement_id = (response.get('engagement') or {}).get('id')

        ctx.log.info(
            'hubspot.engagement_created',
            engagement_id=engagement_id,
            account_type=config.account_type or credential.account_type,
            contact_count=len(contact_ids),
            deal_count=len(deal_ids),
        )
        result = PartialSuccessResult()
        result.add_success(
            item_id=str(engagement_id) if engagement_id is not None else None,
            data={'contact_ids': contact_ids, 'deal_ids': deal_ids},
        )
        return result
