"""
Document repository for the export pipeline.

Provides:
- Latest-transcript lookup (by normalized timestamp)
- Credential bundle lookup from the user document
- Automation and step listing in stored order
- Slack workspace bot-token lookup
- HubSpot token write-back and AI insight response persistence
"""

from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError

from .clients.document_store import DocumentStore
from .errors import NoTranscriptError, UserNotFoundError
from .models.automation import Automation, Step
from .models.credentials import CredentialBundle, SlackWorkspace
from .models.transcript import TranscriptData

logger = structlog.get_logger(__name__)


class ExportRepository:
    """
    Typed reads and writes over the document hierarchy.

    All paths are user-scoped except ``slack_workspaces/{teamId}``, which is
    keyed by workspace.
    """

    def __init__(self, store: DocumentStore):
        """
        Initialize the repository.

        Args:
            store: Any DocumentStore backend
        """
        self.store = store

    # =========================================================================
    # Paths
    # =========================================================================

    @staticmethod
    def transcripts_path(user_id: str) -> str:
        return f"transcript/{user_id}/timestamps"

    @staticmethod
    def user_path(user_id: str) -> str:
        return f"users/{user_id}"

    @staticmethod
    def automations_path(user_id: str) -> str:
        return f"integratedautomations/{user_id}/automations"

    @classmethod
    def steps_path(cls, user_id: str, automation_id: str) -> str:
        return f"{cls.automations_path(user_id)}/{automation_id}/steps"

    @staticmethod
    def slack_workspace_path(team_id: str) -> str:
        return f"slack_workspaces/{team_id}"

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_latest_transcript(self, user_id: str) -> TranscriptData:
        """
        Return the user's most recent transcript.

        Raises:
            NoTranscriptError: If the user has no readable transcript
        """
        latest: TranscriptData | None = None
        for doc_id, data in await self.store.list(self.transcripts_path(user_id)):
            try:
                transcript = TranscriptData.from_document(doc_id, data)
            except ValidationError as e:
                logger.warning(
                    'repository.transcript_unreadable',
                    transcript_id=doc_id,
                    errors=e.error_count(),
                )
                continue
            # Later documents win ties
            if latest is None or transcript.timestamp >= latest.timestamp:
                latest = transcript

        if latest is None:
            raise NoTranscriptError(
                'No transcript found for user',
                context={'user_id': user_id},
            )
        return latest

    async def get_credentials(self, user_id: str) -> CredentialBundle:
        """
        Return every integration record on the user document.

        Raises:
            UserNotFoundError: If the user document does not exist
        """
        data = await self.store.get(self.user_path(user_id))
        if data is None:
            raise UserNotFoundError('User not found', context={'user_id': user_id})
        return CredentialBundle.from_user_document(user_id, data)

    async def list_automations(self, user_id: str) -> list[Automation]:
        """List the user's automations in stored order."""
        return [
            Automation.from_document(doc_id, data)
            for doc_id, data in await self.store.list(self.automations_path(user_id))
        ]

    async def list_steps(self, user_id: str, automation_id: str) -> list[Step]:
        """
        List an automation's steps.

        Stored order is kept, except that steps carrying an explicit integer
        ``order`` come first, sorted by it.
        """
        steps = [
            Step.from_document(doc_id, data)
            for doc_id, data in await self.store.list(self.steps_path(user_id, automation_id))
        ]
        return sorted(steps, key=lambda s: (s.order is None, s.order or 0))

    async def get_slack_workspace(self, team_id: str) -> SlackWorkspace | None:
        """Return the bot installation for a Slack workspace, if any."""
        data = await self.store.get(self.slack_workspace_path(team_id))
        if data is None:
            return None
        return SlackWorkspace.model_validate({'teamId': team_id, **data})

    # =========================================================================
    # Writes
    # =========================================================================

    async def save_hubspot_token(
        self,
        user_id: str,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> None:
        """Persist a refreshed HubSpot token into the user's credential record."""
        await self.store.set(
            self.user_path(user_id),
            {
                'hubspotIntegration': {
                    'accessToken': access_token,
                    'refreshToken': refresh_token,
                    'expiresAt': expires_at.astimezone(timezone.utc).isoformat(),
                    'updatedAt': datetime.now(timezone.utc).isoformat(),
                }
            },
            merge=True,
        )

    async def append_step_response(
        self,
        user_id: str,
        automation_id: str,
        step_id: str,
        response: dict[str, Any],
    ) -> None:
        """Append one generated response to a step document's ``responses`` list."""
        path = f"{self.steps_path(user_id, automation_id)}/{step_id}"
        data = await self.store.get(path) or {}
        responses = list(data.get('responses') or [])
        responses.append(response)
        await self.store.set(path, {'responses': responses}, merge=True)
