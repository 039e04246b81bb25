"""
AI insights adapter.

Generates one insight from the transcript per the step's instruction and
appends it to the step document's ``responses`` list.
"""

from datetime import datetime, timezone

from openai import OpenAIError

from ..clients.openai_client import OpenAIClient
from ..errors import PartialSuccessResult, ProviderApiError
from ..models.automation import InsightStepConfig, StepType
from ..models.transcript import TranscriptData
from ..prompts.insights import build_insight_prompt
from .base import ExportContext, ProviderAdapter


class InsightAdapter(ProviderAdapter):
    step_type = StepType.AI_INSIGHTS
    provider_name = 'OpenAI'

    def __init__(self, client: OpenAIClient, max_tokens: int = 1000):
        self.client = client
        self.max_tokens = max_tokens

    async def export(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        config: InsightStepConfig,
        credential: None = None,
    ) -> PartialSuccessResult:
        result = PartialSuccessResult()
        if not transcript.transcript.strip():
            ctx.log.info('insights.empty_transcript')
            return result

        messages = build_insight_prompt(
            config.description,
            transcript.transcript,
            transcript.display_name,
            name=config.name,
        )
        try:
            content = await self.client.chat_completion(messages, max_tokens=self.max_tokens)
        except OpenAIError as e:
            raise ProviderApiError(
                f"Insight generation failed: {e}",
                provider=self.provider_name,
                status_code=getattr(e, 'status_code', None),
            ) from e

        if not content.strip():
            raise ProviderApiError('Insight generation returned no content', provider=self.provider_name)

        await ctx.repository.append_step_response(
            ctx.user_id,
            ctx.automation_id,
            ctx.step_id,
            {
                'content': content,
                'meeting': transcript.display_name,
                'date': transcript.timestamp.isoformat(),
                'createdAt': datetime.now(timezone.utc).isoformat(),
            },
        )
        ctx.log.info('insights.generated', insight_name=config.name, length=len(content))
        result.add_success(item_id=ctx.step_id, data={'length': len(content)})
        return result
