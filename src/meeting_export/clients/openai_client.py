"""
OpenAI client wrapper for AI insight steps.

Handles:
- Chat completions
- Retry logic with exponential backoff
"""

from openai import AsyncOpenAI
from tenacity import retry, stop_after_attempt, wait_exponential

from ..config import config


class OpenAIClient:
    """
    Async OpenAI chat client.

    Configuration via environment variables:
    - OPENAI_API_KEY: Required API key
    - OPENAI_CHAT_MODEL: Chat model (default: gpt-4.1-mini)
    """

    def __init__(
        self,
        api_key: str | None = None,
        chat_model: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        """
        Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            chat_model: Model for chat completions (defaults to OPENAI_CHAT_MODEL)
            client: Pre-built AsyncOpenAI instance (used by tests)
        """
        self.api_key = api_key or config.OPENAI_API_KEY
        if not self.api_key and client is None:
            raise ValueError('OPENAI_API_KEY environment variable is required')

        self.chat_model = chat_model or config.OPENAI_CHAT_MODEL
        self._client = client or AsyncOpenAI(api_key=self.api_key)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> str:
        """
        Get a chat completion response.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Override the default chat model
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response

        Returns:
            The assistant's response text
        """
        response = await self._client.chat.completions.create(
            model=model or self.chat_model,
            messages=messages,  # type: ignore
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ''

    async def close(self):
        """Close the client connection."""
        await self._client.close()
