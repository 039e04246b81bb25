"""
Adapter registry: StepType -> ProviderAdapter, built once at startup.
"""

from datetime import datetime
from typing import Any, Callable, Iterator

import httpx

from ..clients.hubspot_client import HubSpotClient
from ..clients.linear_client import LinearClient
from ..clients.monday_client import MondayClient
from ..clients.notion_client import NotionClient
from ..clients.openai_client import OpenAIClient
from ..clients.salesforce_client import SalesforceClient
from ..clients.slack_client import SlackClient
from ..models.automation import StepType
from .base import ProviderAdapter
from .hubspot import HubSpotAdapter, HubSpotTokenRefresher, utcnow
from .insights import InsightAdapter
from .linear import LinearAdapter
from .monday import MondayAdapter
from .notion import NotionAdapter
from .salesforce import SalesforceAdapter
from .slack import SlackAdapter


class AdapterRegistry:
    """Lookup of the adapter serving each step type."""

    def __init__(self, adapters: list[ProviderAdapter] | None = None):
        self._adapters: dict[StepType, ProviderAdapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: ProviderAdapter) -> None:
        self._adapters[adapter.step_type] = adapter

    def get(self, step_type: StepType) -> ProviderAdapter | None:
        return self._adapters.get(step_type)

    def __contains__(self, step_type: StepType) -> bool:
        return step_type in self._adapters

    def __iter__(self) -> Iterator[StepType]:
        return iter(self._adapters)

    def __len__(self) -> int:
        return len(self._adapters)


def build_adapter_registry(
    openai_client: OpenAIClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    hubspot_client_id: str | None = None,
    hubspot_client_secret: str | None = None,
    clock: Callable[[], datetime] = utcnow,
    **client_kwargs: Any,
) -> AdapterRegistry:
    """
    Build the default registry with one client per provider.

    Each provider gets its own client, and so its own concurrency limit.
    The AI insights adapter is only registered when an OpenAI client is
    given.

    Args:
        openai_client: Client for ai-insights steps (optional)
        transport: httpx transport shared by all provider clients (tests)
        hubspot_client_id: OAuth app id for token refresh
        hubspot_client_secret: OAuth app secret for token refresh
        clock: Time source for token-expiry checks
        **client_kwargs: Passed to every ProviderHttpClient (timeout, retries, ...)
    """
    client_kwargs['transport'] = transport

    hubspot = HubSpotClient(**client_kwargs)
    adapters: list[ProviderAdapter] = [
        NotionAdapter(NotionClient(**client_kwargs)),
        SlackAdapter(SlackClient(**client_kwargs)),
        HubSpotAdapter(
            hubspot,
            HubSpotTokenRefresher(
                hubspot,
                client_id=hubspot_client_id,
                client_secret=hubspot_client_secret,
                clock=clock,
            ),
        ),
        LinearAdapter(LinearClient(**client_kwargs)),
        MondayAdapter(MondayClient(**client_kwargs)),
        SalesforceAdapter(SalesforceClient(**client_kwargs)),
    ]
    if openai_client is not None:
        adapters.append(InsightAdapter(openai_client))
    return AdapterRegistry(adapters)
