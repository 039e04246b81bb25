"""
External service clients for the meeting export pipeline.
"""

from .document_store import DocumentStore, InMemoryDocumentStore
from .http import ProviderHttpClient
from .hubspot_client import HubSpotClient
from .linear_client import LinearClient
from .monday_client import MondayClient
from .notion_client import NotionClient
from .openai_client import OpenAIClient
from .postgres_store import PostgresDocumentStore
from .salesforce_client import SalesforceClient
from .slack_client import SlackClient

__all__ = [
    'DocumentStore',
    'InMemoryDocumentStore',
    'PostgresDocumentStore',
    'ProviderHttpClient',
    'NotionClient',
    'SlackClient',
    'HubSpotClient',
    'LinearClient',
    'MondayClient',
    'SalesforceClient',
    'OpenAIClient',
]
