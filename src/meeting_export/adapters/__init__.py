"""
Provider adapters: one export implementation per step type.
"""

from .base import ExportContext, ProviderAdapter, RunCache
from .hubspot import HubSpotAdapter, HubSpotTokenRefresher
from .insights import InsightAdapter
from .linear import LinearAdapter
from .monday import MondayAdapter
from .notion import NotionAdapter
from .registry import AdapterRegistry, build_adapter_registry
from .salesforce import SalesforceAdapter
from .slack import SlackAdapter

__all__ = [
    'ExportContext',
    'ProviderAdapter',
    'RunCache',
    'AdapterRegistry',
    'build_adapter_registry',
    'NotionAdapter',
    'SlackAdapter',
    'HubSpotAdapter',
    'HubSpotTokenRefresher',
    'LinearAdapter',
    'MondayAdapter',
    'SalesforceAdapter',
    'InsightAdapter',
]
