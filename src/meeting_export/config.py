"""
Configuration management for the meeting export pipeline.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Configuration settings loaded from environment."""

    # Provider HTTP behaviour
    PROVIDER_TIMEOUT_SECONDS: float = float(os.getenv('PROVIDER_TIMEOUT_SECONDS', '30'))
    PROVIDER_MAX_RETRIES: int = int(os.getenv('PROVIDER_MAX_RETRIES', '2'))
    PROVIDER_MAX_CONCURRENCY: int = int(os.getenv('PROVIDER_MAX_CONCURRENCY', '1'))

    # Dispatcher
    STEP_TIMEOUT_SECONDS: float = float(os.getenv('STEP_TIMEOUT_SECONDS', '120'))
    EXPORT_CONCURRENT: bool = _env_bool('EXPORT_CONCURRENT')

    # HubSpot OAuth app (token refresh)
    HUBSPOT_CLIENT_ID: str = os.getenv('HUBSPOT_CLIENT_ID', '')
    HUBSPOT_CLIENT_SECRET: str = os.getenv('HUBSPOT_CLIENT_SECRET', '')
    HUBSPOT_REFRESH_MARGIN_SECONDS: int = int(os.getenv('HUBSPOT_REFRESH_MARGIN_SECONDS', '300'))

    # Provider API versions
    NOTION_VERSION: str = os.getenv('NOTION_VERSION', '2022-06-28')
    MONDAY_API_VERSION: str = os.getenv('MONDAY_API_VERSION', '2024-01')
    SALESFORCE_API_VERSION: str = os.getenv('SALESFORCE_API_VERSION', 'v59.0')

    # OpenAI (ai-insights steps)
    OPENAI_API_KEY: str = os.getenv('OPENAI_API_KEY', '')
    OPENAI_CHAT_MODEL: str = os.getenv('OPENAI_CHAT_MODEL', 'gpt-4.1-mini')

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_JSON: bool = _env_bool('LOG_JSON')

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate that required configuration is present.

        Returns:
            List of missing required configuration keys
        """
        missing = []
        if not cls.HUBSPOT_CLIENT_ID:
            missing.append('HUBSPOT_CLIENT_ID')
        if not cls.HUBSPOT_CLIENT_SECRET:
            missing.append('HUBSPOT_CLIENT_SECRET')
        return missing


# Singleton config instance
config = Config()
