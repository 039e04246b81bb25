"""
Pytest configuration and shared fixtures.

Key fixtures:
- transcript_doc / transcript: the two-item meeting used across adapter tests
- store / repository: in-memory document store and repository
- make_ctx: ExportContext factory bound to the repository
- make_transport: httpx.MockTransport factory that records requests

No network access or provider credentials are needed: every provider call
goes through an httpx.MockTransport.
"""

import json
import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

# Load environment variables
from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from meeting_export.adapters.base import ExportContext, RunCache
from meeting_export.clients.document_store import InMemoryDocumentStore
from meeting_export.models.automation import StepType
from meeting_export.models.transcript import TranscriptData
from meeting_export.repository import ExportRepository

USER_ID = 'ana@example.com'

# 2026-01-15T10:30:00Z
MEETING_SECONDS = 1768473000


@pytest.fixture
def transcript_doc() -> dict[str, Any]:
    """Stored transcript: notes plus one plain and one described, done item."""
    return {
        'timestamp': {'seconds': MEETING_SECONDS, 'nanoseconds': 0},
        'name': 'Q3 Planning',
        'notes': 'Discussed Q3 roadmap',
        'transcript': 'Ana: We ship v2 this month.\nBen: I will email the client about pricing.',
        'tags': ['roadmap'],
        'attendees': [
            {'email': 'ben@example.com', 'name': 'Ben Carter'},
            {'email': 'cleo@example.com'},
        ],
        'actionItems': [
            {'id': 'ai_1', 'title': 'Ship v2', 'done': False},
            {'id': 'ai_2', 'title': 'Email client', 'description': 're: pricing', 'done': True},
        ],
    }


@pytest.fixture
def transcript(transcript_doc) -> TranscriptData:
    return TranscriptData.from_document('mtg_001', transcript_doc)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def repository(store) -> ExportRepository:
    return ExportRepository(store)


@pytest.fixture
def make_ctx(repository) -> Callable[..., ExportContext]:
    """Build an ExportContext for a step, sharing one RunCache per test."""
    cache = RunCache()

    def _make(step_type: StepType, step_id: str = 'step_1', automation_id: str = 'auto_1'):
        return ExportContext(
            run_id='run_test',
            user_id=USER_ID,
            automation_id=automation_id,
            step_id=step_id,
            step_type=step_type,
            repository=repository,
            cache=cache,
        )

    return _make


@pytest.fixture
def make_transport():
    """
    Factory for recording mock transports.

    Usage:
        transport, requests = make_transport(handler)
    where ``handler(request) -> httpx.Response``.
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        return httpx.MockTransport(_record), requests

    return _make


def request_json(request: httpx.Request) -> Any:
    """Decode a recorded request body."""
    return json.loads(request.content.decode())
