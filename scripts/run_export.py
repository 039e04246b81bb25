#!/usr/bin/env python3
"""
Run one export for a user from the command line.

Documents come either from Postgres (DATABASE_URL) or, with --documents,
from a JSON file mapping document paths to document bodies, loaded into an
in-memory store. Provider calls are real: the credentials in the documents
must be valid for the steps to succeed.

Usage:
    python scripts/run_export.py ana@example.com
    python scripts/run_export.py ana@example.com --documents examples/sample_documents.json
    python scripts/run_export.py ana@example.com --concurrent --json
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / '.env')

from meeting_export.adapters.registry import build_adapter_registry
from meeting_export.clients.document_store import InMemoryDocumentStore
from meeting_export.clients.openai_client import OpenAIClient
from meeting_export.clients.postgres_store import PostgresDocumentStore
from meeting_export.config import config
from meeting_export.dispatcher import ExportDispatcher, ExportResult
from meeting_export.logging import configure_logging
from meeting_export.repository import ExportRepository


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Export a user\'s latest meeting to their integrations.')
    parser.add_argument('user_id', help='User id (the users/{user} document id, usually an email)')
    parser.add_argument('--documents', type=Path, help='JSON file of {path: document} to load in memory')
    parser.add_argument('--concurrent', action='store_true', help='Run steps concurrently')
    parser.add_argument('--json', action='store_true', help='Print the raw result as JSON')
    return parser.parse_args()


def print_result(result: ExportResult) -> None:
    print(f"\n{'=' * 70}")
    print(f"EXPORT {result.run_id} for {result.user_id}")
    print('=' * 70)
    if not result.success:
        print(f"  FAILED ({result.error_type}): {result.error}")
        return

    print(f"  Transcript: {result.transcript_id}")
    for step in result.steps:
        marker = 'ok ' if step.ok else 'ERR'
        detail = step.error or step.reason or ''
        print(f"  [{marker}] {step.type:<12} {step.status.value:<14} {step.step_id}  {detail}")
    print(f"\n  Total time: {result.export_time_ms} ms")


async def main() -> int:
    args = parse_args()
    configure_logging(json_output=config.LOG_JSON, log_level=config.LOG_LEVEL)

    missing = config.validate()
    if missing:
        print(f"Warning: {', '.join(missing)} not set; expiring HubSpot tokens cannot be refreshed", file=sys.stderr)

    postgres: PostgresDocumentStore | None = None
    if args.documents:
        with open(args.documents) as f:
            store = InMemoryDocumentStore(json.load(f))
    else:
        database_url = os.getenv('DATABASE_URL')
        if not database_url:
            print('DATABASE_URL is not set and no --documents file was given', file=sys.stderr)
            return 2
        postgres = PostgresDocumentStore(database_url)
        await postgres.connect()
        store = postgres

    openai = OpenAIClient() if os.getenv('OPENAI_API_KEY') else None

    try:
        dispatcher = ExportDispatcher(
            repository=ExportRepository(store),
            registry=build_adapter_registry(openai_client=openai),
            concurrent=args.concurrent,
        )
        result = await dispatcher.export(args.user_id)
    finally:
        if postgres is not None:
            await postgres.close()
        if openai is not None:
            await openai.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result)
    return 0 if result.success else 1


if __name__ == '__main__':
    sys.exit(asyncio.run(main()))
