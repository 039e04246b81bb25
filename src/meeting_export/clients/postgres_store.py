"""
Postgres-backed DocumentStore.

Stores every document as a JSONB row keyed by its full path, using the
SQLAlchemy 2.0 async engine with asyncpg. Listing a collection returns its
documents in insertion order (``seq``).

Table:
- documents (path PK, collection, doc_id, data JSONB, seq BIGSERIAL)
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..errors import RepositoryError
from .document_store import deep_merge, split_path

logger = structlog.get_logger(__name__)

_SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS documents (
        path TEXT PRIMARY KEY,
        collection TEXT NOT NULL,
        doc_id TEXT NOT NULL,
        data JSONB NOT NULL,
        seq BIGSERIAL,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    'CREATE INDEX IF NOT EXISTS documents_collection_seq_idx ON documents (collection, seq)',
)


def _sanitize_url(url: str) -> str:
    """Remove URL query params that asyncpg does not understand.

    Hosted Postgres URLs often include ``channel_binding=require`` and
    ``sslmode=require`` which are libpq parameters. asyncpg rejects unknown
    connection params; SSL is passed via ``connect_args`` instead.
    """
    _STRIP_PARAMS = {'channel_binding', 'sslmode'}
    parsed = urlparse(url)
    if not parsed.query:
        return url
    params = parse_qs(parsed.query)
    filtered = {k: v for k, v in params.items() if k not in _STRIP_PARAMS}
    new_query = urlencode(filtered, doseq=True)
    return urlunparse(parsed._replace(query=new_query))


def _asyncpg_url(url: str) -> str:
    """Normalise the driver prefix for asyncpg."""
    url = _sanitize_url(url)
    if url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql+asyncpg://', 1)
    if url.startswith('postgresql://') and '+asyncpg' not in url:
        return url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    return url


def _load(value: Any) -> dict[str, Any]:
    """asyncpg returns JSONB as text unless a codec is registered."""
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return dict(value)


class PostgresDocumentStore:
    """
    Async Postgres DocumentStore.

    Uses SQLAlchemy 2.0 async engine with asyncpg for raw SQL execution.
    Database errors are wrapped in RepositoryError.
    """

    def __init__(self, database_url: str | None = None, require_ssl: bool = True):
        """
        Initialize with a Postgres connection URL.

        Args:
            database_url: Postgres connection URL. 'postgres://' and
                          'postgresql://' prefixes are converted to use asyncpg.
            require_ssl: Pass ssl='require' to asyncpg
        """
        self._engine: AsyncEngine | None = None
        self._database_url = database_url
        self._require_ssl = require_ssl

    async def connect(self, database_url: str | None = None) -> None:
        """
        Create the async engine. Idempotent: no-op if already connected.

        Args:
            database_url: Override the URL from __init__.
        """
        if self._engine is not None:
            return

        url = database_url or self._database_url
        if not url:
            raise ValueError('database_url is required')

        connect_args: dict[str, Any] = {'prepared_statement_cache_size': 0}
        if self._require_ssl:
            connect_args['ssl'] = 'require'

        self._engine = create_async_engine(
            _asyncpg_url(url),
            pool_size=5,
            max_overflow=5,
            pool_pre_ping=True,
            pool_timeout=30,
            connect_args=connect_args,
        )
        logger.info('postgres_store.connected')

    async def close(self) -> None:
        """Dispose of the engine and connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info('postgres_store.closed')

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError('PostgresDocumentStore is not connected. Call connect() first.')
        return self._engine

    async def verify_connectivity(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text('SELECT 1'))
            return True
        except Exception as e:
            logger.warning('postgres_store.connectivity_failed', error=str(e))
            return False

    async def setup_schema(self) -> None:
        """Create the documents table if it does not exist."""
        async with self.engine.begin() as conn:
            for statement in _SCHEMA_STATEMENTS:
                await conn.execute(text(statement))
        logger.info('postgres_store.schema_ready')

    async def get(self, path: str) -> dict[str, Any] | None:
        key = path.strip('/')
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(
                    text('SELECT data FROM documents WHERE path = :path'),
                    {'path': key},
                )
                row = result.first()
        except Exception as e:
            raise RepositoryError(f"Failed to read document: {e}", context={'path': key}) from e
        return _load(row[0]) if row is not None else None

    async def set(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        collection, doc_id = split_path(path)
        key = path.strip('/')
        try:
            async with self.engine.begin() as conn:
                if merge:
                    result = await conn.execute(
                        text('SELECT data FROM documents WHERE path = :path FOR UPDATE'),
                        {'path': key},
                    )
                    row = result.first()
                    if row is not None:
                        data = deep_merge(_load(row[0]), data)
                await conn.execute(
                    text(
                        """
                        INSERT INTO documents (path, collection, doc_id, data)
                        VALUES (:path, :collection, :doc_id, CAST(:data AS JSONB))
                        ON CONFLICT (path) DO UPDATE
                        SET data = EXCLUDED.data, updated_at = now()
                        """
                    ),
                    {
                        'path': key,
                        'collection': collection,
                        'doc_id': doc_id,
                        'data': json.dumps(data, default=str),
                    },
                )
        except Exception as e:
            raise RepositoryError(f"Failed to write document: {e}", context={'path': key}) from e

    async def list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        prefix = collection.strip('/')
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(
                    text(
                        'SELECT doc_id, data FROM documents '
                        'WHERE collection = :collection ORDER BY seq'
                    ),
                    {'collection': prefix},
                )
                rows = result.all()
        except Exception as e:
            raise RepositoryError(
                f"Failed to list collection: {e}", context={'collection': prefix}
            ) from e
        return [(row[0], _load(row[1])) for row in rows]
