"""
TranscriptData and ActionItem models.

TranscriptData is the immutable summary of one meeting. It is produced by the
transcription pipeline and read once per export run; no adapter may mutate it.

Stored timestamps come in several shapes (structured ``{seconds, nanoseconds}``
records, raw epoch milliseconds, ISO strings). They are normalized here, once,
when the record is loaded, so adapters only ever see a UTC ``datetime``.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)

UNTITLED_MEETING = 'Untitled Meeting'

_TRUTHY_STRINGS = frozenset({'true', '1', 'yes', 'y', 'on', 'done', 'completed'})


def _from_epoch(amount: float, scale: float = 1, nanos: float = 0) -> datetime | None:
    try:
        return datetime.fromtimestamp(amount / scale + nanos / 1e9, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def normalize_timestamp(value: Any, now: datetime | None = None) -> datetime:
    """
    Normalize a stored meeting timestamp to a timezone-aware UTC datetime.

    Accepts:
    - datetime (naive values are assumed to be UTC)
    - {'seconds': int, 'nanoseconds': int} (also '_seconds' / '_nanoseconds')
    - int/float epoch milliseconds, or a numeric string of them
    - ISO-8601 string

    Anything else, including epoch values outside the representable range,
    falls back to ``now`` rather than failing.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    epoch: tuple[float, float, float] | None = None
    if isinstance(value, dict):
        seconds = value.get('seconds', value.get('_seconds'))
        nanos = value.get('nanoseconds', value.get('_nanoseconds', 0)) or 0
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            if not isinstance(nanos, (int, float)) or isinstance(nanos, bool):
                nanos = 0
            epoch = (seconds, 1, nanos)

    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        epoch = (value, 1000, 0)

    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            epoch = (float(text), 1000, 0)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
            except ValueError:
                pass
            else:
                return normalize_timestamp(parsed)

    if epoch is not None:
        converted = _from_epoch(*epoch)
        if converted is not None:
            return converted

    logger.warning('transcript.timestamp_unrecognized', value_type=type(value).__name__)
    return now or datetime.now(timezone.utc)


class ActionItem(BaseModel):
    """One task extracted from a meeting. Read-only during export."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str = Field(..., min_length=1, validation_alias=AliasChoices('title', 'text'))
    description: str = ''
    done: bool = False

    @field_validator('id', mode='before')
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is None or value == '':
            return uuid4().hex
        return str(value)

    @field_validator('title', mode='before')
    @classmethod
    def _strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator('description', mode='before')
    @classmethod
    def _coerce_description(cls, value: Any) -> str:
        if value is None:
            return ''
        return str(value).strip()

    @field_validator('done', mode='before')
    @classmethod
    def _coerce_done(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY_STRINGS
        return bool(value)


class Attendee(BaseModel):
    """A meeting participant, identified by email."""

    model_config = ConfigDict(frozen=True)

    email: str
    name: str | None = None


class TranscriptData(BaseModel):
    """
    Immutable summarized output of one meeting.

    Field aliases follow the stored document shape (``actionItems``); the
    Python attribute names are snake case.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = None
    timestamp: datetime
    name: str = ''
    notes: str | None = None
    transcript: str = ''
    action_items: tuple[ActionItem, ...] = Field(default=(), alias='actionItems')
    attendees: tuple[Attendee, ...] = ()
    tags: tuple[str, ...] = ()

    @field_validator('timestamp', mode='before')
    @classmethod
    def _normalize_timestamp(cls, value: Any) -> datetime:
        return normalize_timestamp(value)

    @field_validator('name', 'transcript', mode='before')
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return '' if value is None else str(value)

    @field_validator('action_items', mode='before')
    @classmethod
    def _collect_action_items(cls, value: Any) -> list[Any]:
        if value is None:
            return []
        if isinstance(value, dict):
            # Stored either as a list or as a map keyed by item id
            value = [
                {'id': key, **item} if isinstance(item, dict) and 'id' not in item else item
                for key, item in value.items()
            ]
        kept = []
        for item in value:
            if isinstance(item, dict):
                title = item.get('title', item.get('text'))
                if not isinstance(title, str) or not title.strip():
                    logger.warning('transcript.action_item_dropped', item_id=item.get('id'))
                    continue
            kept.append(item)
        return kept

    @field_validator('attendees', mode='before')
    @classmethod
    def _collect_attendees(cls, value: Any) -> list[Any]:
        if not value:
            return []
        return [{'email': a} if isinstance(a, str) else a for a in value]

    @field_validator('tags', mode='before')
    @classmethod
    def _collect_tags(cls, value: Any) -> list[str]:
        if not value:
            return []
        return [str(t) for t in value]

    @property
    def display_name(self) -> str:
        """Meeting name with the untitled fallback applied."""
        return self.name.strip() or UNTITLED_MEETING

    @property
    def has_notes(self) -> bool:
        return bool(self.notes and self.notes.strip())

    @classmethod
    def from_document(cls, doc_id: str | None, data: dict[str, Any]) -> 'TranscriptData':
        """Build from a stored transcript document."""
        payload = dict(data)
        payload.setdefault('id', doc_id)
        payload.setdefault('timestamp', None)
        return cls.model_validate(payload)
