"""
Formatting helpers shared by the provider adapters.
"""

from datetime import datetime, timezone

from .models.transcript import TranscriptData


def format_timestamp(value: datetime) -> str:
    """Human-readable meeting time, e.g. 'January 15, 2026 at 10:30 AM UTC'."""
    utc = value.astimezone(timezone.utc)
    hour = utc.strftime('%I').lstrip('0') or '12'
    return f"{utc.strftime('%B')} {utc.day}, {utc.year} at {hour}:{utc.strftime('%M %p')} UTC"


def meeting_attribution(transcript: TranscriptData) -> str:
    """Footer linking an exported item back to its meeting."""
    return (
        f"Created from meeting: {transcript.display_name}\n"
        f"Timestamp: {format_timestamp(transcript.timestamp)}"
    )


def describe_with_attribution(description: str, transcript: TranscriptData) -> str:
    """Action item description followed by the meeting attribution footer."""
    footer = meeting_attribution(transcript)
    if description:
        return f"{description}\n\n{footer}"
    return footer


def truncate(text: str, limit: int, suffix: str = '…') -> str:
    """Cut text to at most ``limit`` characters."""
    if len(text) <= limit:
        return text
    return text[: max(limit - len(suffix), 0)] + suffix


def chunk_text(text: str, size: int) -> list[str]:
    """Split text into consecutive pieces of at most ``size`` characters."""
    if not text:
        return ['']
    return [text[i : i + size] for i in range(0, len(text), size)]
