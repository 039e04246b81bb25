"""
LLM prompts for the meeting export pipeline.
"""

from .insights import (
    INSIGHT_SYSTEM_PROMPT,
    build_insight_prompt,
)

__all__ = [
    'INSIGHT_SYSTEM_PROMPT',
    'build_insight_prompt',
]
