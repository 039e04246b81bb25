"""
Prompts for AI insight steps.

An insight step carries a free-text instruction (e.g. "list the objections
the customer raised"); the model answers it against the meeting transcript.
"""

INSIGHT_SYSTEM_PROMPT = """You are an AI assistant that analyzes meeting transcripts based on specific criteria.
Generate insights that are clear, actionable, and valuable for business decision-making.
Be concise and specific in your findings. Do not invent facts that are not supported by the transcript."""


INSIGHT_USER_PROMPT_TEMPLATE = """Based on this meeting transcript, {description}

Insight name: {name}
Meeting: {meeting_name}

Meeting Transcript:
{transcript}

Please provide specific insights that match this criteria."""


def build_insight_prompt(
    description: str,
    transcript: str,
    meeting_name: str,
    name: str = '',
) -> list[dict[str, str]]:
    """
    Build chat messages for one insight step.

    Args:
        description: The step's instruction
        transcript: Full meeting transcript text
        meeting_name: Meeting title
        name: Insight name shown to the user

    Returns:
        List of message dicts for the chat API
    """
    user_content = INSIGHT_USER_PROMPT_TEMPLATE.format(
        description=description.strip(),
        name=name or 'Untitled insight',
        meeting_name=meeting_name,
        transcript=transcript,
    )
    return [
        {'role': 'system', 'content': INSIGHT_SYSTEM_PROMPT},
        {'role': 'user', 'content': user_content},
    ]
