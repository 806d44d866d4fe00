import json
from typing import Any, Dict

from langsmith import traceable

REPORT_SYSTEM_PROMPT = """You are an expert digital advertising analyst. Analyze the data below and answer concisely with actionable recommendations.

AD CREATIVE LAB DATA:
{snapshot}

CONTEXT:
- "Hit rate" = % of winners among analyzed (completed) ads
- "Winner" = profitable ad, "Loser" = unprofitable ad
- Angles: fear, desire, curiosity, offer, tutorial, testimonial
- Formats: static, video, ugc, carousel
- "Money in limbo" = budget currently committed to ads in testing

Answer in markdown. Be concise but complete. Do not invent numbers that are not in the data."""


@traceable
def build_report_system_prompt(snapshot: Dict[str, Any]) -> str:
    """Render the analyst system prompt with the JSON snapshot embedded."""
    return REPORT_SYSTEM_PROMPT.format(
        snapshot=json.dumps(snapshot, indent=2, default=str, ensure_ascii=False)
    )


def build_report_user_prompt(query: str) -> str:
    return f"USER QUESTION: {query.strip()}"
