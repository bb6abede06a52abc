from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Optional

from .utils import local_timezone_name


RESPONSE_SCHEMA: Dict[str, Any] = {
    "name": "DateInterpretation",
    "schema": {
        "type": "object",
        "required": ["value"],
        "properties": {
            "value": {
                "type": "string",
                "description": (
                    "REQUIRED: A valid, parseable ISO 8601 date string with timezone. "
                    "Format: YYYY-MM-DDTHH:mm:ss±HH:mm (e.g., 2025-10-15T12:30:00+08:00). "
                    "Must be parseable by Python's datetime.fromisoformat. "
                    'NEVER use relative terms like "tomorrow" or "next week".'
                ),
            },
            "timezone": {
                "type": "string",
                "description": 'Named IANA timezone of the resolved date (e.g., "Asia/Shanghai").',
            },
            "confidence": {
                "type": "number",
                "description": "Confidence score between 0 and 1.",
            },
            "reasoning": {
                "type": "string",
                "description": "Brief explanation of how the date was interpreted.",
            },
        },
        "additionalProperties": True,
    },
}

# Appended to the user prompt for backends without constrained output.
JSON_FORMAT_INSTRUCTION = """IMPORTANT: You must respond with ONLY valid JSON in this exact format (no additional text):
{
  "value": "YYYY-MM-DDTHH:mm:ss±HH:mm",
  "timezone": "timezone string or null",
  "confidence": number between 0-1,
  "reasoning": "brief explanation"
}"""


def build_system_prompt(*, timezone: Optional[str] = None, now: datetime) -> str:
    """Compose the system instruction shared by every model-backed provider.

    Sections: Critical Rules, Resolution Rules, Context. The resolution rules are
    fixed; changing them changes how models resolve vague input.
    """
    tz = timezone or local_timezone_name()
    now_iso = now.astimezone().isoformat(timespec="seconds")

    return f"""You are a date parsing assistant. Interpret natural language date expressions and respond strictly in JSON.

CRITICAL RULES:
- You MUST output a complete, specific, parseable date and time (year, month, day, hour, minute, second).
- You MUST use valid ISO 8601 format with timezone: YYYY-MM-DDTHH:mm:ss±HH:mm
  * Example: 2025-10-15T12:30:00+08:00
  * Note: HH, mm, ss are all 2 digits (00-23, 00-59, 00-59)
  * WRONG: 2025-10-04T00:0000+08:00 (4 digits for seconds)
  * RIGHT: 2025-10-04T00:00:00+08:00 (2 digits for each component)
- NEVER output vague, ambiguous, or unparseable values like "tomorrow", "next week", "soon", "later", etc.
- NEVER output relative time expressions or text descriptions.
- ALWAYS output an actual ISO 8601 timestamp that can be parsed as an absolute instant.

Resolution rules for vague inputs:
- "tomorrow" → calculate tomorrow's date at 00:00:00
- "next week" → calculate next Monday at 00:00:00
- "March" → next March 1st at 00:00:00
- "3pm" → today at 15:00:00
- "afternoon" → today at 12:00:00
- "this weekend" → this Saturday at 00:00:00

Context:
- If timezone is missing, assume {tz}
- Current reference time: {now_iso}
- Output must follow the provided JSON schema

REMEMBER: The "value" field MUST be a valid ISO 8601 string with a UTC offset that can be parsed successfully."""
