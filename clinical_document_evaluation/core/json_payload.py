"""
JSON Payload Extraction from Model Responses

Models asked for JSON still wrap it in markdown fences or chatty text now
and then. extract_json_payload() recovers the object without raising.

Author: Shubham Singh
Date: December 2025
"""

import json
import re
from typing import Any, Optional


_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json_payload(raw: Optional[str]) -> Optional[Any]:
    """
    Pull a JSON value out of a model response.

    Strategies, in order:
        1. The whole response is JSON
        2. JSON inside a markdown code fence
        3. The outermost {...} span in the text

    Returns:
        Decoded JSON, or None if no strategy succeeds
    """
    text = (raw or "").strip()

    candidates = [text]
    fence = _FENCE_PATTERN.search(text)
    if fence:
        candidates.append(fence.group(1).strip())
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None
