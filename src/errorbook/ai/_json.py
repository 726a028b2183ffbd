from __future__ import annotations

import json
import re
from typing import Any, Optional

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)(?:\n?```)?\s*$", re.DOTALL)


def extract_json_object(text: str) -> Optional[dict[str, Any]]:
    """Best-effort recovery of a JSON object from a model reply.

    Strips a markdown code fence, then tries the span between the first `{`
    and the last `}`. Returns None when nothing parses to a dict.
    """

    s = (text or "").strip()
    m = _CODE_FENCE_RE.match(s)
    if m:
        s = m.group(1).strip()

    start = s.find("{")
    end = s.rfind("}")
    if start == -1 or end <= start:
        return None

    try:
        data = json.loads(s[start : end + 1])
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
