from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

log = logging.getLogger("guildsmith.blueprint.heal")

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_BARE_KEY_RE = re.compile(r"([,{\s]+)([A-Za-z0-9_]+):")


def _try_parse(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def heal_json(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Best-effort extraction of one JSON object from noisy model output.

    Strips code fences and surrounding prose, drops trailing commas and, as a
    last resort, quotes bare object keys. Returns ``None`` when nothing
    parseable remains.

    Known limitation: bare-key quoting is a regex heuristic and will also
    quote ``word:`` sequences that appear inside string values (for example
    ``"see note: here"`` becomes ``"see "note": here"``), which then fails to
    parse. Such input comes back as ``None`` and the caller regenerates.
    """
    if not raw:
        return None

    cleaned = _FENCE_RE.sub("", raw.strip())

    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first == -1 or last == -1 or last < first:
        return None
    cleaned = cleaned[first:last + 1]
    parsed = _try_parse(cleaned)
    if parsed is not None:
        return parsed

    cleaned = _TRAILING_COMMA_RE.sub(r"\1", cleaned)
    parsed = _try_parse(cleaned)
    if parsed is not None:
        return parsed

    cleaned = _BARE_KEY_RE.sub(r'\1"\2":', cleaned)
    parsed = _try_parse(cleaned)
    if parsed is None:
        log.debug("heal_json gave up on %d chars of input", len(raw))
    return parsed
