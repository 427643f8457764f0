"""
BreachWatch - Post Parser
Turns free-form model output into a PostDraft.

Parsing is two-stage: strict JSON first, then regex extraction of a fenced
```json block or the outermost {...} object. Anything that still fails,
including JSON that does not match the PostDraft schema, collapses to a
templated post built from the breach fields, so a draft always comes back.
"""

import json
import logging
import re
from datetime import date
from typing import NamedTuple, Optional

from pydantic import ValidationError as SchemaError

from models import DEFAULT_READ_TIME, GENERIC_RECOMMENDATIONS, PostDraft

logger = logging.getLogger(__name__)

FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
BARE_OBJECT = re.compile(r"\{[\s\S]*\}")
NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


class ParsedPost(NamedTuple):
    draft: PostDraft
    degraded: bool


def _loads_object(candidate: str) -> Optional[dict]:
    try:
        value = json.loads(candidate)
    except (ValueError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def extract_json_object(text: str) -> Optional[dict]:
    """Best-effort: return the first JSON object found in `text`, or None."""
    text = (text or "").strip()
    if not text:
        return None

    parsed = _loads_object(text)
    if parsed is not None:
        return parsed

    fenced = FENCED_JSON.search(text)
    if fenced:
        parsed = _loads_object(fenced.group(1))
        if parsed is not None:
            return parsed

    bare = BARE_OBJECT.search(text)
    if bare:
        return _loads_object(bare.group(0))
    return None


def degraded_post(name: str, affected_count: Optional[str], raw_text: str) -> PostDraft:
    """Minimal post from breach fields; the raw model text becomes the body."""
    return PostDraft(
        title=f"{name} Data Breach Analysis",
        excerpt=f"Analysis of the {name} data breach affecting {affected_count or 'millions of'} users.",
        content=(raw_text or "").strip() or f"No further analysis is available for the {name} breach yet.",
        recommendations=list(GENERIC_RECOMMENDATIONS),
        sources=[],
        read_time=DEFAULT_READ_TIME,
    )


def parse_post(text: str, name: str, affected_count: Optional[str] = None) -> ParsedPost:
    data = extract_json_object(text)
    if data is not None:
        try:
            return ParsedPost(PostDraft.model_validate(data), degraded=False)
        except SchemaError as e:
            logger.warning("Model JSON did not match the post schema (%d errors)", e.error_count())
    else:
        logger.warning("No JSON object found in model output, using degraded post")
    return ParsedPost(degraded_post(name, affected_count, text), degraded=True)


def make_slug(name: str, breach_date: Optional[date]) -> str:
    """URL-safe slug: lowercased name with non-alphanumeric runs as hyphens, then the year."""
    base = NON_ALNUM_RUN.sub("-", (name or "").lower()).strip("-") or "breach"
    year = str(breach_date.year) if breach_date else "breach"
    return f"{base}-{year}"
