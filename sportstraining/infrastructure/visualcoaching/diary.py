"""
Parsers for diary payloads.

The diary endpoints return loosely structured JSON whose exact fields
depend on how each coach set up their forms. Entries are free-form:
the date is lifted out and everything else is kept as-is. Templates
go through DiaryTemplateSchema, which coerces the vendor's loose types.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from ...core.sessions.models import DiaryEntry, DiaryForm
from .schemas import DiaryTemplateSchema

logger = logging.getLogger(__name__)


def parse_diary_entry(raw: Optional[str]) -> Optional[DiaryEntry]:
    """Split a diary payload into its date and the remaining fields."""
    if raw is None or not raw.strip():
        return None

    try:
        payload = json.loads(raw)
    except ValueError as e:
        logger.warning("Diary payload is not JSON", extra={"error": str(e)})
        return None
    if not isinstance(payload, dict):
        logger.warning("Diary payload is not a JSON object")
        return None

    date = payload.get("date")
    return DiaryEntry(
        date=str(date) if date is not None else None,
        fields={k: v for k, v in payload.items() if k != "date"},
    )


def parse_diary_template(raw: Optional[str]) -> Optional[DiaryForm]:
    """Turn a diary template into a form description."""
    if raw is None or not raw.strip():
        return None

    try:
        template = DiaryTemplateSchema.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Unrecognised diary template", extra={"error": str(e)})
        return None

    return template.to_domain()
