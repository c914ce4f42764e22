"""Entity Mapping Module

Converts raw store documents into canonical records.

Key responsibilities:
  - Resolve field-name drift between collection versions using the
    strategy table in ``versions``
  - Normalize scalar values (blank strings become absent, clip offsets
    stored as seconds become HH:MM:SS)
  - Never raise: an unknown collection or malformed document yields a
    record carrying only the document id
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional, Tuple
import logging
import math

from .models import ClipRecord, GlossaryTerm, InterviewRecord, RawDocument
from .versions import COLLECTION_STRATEGIES

logger = logging.getLogger(__name__)

# Glossary documents are shared across versions but were written by hand
GLOSSARY_FIELDS: Dict[str, Tuple[str, ...]] = {
    "event_topic": ("eventTopic", "event_topic", "topic"),
    "description": ("description", "definition"),
}


def normalize_optional_str(value: Any) -> Optional[str]:
    """Normalize a scalar to a stripped string, or None.

    Empty strings, containers and booleans become None.
    """
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (str, int, float)):
        return None
    s = str(value).strip()
    return s if s else None


def normalize_timestamp(value: Any) -> Optional[str]:
    """Normalize a clip offset.

    Numeric offsets are seconds and are rendered as ``HH:MM:SS``
    (724 -> "00:12:04"). Strings are kept as written.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value) or value < 0:
            return None
        total = int(value)
        hours, rest = divmod(total, 3600)
        minutes, seconds = divmod(rest, 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return normalize_optional_str(value)


def _first_present(
    data: Mapping,
    names: Tuple[str, ...],
    normalize: Callable[[Any], Optional[str]],
) -> Optional[str]:
    """Return the first candidate field that survives ``normalize``."""
    for name in names:
        normalized = normalize(data.get(name))
        if normalized is not None:
            return normalized
    return None


def _extract(
    data: Any,
    field_map: Dict[str, Tuple[str, ...]],
    doc_id: str,
    normalizers: Optional[Dict[str, Callable[[Any], Optional[str]]]] = None,
) -> Dict[str, str]:
    """Pick and normalize each canonical field; absent fields are left out."""
    if not isinstance(data, Mapping):
        logger.warning(
            "Document %r has no field mapping (got %s); keeping id only",
            doc_id,
            type(data).__name__,
        )
        return {}

    normalizers = normalizers or {}
    fields: Dict[str, str] = {}
    for field, names in field_map.items():
        normalize = normalizers.get(field, normalize_optional_str)
        if (value := _first_present(data, names, normalize)) is not None:
            fields[field] = value
    return fields


def map_interview(raw: RawDocument, collection: str) -> InterviewRecord:
    """Map a raw interview document to an InterviewRecord.

    The record id is always ``raw.id``. Optional fields missing from the
    document are left unset; defaults belong to presentation code.
    """
    strategy = COLLECTION_STRATEGIES.get(collection)
    if strategy is None:
        logger.warning("map_interview: unknown collection %r for doc %r", collection, raw.id)
        return InterviewRecord(id=raw.id)

    fields = _extract(raw.data, strategy.interview_fields, raw.id)
    return InterviewRecord(id=raw.id, **fields)


def map_clip(
    raw: RawDocument,
    collection: str,
    interview_id: Optional[str] = None,
) -> ClipRecord:
    """Map a raw clip (sub-summary) document to a ClipRecord.

    Args:
        raw: Clip document read from the interview's clip sub-collection
        collection: Collection version the document was read from
        interview_id: Store key of the parent interview, if known
    """
    strategy = COLLECTION_STRATEGIES.get(collection)
    if strategy is None:
        logger.warning("map_clip: unknown collection %r for doc %r", collection, raw.id)
        return ClipRecord(id=raw.id, interview_id=interview_id)

    fields = _extract(
        raw.data,
        strategy.clip_fields,
        raw.id,
        normalizers={"timestamp": normalize_timestamp},
    )
    return ClipRecord(id=raw.id, interview_id=interview_id, **fields)


def map_glossary_term(raw: RawDocument) -> GlossaryTerm:
    """Map a glossary document. Terms do not depend on collection version."""
    fields = _extract(raw.data, GLOSSARY_FIELDS, raw.id)
    return GlossaryTerm(**fields)
