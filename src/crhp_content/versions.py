"""Collection Versions Module

Each logical collection in the document store is one schema generation of
the archive. Everything that differs between generations lives in the
``COLLECTION_STRATEGIES`` table below:

  - how a human/logical interview id becomes a store key
  - which sub-collection holds an interview's clips
  - which raw field names feed each canonical field

The id normalizer and the entity mappers both read this table, so adding
a collection version means adding one entry here.

Environment variables:
  CRHP_ACTIVE_COLLECTION: Required. Name of the collection to read from.
"""

import os
from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .exceptions import ConfigurationError

ACTIVE_COLLECTION_ENV = "CRHP_ACTIVE_COLLECTION"

# Glossary terms are shared by every archive version
GLOSSARY_COLLECTION = "glossary"


class CollectionStrategy(BaseModel):
    """Version-specific naming rules for one collection."""

    model_config = ConfigDict(frozen=True)

    name: str
    id_case: Literal["preserve", "lower"] = "preserve"
    id_separator: Optional[str] = None
    clip_subcollection: str
    # canonical field -> raw field names, first present wins
    interview_fields: Dict[str, Tuple[str, ...]]
    clip_fields: Dict[str, Tuple[str, ...]]


COLLECTION_STRATEGIES: Dict[str, CollectionStrategy] = {
    # Original archive: keys keep their display casing
    "interviewSummaries": CollectionStrategy(
        name="interviewSummaries",
        id_case="preserve",
        id_separator="_",
        clip_subcollection="subSummaries",
        interview_fields={
            "document_name": ("documentName", "name"),
            "role_simplified": ("roleSimplified", "role"),
            "interviewee": ("interviewee", "intervieweeName"),
            "video_url": ("videoEmbedLink", "videoUrl"),
            "interview_date": ("interviewDate", "date"),
        },
        clip_fields={
            "topic": ("topic",),
            "summary": ("summary",),
            "timestamp": ("timestamp",),
        },
    ),
    # Re-ingested archive: snake_case fields, lowercase keys
    "metadataV2": CollectionStrategy(
        name="metadataV2",
        id_case="lower",
        id_separator="_",
        clip_subcollection="clips",
        interview_fields={
            "document_name": ("document_name", "documentName"),
            "role_simplified": ("role_simplified", "roleSimplified"),
            "interviewee": ("interviewee_name", "interviewee"),
            "video_url": ("video_url", "videoEmbedLink"),
            "interview_date": ("interview_date", "interviewDate"),
        },
        clip_fields={
            "topic": ("clip_topic", "topic"),
            "summary": ("clip_summary", "summary"),
            "timestamp": ("start_time", "timestamp"),
        },
    ),
}


def get_strategy(collection: str) -> CollectionStrategy:
    """Look up the strategy for a collection.

    Raises:
        ConfigurationError: If the collection is not a known version
    """
    strategy = COLLECTION_STRATEGIES.get(collection)
    if strategy is None:
        raise ConfigurationError(
            f"Unknown collection {collection!r}; expected one of "
            f"{sorted(COLLECTION_STRATEGIES)}"
        )
    return strategy


def get_active_collection() -> str:
    """Return the collection this process reads from.

    Depends only on the ``CRHP_ACTIVE_COLLECTION`` environment variable.
    There is no default: a missing or unknown value fails fast so a
    misconfigured deployment never silently reads the wrong archive.

    Raises:
        ConfigurationError: If the variable is unset, blank or unknown
    """
    value = (os.getenv(ACTIVE_COLLECTION_ENV) or "").strip()
    if not value:
        raise ConfigurationError(
            f"{ACTIVE_COLLECTION_ENV} is not set; cannot resolve the active collection"
        )
    get_strategy(value)
    return value
