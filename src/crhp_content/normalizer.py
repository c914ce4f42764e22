"""Document Id Normalization

Maps a logical interview id (as written in lesson content, e.g.
``"Little_Rock_Nine"``) to the key it is stored under in a given
collection version. Rules come from the collection strategy table.
"""

import re
import logging

from .exceptions import ConfigurationError
from .versions import get_strategy

logger = logging.getLogger(__name__)

# Runs of whitespace, hyphens and underscores collapse to one separator
SEPARATOR_RUN = re.compile(r"[\s\-_]+")


def normalize_document_id(logical_id: str, collection: str) -> str:
    """
    Normalize a logical id to the store key for ``collection``.

    Steps (each driven by the collection's strategy):
    1. Trim surrounding whitespace
    2. Collapse separator runs to the collection's separator and trim
       separators from both ends
    3. Apply the collection's key casing

    Every step is idempotent, so normalizing an already-normalized key
    returns it unchanged. No I/O is performed.

    Raises:
        ConfigurationError: If ``collection`` is not a known version, or
            the id normalizes to an empty key
    """
    strategy = get_strategy(collection)

    key = str(logical_id).strip()

    if strategy.id_separator is not None:
        key = SEPARATOR_RUN.sub(strategy.id_separator, key).strip(strategy.id_separator)

    if strategy.id_case == "lower":
        key = key.lower()

    if not key:
        raise ConfigurationError(
            f"Interview id {logical_id!r} normalizes to an empty key for collection {collection}"
        )

    if key != logical_id:
        logger.debug("Normalized id %r -> %r for collection %s", logical_id, key, collection)

    return key
