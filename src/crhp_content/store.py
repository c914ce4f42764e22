"""Document Store Contract

The hosted document store is an external collaborator. The content layer
only needs point lookups by collection path and document id; nested
documents are addressed by compound path
(``<collection>/<interview key>/<clip sub-collection>``).

``InMemoryDocumentStore`` implements the contract over a plain mapping
and backs the CLI (via a JSON dump) and the tests.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

from .exceptions import StoreError
from .loaders import load_store_dump
from .models import RawDocument

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    async def get(self, collection_path: str, document_id: str) -> RawDocument:
        """Return the document snapshot (``exists=False`` when absent).

        Raises:
            StoreError: On any store-level failure
        """
        ...


def clip_collection_path(collection: str, interview_key: str, subcollection: str) -> str:
    return f"{collection}/{interview_key}/{subcollection}"


class InMemoryDocumentStore:
    """Read-only store over ``{collection_path: {document_id: data}}``."""

    def __init__(self, collections: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._collections: Dict[str, Dict[str, Any]] = {
            path: dict(docs) for path, docs in (collections or {}).items()
        }

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemoryDocumentStore":
        return cls(load_store_dump(path))

    async def get(self, collection_path: str, document_id: str) -> RawDocument:
        if not collection_path or not document_id:
            raise StoreError(
                "Invalid document reference",
                collection_path=collection_path,
                document_id=document_id,
            )

        docs = self._collections.get(collection_path, {})
        if document_id not in docs:
            logger.debug("Not found: %s/%s", collection_path, document_id)
            return RawDocument(id=document_id, exists=False)

        # Callers get their own copy; the dump is never handed out
        return RawDocument(id=document_id, exists=True, data=copy.deepcopy(docs[document_id]))
