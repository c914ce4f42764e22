"""Exception Types

All errors raised by the content layer derive from ``ContentError`` so
callers can catch the whole family at a page or CLI boundary.

A missing document is never an exception: lookups that find nothing
resolve to ``None`` in the composite view.
"""


class ContentError(Exception):
    """Base class for content layer errors."""


class StoreError(ContentError):
    """A document store read failed (I/O, permission, transport).

    Aborts the aggregation run that triggered it.
    """

    def __init__(self, message: str, collection_path: str = "", document_id: str = ""):
        super().__init__(message)
        self.collection_path = collection_path
        self.document_id = document_id


class ConfigurationError(ContentError):
    """Static configuration is missing or malformed.

    Raised at load time: an unknown active collection, or a lesson
    content descriptor with empty, duplicated or self-referential entries.
    """

    def __init__(self, message: str, problems: list[str] | None = None):
        super().__init__(message)
        self.problems = list(problems or [])
