"""
Lesson Plan Aggregation

Assembles the lesson plan composite view by fetching every glossary term,
interview and clip the lesson content descriptor requires, mapping each
into a canonical record.

Policy:
- A document that does not exist is data: it becomes None in the view
- A store failure on any fetch aborts the run; outstanding fetches are
  cancelled and everything gathered so far is discarded
- Runs are numbered; only the newest run may write state, and nothing
  is written after the loader is torn down
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from .exceptions import StoreError
from .models import (
    CompositeView,
    LessonContentConfig,
    LoadState,
    RawDocument,
    SourceDetail,
)
from .normalizer import normalize_document_id
from .store import DocumentStore, clip_collection_path
from .transformers import map_clip, map_glossary_term, map_interview
from .versions import GLOSSARY_COLLECTION, get_active_collection, get_strategy

logger = logging.getLogger(__name__)

CONTENT_UNAVAILABLE_MESSAGE = "Lesson content is unavailable right now. Please try again later."

StateListener = Callable[[LoadState], Any]


async def _fetch(
    store: DocumentStore,
    collection_path: str,
    document_id: str,
) -> Optional[RawDocument]:
    """Fetch one document; None when it does not exist."""
    try:
        raw = await store.get(collection_path, document_id)
    except StoreError:
        raise
    except Exception as e:
        # any client failure is a store failure for this run
        raise StoreError(
            f"Store read failed: {e}",
            collection_path=collection_path,
            document_id=document_id,
        ) from e

    if not raw.exists:
        logger.debug("Document %s/%s does not exist", collection_path, document_id)
        return None
    return raw


async def _gather_or_abort(aws: Iterable[Awaitable[Any]]) -> List[Any]:
    """Run awaitables concurrently; on the first failure cancel the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        # retrieve sibling outcomes so later failures are not reported as unhandled
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def build_composite_view(
    store: DocumentStore,
    content: LessonContentConfig,
    collection: str,
) -> CompositeView:
    """
    Run the fetch/normalize work for one aggregation run.

    Steps:
    1. Normalize every source's interview id for ``collection``
    2. Fetch all glossary terms, interviews and clips concurrently
    3. Map found documents; record None for missing ones

    Keys of the returned view follow descriptor order. Clip details are
    keyed by the descriptor's (logical) interview id, not the store key.

    Raises:
        StoreError: On the first store-level failure. No partial view is
            returned.
        ConfigurationError: If ``collection`` is not a known version
    """
    strategy = get_strategy(collection)
    interview_keys = [
        normalize_document_id(source.interview_id, collection)
        for source in content.sources
    ]

    jobs: List[Awaitable[Optional[RawDocument]]] = [
        _fetch(store, GLOSSARY_COLLECTION, term_id) for term_id in content.term_ids
    ]
    for source, key in zip(content.sources, interview_keys):
        jobs.append(_fetch(store, collection, key))
        jobs.append(
            _fetch(
                store,
                clip_collection_path(collection, key, strategy.clip_subcollection),
                source.clip_id,
            )
        )

    results = await _gather_or_abort(jobs)

    term_results = results[: len(content.term_ids)]
    source_results = results[len(content.term_ids):]

    view = CompositeView()

    for term_id, raw in zip(content.term_ids, term_results):
        view.term_details[term_id] = map_glossary_term(raw) if raw is not None else None

    for idx, (source, key) in enumerate(zip(content.sources, interview_keys)):
        interview_raw = source_results[2 * idx]
        clip_raw = source_results[2 * idx + 1]
        view.clip_details[source.key] = SourceDetail(
            interview=map_interview(interview_raw, collection) if interview_raw is not None else None,
            clip=map_clip(clip_raw, collection, interview_id=key) if clip_raw is not None else None,
        )

    return view


class LessonPlanLoader:
    """Drives aggregation runs for one lesson plan page.

    Holds the page's ``LoadState`` and notifies subscribers whenever it
    changes. A run starts on first use and again whenever the active
    collection changes; ``refresh`` forces one.

    Example:
        >>> loader = LessonPlanLoader(store, content)
        >>> state = await loader.ensure_current()
        >>> state.view.term_details["segregation"]
    """

    def __init__(
        self,
        store: DocumentStore,
        content: LessonContentConfig,
        resolve_collection: Callable[[], str] = get_active_collection,
    ):
        self._store = store
        self._content = content
        self._resolve_collection = resolve_collection
        self._state = LoadState()
        self._generation = 0
        self._collection: Optional[str] = None
        self._alive = True
        self._listeners: List[StateListener] = []

        # Fail fast on a missing or unknown active collection
        get_strategy(self._resolve_collection())

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def alive(self) -> bool:
        return self._alive

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def teardown(self) -> None:
        """Stop all state updates. In-flight fetches are left to finish."""
        if self._alive:
            logger.debug("Lesson plan loader torn down at run %d", self._generation)
        self._alive = False
        self._listeners.clear()

    async def ensure_current(self) -> LoadState:
        """Start a run if none has started or the active collection changed."""
        collection = self._resolve_collection()
        if self._generation == 0 or collection != self._collection:
            if self._collection is not None and collection != self._collection:
                logger.info(
                    "Active collection changed %s -> %s; reloading lesson content",
                    self._collection,
                    collection,
                )
            return await self.refresh(collection)
        return self._state

    async def refresh(self, collection: Optional[str] = None) -> LoadState:
        """
        Run one aggregation and return the loader state afterwards.

        Store failures never propagate: they end the run in the error
        state. If a newer run started meanwhile, or the loader was torn
        down, this run's result is discarded.
        """
        if not self._alive:
            logger.debug("refresh() ignored: loader torn down")
            return self._state

        if collection is None:
            collection = self._resolve_collection()
        get_strategy(collection)

        self._generation += 1
        generation = self._generation
        self._collection = collection

        self._apply(
            generation,
            LoadState(loading=True, collection=collection, generation=generation),
        )

        t0 = time.time()
        logger.info(
            "Run %d: loading lesson content %r from %s (%d terms, %d sources)",
            generation,
            self._content.title,
            collection,
            len(self._content.term_ids),
            len(self._content.sources),
        )

        try:
            view = await build_composite_view(self._store, self._content, collection)
        except StoreError as e:
            logger.exception(
                "Run %d failed reading %s/%s; lesson content unavailable",
                generation,
                e.collection_path,
                e.document_id,
            )
            self._apply(
                generation,
                LoadState(
                    loading=False,
                    error=CONTENT_UNAVAILABLE_MESSAGE,
                    collection=collection,
                    generation=generation,
                ),
            )
            return self._state

        missing_terms = sum(1 for term in view.term_details.values() if term is None)
        logger.info(
            "✓ Run %d completed in %.2fs (terms missing: %d/%d)",
            generation,
            time.time() - t0,
            missing_terms,
            len(view.term_details),
        )
        self._apply(
            generation,
            LoadState(loading=False, view=view, collection=collection, generation=generation),
        )
        return self._state

    def _apply(self, generation: int, state: LoadState) -> bool:
        if not self._alive:
            logger.debug("Discarding run %d state: loader torn down", generation)
            return False
        if generation != self._generation:
            logger.info(
                "Discarding stale run %d (current run is %d)", generation, self._generation
            )
            return False

        self._state = state
        for listener in list(self._listeners):
            listener(state)
        return True
