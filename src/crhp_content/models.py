"""Data Models Module

Defines Pydantic models for content at each stage of an aggregation run:
raw store documents, canonical records handed to presentation code, the
static lesson content descriptor, and the composite view plus load state
produced by the orchestrator.

Canonical records use snake_case attributes with camelCase aliases so
serialized output matches the field names the presentation layer reads
(``documentName``, ``roleSimplified``, ``eventTopic`` ...).
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .normalizer import SEPARATOR_RUN

# Joins interview id and clip id in composite view keys
COMPOSITE_KEY_SEPARATOR = "::"


def composite_key(interview_id: str, clip_id: str) -> str:
    return f"{interview_id}{COMPOSITE_KEY_SEPARATOR}{clip_id}"


class RawDocument(BaseModel):
    """Document snapshot as returned by the store.

    ``data`` is whatever the store holds for the document and is not
    trusted to be a mapping. Raw documents never leave the mapping layer.
    """
    id: str
    exists: bool = True
    data: Any = None


class CanonicalRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys; absent fields are omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class InterviewRecord(CanonicalRecord):
    """Canonical interview. ``id`` is always the store document id."""
    id: str
    document_name: Optional[str] = None
    role_simplified: Optional[str] = None
    interviewee: Optional[str] = None
    video_url: Optional[str] = None
    interview_date: Optional[str] = None


class ClipRecord(CanonicalRecord):
    """Canonical clip (sub-summary), scoped to its parent interview."""
    id: str
    interview_id: Optional[str] = None
    topic: Optional[str] = None
    summary: Optional[str] = None
    timestamp: Optional[str] = None


class GlossaryTerm(CanonicalRecord):
    event_topic: Optional[str] = None
    description: Optional[str] = None


class LessonSource(BaseModel):
    """One required (interview, clip) pair and its display text."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    interview_id: str
    clip_id: str
    rationale: Optional[str] = None
    prompts: Tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return composite_key(self.interview_id, self.clip_id)


class LessonContentConfig(BaseModel):
    """Static lesson plan content descriptor.

    Immutable once validated. Semantic checks run at construction so a
    bad descriptor fails at load time instead of producing empty or
    ambiguous entries in the composite view.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str = ""
    overview: Optional[str] = None
    term_ids: Tuple[str, ...] = ()
    sources: Tuple[LessonSource, ...] = ()

    @model_validator(mode="after")
    def _check_entries(self) -> "LessonContentConfig":
        problems = find_content_problems(self)
        if problems:
            raise ValueError("; ".join(problems))
        return self


def find_content_problems(content: LessonContentConfig) -> List[str]:
    """Return human-readable problems with a content descriptor ([] if valid)."""
    problems: List[str] = []

    seen_terms: set[str] = set()
    for idx, term_id in enumerate(content.term_ids):
        if not term_id.strip():
            problems.append(f"termIds[{idx}] is empty")
        elif term_id in seen_terms:
            problems.append(f"termIds[{idx}] duplicate term id {term_id!r}")
        seen_terms.add(term_id)

    seen_keys: set[str] = set()
    for idx, source in enumerate(content.sources):
        if not source.interview_id.strip():
            problems.append(f"sources[{idx}].interviewId is empty")
        elif not SEPARATOR_RUN.sub("", source.interview_id):
            problems.append(
                f"sources[{idx}].interviewId {source.interview_id!r} has no characters besides separators"
            )
        if not source.clip_id.strip():
            problems.append(f"sources[{idx}].clipId is empty")
        for label, value in (("interviewId", source.interview_id), ("clipId", source.clip_id)):
            if COMPOSITE_KEY_SEPARATOR in value:
                problems.append(
                    f"sources[{idx}].{label} {value!r} contains reserved "
                    f"separator {COMPOSITE_KEY_SEPARATOR!r}"
                )
        if source.interview_id and source.interview_id == source.clip_id:
            problems.append(
                f"sources[{idx}] is self-referential (clipId equals interviewId {source.interview_id!r})"
            )
        if source.key in seen_keys:
            problems.append(f"sources[{idx}] duplicate source {source.key!r}")
        seen_keys.add(source.key)

    return problems


class SourceDetail(BaseModel):
    """Interview and clip resolved for one lesson source; either may be None."""
    interview: Optional[InterviewRecord] = None
    clip: Optional[ClipRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interview": self.interview.to_dict() if self.interview else None,
            "clip": self.clip.to_dict() if self.clip else None,
        }


class CompositeView(BaseModel):
    """Result of one aggregation run.

    ``term_details`` maps term id -> term (None when not found).
    ``clip_details`` maps ``"interviewId::clipId"`` -> SourceDetail.
    """
    term_details: Dict[str, Optional[GlossaryTerm]] = Field(default_factory=dict)
    clip_details: Dict[str, SourceDetail] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.term_details and not self.clip_details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "termDetails": {
                term_id: term.to_dict() if term else None
                for term_id, term in self.term_details.items()
            },
            "clipDetails": {
                key: detail.to_dict() for key, detail in self.clip_details.items()
            },
        }


class LoadState(BaseModel):
    """Load state exposed to the page view model.

    ``idle -> loading -> {done, error}``. A run that fails exposes an
    empty view; there is no partial state.
    """
    loading: bool = False
    error: Optional[str] = None
    view: CompositeView = Field(default_factory=CompositeView)
    collection: Optional[str] = None
    generation: int = 0

    @property
    def status(self) -> str:
        if self.loading:
            return "loading"
        if self.error is not None:
            return "error"
        if self.generation == 0:
            return "idle"
        return "done"
