import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from crhp_content.exceptions import ConfigurationError
from crhp_content.loaders import load_lesson_content, load_store_dump, parse_lesson_content
from crhp_content.models import LessonContentConfig

DATA_DIR = Path(__file__).resolve().parents[1] / "data"


def make_content(**overrides):
    content = {
        "title": "Test lesson",
        "termIds": ["segregation"],
        "sources": [{"interviewId": "Little_Rock_Nine", "clipId": "segment_12"}],
    }
    content.update(overrides)
    return content


# --- lesson content ------------------------------------------------------------


def test_bundled_lesson_plan_is_valid():
    content = load_lesson_content(DATA_DIR / "lesson_plan.json")

    assert content.title
    assert "segregation" in content.term_ids
    assert content.sources[0].key == "Little_Rock_Nine::segment_12"
    assert content.sources[0].prompts


def test_parse_lesson_content_accepts_snake_case_keys():
    content = parse_lesson_content(
        {"term_ids": ["a"], "sources": [{"interview_id": "i", "clip_id": "c"}]}
    )
    assert content.term_ids == ("a",)
    assert content.sources[0].interview_id == "i"


def test_lesson_content_is_immutable():
    content = parse_lesson_content(make_content())

    with pytest.raises(ValidationError):
        content.title = "changed"


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({"termIds": ["segregation", "segregation"]}, "duplicate term id"),
        ({"termIds": ["  "]}, "termIds[0] is empty"),
        (
            {"sources": [
                {"interviewId": "A", "clipId": "c1"},
                {"interviewId": "A", "clipId": "c1"},
            ]},
            "duplicate source",
        ),
        ({"sources": [{"interviewId": "", "clipId": "c1"}]}, "interviewId is empty"),
        ({"sources": [{"interviewId": "__", "clipId": "segment_12"}]}, "no characters besides separators"),
        ({"sources": [{"interviewId": "- -", "clipId": "segment_12"}]}, "no characters besides separators"),
        ({"sources": [{"interviewId": "A::B", "clipId": "c1"}]}, "reserved separator"),
        ({"sources": [{"interviewId": "same", "clipId": "same"}]}, "self-referential"),
    ],
)
def test_parse_lesson_content_rejects_bad_entries(overrides, expected):
    with pytest.raises(ConfigurationError) as excinfo:
        parse_lesson_content(make_content(**overrides))

    assert any(expected in problem for problem in excinfo.value.problems)


def test_parse_lesson_content_reports_every_problem():
    data = make_content(
        termIds=["", "x", "x"],
        sources=[{"interviewId": "same", "clipId": "same"}],
    )

    with pytest.raises(ConfigurationError) as excinfo:
        parse_lesson_content(data)

    joined = " | ".join(excinfo.value.problems)
    assert "is empty" in joined
    assert "duplicate term id" in joined
    assert "self-referential" in joined


def test_parse_lesson_content_rejects_wrong_types():
    with pytest.raises(ConfigurationError) as excinfo:
        parse_lesson_content(make_content(sources=[{"interviewId": "A"}]))
    assert any("clipId" in p for p in excinfo.value.problems)


def test_parse_lesson_content_rejects_non_object():
    with pytest.raises(ConfigurationError):
        parse_lesson_content(["segregation"])


def test_direct_construction_also_validates():
    with pytest.raises(ValidationError):
        LessonContentConfig(term_ids=("a", "a"))


def test_load_lesson_content_missing_file(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        load_lesson_content(tmp_path / "missing.json")


def test_load_lesson_content_invalid_json(tmp_path: Path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_lesson_content(path)


# --- store dumps ---------------------------------------------------------------


def test_load_store_dump_wrapped_and_direct(tmp_path: Path):
    docs = {"glossary": {"segregation": {"eventTopic": "Segregation"}}}

    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"collections": docs}), encoding="utf-8")
    direct = tmp_path / "direct.json"
    direct.write_text(json.dumps(docs), encoding="utf-8")

    assert load_store_dump(wrapped) == docs
    assert load_store_dump(direct) == docs


def test_load_store_dump_rejects_bad_shape(tmp_path: Path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"glossary": ["not", "a", "mapping"]}), encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_store_dump(path)
