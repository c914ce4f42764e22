# tests/test_run_lesson_plan.py

import json
import logging
from pathlib import Path

import pytest

import run_lesson_plan
from crhp_content.exceptions import StoreError
from crhp_content.store import InMemoryDocumentStore
from crhp_content.versions import ACTIVE_COLLECTION_ENV

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
STORE = DATA_DIR / "sample_store.json"
CONTENT = DATA_DIR / "lesson_plan.json"


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path: Path, monkeypatch):
    """configure_logging() writes logs/ under cwd and replaces root handlers."""
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def test_cli_writes_composite_view(tmp_path: Path):
    """
    End-to-end happy path on the bundled sample data:
      - missing documents become null entries
      - numeric clip offsets are rendered as HH:MM:SS
      - clip entries are keyed by the logical interview id
    """
    output = tmp_path / "out" / "view.json"

    exit_code = run_lesson_plan.main(
        [
            "--store", str(STORE),
            "--content", str(CONTENT),
            "--collection", "metadataV2",
            "--output", str(output),
        ]
    )

    assert exit_code == 0
    view = json.loads(output.read_text(encoding="utf-8"))

    terms = view["termDetails"]
    assert terms["segregation"]["eventTopic"] == "Segregation"
    assert terms["freedom-rides"]["eventTopic"] == "Freedom Rides"
    assert terms["voting-rights"] is None

    little_rock = view["clipDetails"]["Little_Rock_Nine::segment_12"]
    assert little_rock["interview"] is None
    assert little_rock["clip"]["timestamp"] == "00:12:04"
    assert little_rock["clip"]["interviewId"] == "little_rock_nine"

    greensboro = view["clipDetails"]["Greensboro-Sit-In::segment_03"]
    assert greensboro["interview"]["id"] == "greensboro_sit_in"
    assert greensboro["interview"]["roleSimplified"] == "Student Activist"

    riders = view["clipDetails"]["Freedom Riders 1961::segment_07"]
    assert riders["interview"]["documentName"] == "Freedom Rider Interview"
    assert riders["clip"] is None


def test_cli_resolves_collection_from_environment(monkeypatch, capsys):
    monkeypatch.setenv(ACTIVE_COLLECTION_ENV, "interviewSummaries")

    exit_code = run_lesson_plan.main(["--store", str(STORE), "--content", str(CONTENT)])

    assert exit_code == 0
    view = json.loads(capsys.readouterr().out)
    greensboro = view["clipDetails"]["Greensboro-Sit-In::segment_03"]
    assert greensboro["interview"]["id"] == "Greensboro_Sit_In"
    assert view["clipDetails"]["Little_Rock_Nine::segment_12"]["clip"]["topic"] == "First day at Central High"


def test_cli_missing_collection_exits_nonzero(monkeypatch, capsys):
    monkeypatch.delenv(ACTIVE_COLLECTION_ENV, raising=False)

    exit_code = run_lesson_plan.main(["--store", str(STORE), "--content", str(CONTENT)])

    assert exit_code != 0
    assert "Configuration error" in capsys.readouterr().err


def test_cli_invalid_content_exits_nonzero(tmp_path: Path, capsys):
    content = tmp_path / "bad_lesson.json"
    content.write_text(
        json.dumps({"termIds": ["x", "x"], "sources": []}),
        encoding="utf-8",
    )

    exit_code = run_lesson_plan.main(
        ["--store", str(STORE), "--content", str(content), "--collection", "metadataV2"]
    )

    assert exit_code != 0
    assert "duplicate term id" in capsys.readouterr().err


def test_cli_store_failure_exits_nonzero_without_output(tmp_path: Path, monkeypatch):
    """A store failure ends the run in the error state; nothing is written."""

    class BrokenStore(InMemoryDocumentStore):
        async def get(self, collection_path, document_id):
            raise StoreError("transport closed", collection_path, document_id)

    monkeypatch.setattr(run_lesson_plan, "InMemoryDocumentStore", BrokenStore)
    output = tmp_path / "view.json"

    exit_code = run_lesson_plan.main(
        [
            "--store", str(STORE),
            "--content", str(CONTENT),
            "--collection", "metadataV2",
            "--output", str(output),
        ]
    )

    assert exit_code != 0
    assert not output.exists()


def test_cli_logs_high_level_messages(tmp_path: Path, capsys):
    exit_code = run_lesson_plan.main(
        [
            "--store", str(STORE),
            "--content", str(CONTENT),
            "--collection", "metadataV2",
            "--output", str(tmp_path / "view.json"),
        ]
    )

    assert exit_code == 0
    messages = capsys.readouterr().err
    assert "=== Starting lesson plan aggregation ===" in messages
    assert "Run 1: loading lesson content" in messages
    assert "Lesson plan assembled" in messages
    assert (tmp_path / "logs" / "lesson_plan.log").exists()
