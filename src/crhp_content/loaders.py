"""Data Loader Module

Loads the static lesson content descriptor and document store dumps
from JSON files.

Store dumps map a collection path to its documents:
  - Direct mapping: {"glossary": {"segregation": {...}}, ...}
  - Wrapped in 'collections' key: {"collections": {...}}
Nested clip collections use compound paths such as
``"metadataV2/little_rock_nine/clips"``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from .exceptions import ConfigurationError
from .models import LessonContentConfig

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"File not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e


def parse_lesson_content(data: Any) -> LessonContentConfig:
    """Validate a decoded content descriptor.

    Raises:
        ConfigurationError: With one entry in ``problems`` per defect
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Lesson content must be a JSON object, got {type(data).__name__}"
        )
    try:
        return LessonContentConfig.model_validate(data)
    except ValidationError as e:
        problems = []
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"])
            msg = err["msg"].removeprefix("Value error, ")
            if loc:
                problems.append(f"{loc}: {msg}")
            else:
                # model-level checks report all entries in one message
                problems.extend(msg.split("; "))
        raise ConfigurationError(
            f"Invalid lesson content ({len(problems)} problem(s))", problems
        ) from e


def load_lesson_content(path: str | Path) -> LessonContentConfig:
    """Load and validate a lesson content descriptor from a JSON file.

    Raises:
        ConfigurationError: If the file is missing, not JSON, or invalid
    """
    path = Path(path)
    content = parse_lesson_content(_read_json(path))
    logger.info(
        "Loaded lesson content %r from %s (%d terms, %d sources)",
        content.title,
        path,
        len(content.term_ids),
        len(content.sources),
    )
    return content


def load_store_dump(path: str | Path) -> Dict[str, Dict[str, Any]]:
    """Load a document store dump from a JSON file.

    Raises:
        ConfigurationError: If the file is missing, not JSON, or not a
            mapping of collection path -> documents
    """
    path = Path(path)
    data = _read_json(path)
    if isinstance(data, dict) and isinstance(data.get("collections"), dict):
        data = data["collections"]
    if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
        raise ConfigurationError(
            f"Store dump {path} must map collection paths to document objects"
        )
    logger.info("Loaded store dump from %s (%d collections)", path, len(data))
    return data
