"""Lesson Content Validation Script

Checks a lesson content descriptor before it ships:
  - File is a JSON object with the expected fields and types
  - Term ids and (interviewId, clipId) pairs are non-empty and unique
  - Ids do not contain the composite key separator
  - No source points at itself

Optionally resolves each source's store key for a collection version so
content authors can see which documents will be read.

Usage:
    python -m crhp_content.scripts.validate_content \\
        --path data/lesson_plan.json \\
        --collection metadataV2

Exits with code 0 on success, 1 on validation failure, 2 on argument error.
"""

import argparse
import json
from pathlib import Path
from typing import Any, List

from crhp_content.exceptions import ConfigurationError
from crhp_content.loaders import parse_lesson_content
from crhp_content.normalizer import normalize_document_id
from crhp_content.versions import get_strategy


def load_descriptor(path: Path) -> Any:
    """Read the descriptor JSON without validating it."""
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def validate_descriptor(data: Any) -> List[str]:
    """Return the list of problems with a decoded descriptor ([] if valid)."""
    try:
        parse_lesson_content(data)
    except ConfigurationError as e:
        return e.problems or [str(e)]
    return []


def main(argv: list[str] | None = None) -> None:
    """Validate a lesson content descriptor.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Raises:
        SystemExit: With code 0 on success, 1 on validation failure
    """
    parser = argparse.ArgumentParser(
        description="Validate a lesson content descriptor."
    )
    parser.add_argument(
        "--path",
        type=str,
        required=True,
        help="Path to the lesson content JSON file",
    )
    parser.add_argument(
        "--collection",
        type=str,
        default=None,
        help="If given, print the store key each source resolves to "
             "in this collection version.",
    )
    args = parser.parse_args(argv)

    path = Path(args.path)

    try:
        data = load_descriptor(path)
    except Exception as e:
        print(f"FAILED TO LOAD FILE: {e}")
        raise SystemExit(1)

    problems = validate_descriptor(data)
    if problems:
        print("VALIDATION FAILED:\n")
        for problem in problems:
            print(problem)
        print(f"\nTotal problems: {len(problems)}")
        raise SystemExit(1)

    content = parse_lesson_content(data)

    print("VALIDATION PASSED")
    print(f"Terms: {len(content.term_ids)}")
    print(f"Sources: {len(content.sources)}")

    if args.collection:
        try:
            strategy = get_strategy(args.collection)
        except ConfigurationError as e:
            print(f"\nUNKNOWN COLLECTION: {e}")
            raise SystemExit(1)
        print(f"\nStore keys in {strategy.name}:")
        for source in content.sources:
            key = normalize_document_id(source.interview_id, strategy.name)
            print(f"  {source.key} -> {key}/{strategy.clip_subcollection}/{source.clip_id}")

    raise SystemExit(0)


if __name__ == "__main__":
    main()
