"""Lesson Plan CLI Entry Point

Runs one lesson plan aggregation against a document store dump and writes
the resulting composite view as JSON. Handles argument parsing, logging
configuration and collection resolution.

Usage:
    CRHP_ACTIVE_COLLECTION=metadataV2 python -m run_lesson_plan \\
        --store data/sample_store.json --content data/lesson_plan.json
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path

from crhp_content.aggregator import LessonPlanLoader
from crhp_content.exceptions import ConfigurationError
from crhp_content.loaders import load_lesson_content
from crhp_content.store import InMemoryDocumentStore
from crhp_content.versions import get_active_collection, get_strategy


def configure_logging() -> None:
    """Configure logging with both console and file output.

    Sets up:
      - Root logger at DEBUG level
      - Console handler at INFO level for user-facing messages
      - File handler at DEBUG level for detailed troubleshooting
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "lesson_plan.log"

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    logging.getLogger("asyncio").setLevel(logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # Console handler: high-level INFO+
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # File handler: detailed DEBUG+
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicates if run multiple times
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)


def main(argv=None) -> int:
    """
    CLI entrypoint for the lesson plan aggregation.

    Returns a Unix-style exit code: 0 when the run completes, 1 when the
    configuration is invalid or the run ends in the error state.
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    parser = argparse.ArgumentParser(
        description="Assemble the lesson plan composite view from a store dump"
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=Path("data/sample_store.json"),
        help="Path to a JSON document store dump.",
    )
    parser.add_argument(
        "--content",
        type=Path,
        default=Path("data/lesson_plan.json"),
        help="Path to the lesson content descriptor.",
    )
    parser.add_argument(
        "--collection",
        default=None,
        help="Collection version to read (default: $CRHP_ACTIVE_COLLECTION).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the composite view here instead of stdout.",
    )

    args = parser.parse_args(argv)

    logger.info("=== Starting lesson plan aggregation ===")
    logger.info("Store: %s", args.store)
    logger.info("Content: %s", args.content)

    try:
        if args.collection:
            get_strategy(args.collection)
            collection = args.collection
        else:
            collection = get_active_collection()
        logger.info("Collection: %s", collection)

        content = load_lesson_content(args.content)
        store = InMemoryDocumentStore.from_json(args.store)
        loader = LessonPlanLoader(store, content, resolve_collection=lambda: collection)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        for problem in e.problems:
            logger.error("  %s", problem)
        return 1

    start_time = time.time()
    state = asyncio.run(loader.ensure_current())
    elapsed_time = time.time() - start_time

    if state.error is not None:
        logger.error("Lesson plan run failed: %s", state.error)
        return 1

    payload = json.dumps(state.view.to_dict(), ensure_ascii=False, indent=2)
    try:
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(payload, encoding="utf-8")
        else:
            sys.stdout.write(payload + "\n")
    except OSError:
        logger.exception("Failed to write composite view to %s", args.output)
        return 1

    term_details = state.view.term_details
    clip_details = state.view.clip_details
    logger.info("=" * 70)
    logger.info("Lesson plan assembled in %.2fs", elapsed_time)
    logger.info(
        "  Terms:      %d/%d found",
        sum(1 for t in term_details.values() if t is not None),
        len(term_details),
    )
    logger.info(
        "  Interviews: %d/%d found",
        sum(1 for d in clip_details.values() if d.interview is not None),
        len(clip_details),
    )
    logger.info(
        "  Clips:      %d/%d found",
        sum(1 for d in clip_details.values() if d.clip is not None),
        len(clip_details),
    )
    if args.output:
        logger.info("  Output:     %s", args.output)
    logger.info("=" * 70)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
