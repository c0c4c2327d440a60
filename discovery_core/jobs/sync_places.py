"""CLI job running one venue sync pass against the configured backend.

Usage:
    discovery-sync [--max-pages N] [--only LABEL ...]

Exit codes: 0 on success, 1 when the pass aborts, 2 on configuration errors.
The JSON report (partial on abort) is printed to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from discovery_core.core.config import settings
from discovery_core.core.container import ServiceContainer
from discovery_core.core.errors import SyncAppError, ValidationAppError
from discovery_core.core.logging import configure_logging
from discovery_core.core.sync_config import TULUM_SEARCHES, select_searches
from discovery_core.schemas.sync import SyncReport
from discovery_core.schemas.venue import SearchConfig

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_CONFIG = 2


async def run_sync(
    *,
    searches: Sequence[SearchConfig] = TULUM_SEARCHES,
    max_pages: int | None = None,
    container: ServiceContainer | None = None,
) -> SyncReport:
    """Run one pass and drop cached provider responses afterwards.

    Raises:
        ValidationAppError: If storage or provider configuration is missing.
        SyncAppError: If the pass aborts (carries the partial report).
    """
    services = container or ServiceContainer.from_settings(settings)
    try:
        pipeline = services.build_pipeline(searches=searches, max_pages=max_pages)
        try:
            return await pipeline.run_pass()
        finally:
            await services.invalidate_places_cache()
    finally:
        await services.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sync venues from Google Places into storage")
    parser.add_argument(
        "--max-pages",
        dest="max_pages",
        type=int,
        default=settings.sync.max_pages,
        help="Maximum number of result pages per search configuration",
    )
    parser.add_argument(
        "--only",
        dest="only",
        action="append",
        metavar="LABEL",
        help="Run only the search with this keyword/type label (repeatable)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.max_pages < 1:
        parser.error("--max-pages must be >= 1")
    try:
        searches = select_searches(args.only)
    except ValueError as exc:
        parser.error(str(exc))

    configure_logging(settings.log)

    try:
        report = asyncio.run(run_sync(searches=searches, max_pages=args.max_pages))
    except ValidationAppError as exc:
        logger.error("sync.config_error", extra={"error_code": exc.code, "error": exc.message})
        return EXIT_CONFIG
    except SyncAppError as exc:
        if exc.report is not None:
            print(exc.report.model_dump_json(indent=2))
        return EXIT_ABORTED

    print(report.model_dump_json(indent=2))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
