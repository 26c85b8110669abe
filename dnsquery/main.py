"""Main entry point for DNS Query."""

import asyncio
import json
import logging
import sys
from typing import List

from dnsquery.config import Config
from dnsquery.models.subject import Subject
from dnsquery.services.logger import setup_logging
from dnsquery.services.orchestrator import LookupOrchestrator
from dnsquery.services.resolver import ResolverAdapter


logger = logging.getLogger(__name__)


def main(argv: List[str] | None = None) -> int:
    """Look up the subjects given on the command line and print JSON outcomes.

    Args:
        argv: Domains and IP addresses; defaults to sys.argv[1:].

    Returns:
        int: Exit code (0 for success, 1 for fatal error).
    """
    args = sys.argv[1:] if argv is None else argv

    setup_logging()
    logger.info("Starting DNS Query")

    try:
        config = Config.from_env()
        if config.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        if not args:
            raise ValueError("At least one domain or IP address is required")

        subjects = [Subject.from_value(arg) for arg in args]
        logger.info(f"Looking up {len(subjects)} subject(s)")

        resolver = ResolverAdapter(timeout=config.dns_timeout)
        orchestrator = LookupOrchestrator(
            resolver,
            max_subjects_at_a_time=config.max_subjects_at_a_time,
            max_tasks_at_a_time=config.max_tasks_at_a_time,
        )
        outcomes = asyncio.run(orchestrator.run(subjects, config.to_options()))

        print(json.dumps([outcome.to_json() for outcome in outcomes], indent=2))
        return 0

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    sys.exit(main())
