#!/usr/bin/env python3
"""Command-line entry point for the offline FairPlay sample.

Usage:
    offline-fairplay

    # Skip Event Hub and poll every 30 seconds
    offline-fairplay --no-events --poll-interval 30

    # Unattended run (no ENTER prompt before cleanup)
    offline-fairplay --no-prompt
"""

import argparse
import logging
import sys

from pydantic import ValidationError

from ..shared.config import get_settings
from ..shared.exceptions import MediaWorkflowError
from .runner import run_offline_fairplay

LOGGER_SERVICES = ("provisioning", "job-monitor", "streaming", "workflow")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Encode a sample video, protect it with offline FairPlay and print an HLS URL.",
    )
    parser.add_argument(
        "--no-events",
        action="store_true",
        help="Poll job status instead of listening on Event Hub",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        help="Seconds between job status polls (default: POLL_INTERVAL_SECONDS or 60)",
    )
    parser.add_argument(
        "--event-timeout",
        type=float,
        help="Seconds to wait for Event Hub before polling (default: 1800)",
    )
    parser.add_argument(
        "--no-prompt",
        action="store_true",
        help="Do not wait for ENTER before cleaning up",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override LOG_LEVEL",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Error: invalid configuration\n{e}", file=sys.stderr)
        return 2

    overrides = {}
    if args.poll_interval is not None:
        overrides["poll_interval_seconds"] = args.poll_interval
    if args.event_timeout is not None:
        overrides["event_wait_timeout_seconds"] = args.event_timeout
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if overrides:
        settings = settings.model_copy(update=overrides)

    for service in LOGGER_SERVICES:
        logging.getLogger(service).setLevel(settings.log_level)

    prompt = (lambda _text: "") if args.no_prompt else input

    try:
        result = run_offline_fairplay(
            settings=settings,
            prompt=prompt,
            use_events=not args.no_events,
        )
    except MediaWorkflowError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    if result.cleanup and not result.cleanup.is_clean:
        for failure in result.cleanup.failures:
            print(f"Cleanup failed for {failure.resource} '{failure.name}': {failure.error}", file=sys.stderr)

    return 0 if result.is_success and result.error is None else 1


if __name__ == "__main__":
    sys.exit(main())
