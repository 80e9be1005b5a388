"""Local scheduled runner for RSS Slack Bot."""

import argparse
import sys
import time
from datetime import UTC, datetime

from dotenv import load_dotenv

from .config import Config
from .lambda_handler import execute
from .logging_config import create_execution_logger, setup_structured_logging


def run_once(config: Config) -> dict:
    """Run one sync pass with a fresh execution ID."""
    execution_id = f"local_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    logger = create_execution_logger("main", execution_id)
    metrics = execute(config, execution_id)
    logger.log_metrics(metrics)
    return metrics


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    config = Config()

    parser = argparse.ArgumentParser(
        prog="rss-slack-bot",
        description="Summarize new RSS articles and post them to Slack.",
    )
    parser.add_argument(
        "--once", action="store_true", help="Run a single pass and exit"
    )
    parser.add_argument(
        "--interval-hours",
        type=float,
        default=None,
        help="Hours between passes (default: SCHEDULE_INTERVAL_HOURS or 6)",
    )
    parser.add_argument("--log-level", default=config.log_level)
    args = parser.parse_args(argv)

    setup_structured_logging(args.log_level)
    logger = create_execution_logger("main")

    try:
        if args.interval_hours is None:
            interval_hours = config.get_schedule_config().interval_hours
        elif args.interval_hours > 0:
            interval_hours = args.interval_hours
        else:
            raise ValueError(
                f"--interval-hours must be a positive number, got {args.interval_hours}"
            )
        feed_count = len(config.get_feed_urls())
        logger.info(f"Monitoring {feed_count} RSS feed(s)", feed_count=feed_count)
        run_once(config)
    except ValueError as e:
        logger.error(f"Configuration error: {e}", error=str(e))
        return 1
    except Exception as e:
        logger.error(f"Initial run failed: {e}", error=str(e))
        return 1

    if args.once:
        return 0

    interval_seconds = interval_hours * 3600
    logger.info(
        f"Scheduled workflow every {interval_hours} hours",
        interval_hours=interval_hours,
    )
    # No overlap: the next pass starts only after the previous one returned
    while True:
        time.sleep(interval_seconds)
        logger.info("Running scheduled workflow")
        try:
            run_once(config)
        except Exception as e:
            logger.error(f"Scheduled run failed: {e}", error=str(e))


if __name__ == "__main__":
    sys.exit(main())
