"""Main entry point for the job alert engine."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import signal
import sys
import threading
import time
from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Tuple

from alert_engine.config.environment import EnvironmentConfig
from alert_engine.config.exceptions import ConfigurationError
from alert_engine.config.loader import load_config
from alert_engine.config.models import AppConfig
from alert_engine.dedup import Deduplicator
from alert_engine.logging import configure_logging, get_logger
from alert_engine.matching import MatchScorer
from alert_engine.notifications import NotificationDispatcher, SMTPEmailSender, WebhookPushSender
from alert_engine.persistence import Database, PersistenceError, SqlAlertStore
from alert_engine.pipeline import AlertOrchestrator
from alert_engine.scheduler import SchedulerService, TriggerScheduler
from alert_engine.sources import SourceAggregator, build_sources

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_orchestrator(
    app_config: AppConfig, env_config: EnvironmentConfig, database: Database
) -> AlertOrchestrator:
    """Construct every collaborator and wire them into an AlertOrchestrator."""
    engine_config = app_config.engine

    aggregator = SourceAggregator(
        build_sources(app_config.sources, app_config.advanced),
        timeout_seconds=engine_config.source_timeout_seconds,
        recency_window=timedelta(days=engine_config.recency_window_days),
    )

    push_sender = None
    if app_config.push.enabled:
        push_sender = WebhookPushSender(
            env_config.push_gateway_url,
            api_token=env_config.push_api_token,
            timeout=app_config.push.timeout_seconds,
        )

    dispatcher = NotificationDispatcher(
        SMTPEmailSender(env_config, app_config.email),
        push_sender=push_sender,
        high_match_threshold=engine_config.high_match_threshold,
        max_match_notifications=engine_config.max_match_notifications,
    )

    return AlertOrchestrator(
        store=SqlAlertStore(database),
        aggregator=aggregator,
        dispatcher=dispatcher,
        scheduler=TriggerScheduler(
            immediate_min_interval=timedelta(seconds=engine_config.immediate_min_interval_seconds)
        ),
        deduplicator=Deduplicator(),
        scorer=MatchScorer(),
        max_workers=engine_config.max_concurrent_alerts,
        max_results=engine_config.max_results,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job Alert Engine - matches saved job alerts against new postings and delivers them"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--manual-run",
        action="store_true",
        help="Process due alerts once and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the job alert engine.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = parse_args(argv)
    database = None

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Job alert engine starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "manual_run": args.manual_run,
            },
        )

        database = Database(env_config.database_url)
        orchestrator = build_orchestrator(app_config, env_config, database)

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "enabled_source_count": len(app_config.get_enabled_sources()),
                "poll_interval_seconds": app_config.engine.poll_interval_seconds,
                "push_enabled": app_config.push.enabled,
            },
        )

        if args.manual_run:
            logger.info("Executing manual run", extra={"event": "service.manual_run.starting"})
            result = orchestrator.process_due_alerts()

            logger.info(
                f"Manual run completed: {result.alerts_due} alerts due, "
                f"{result.completed_count} completed, {result.failed_count} failed, "
                f"{result.deliveries_recorded} deliveries",
                extra={
                    "event": "service.manual_run.completed",
                    "duration_seconds": result.total_duration_seconds,
                    "had_errors": result.had_errors,
                    "total_jobs_found": result.total_jobs_found,
                },
            )
            return 1 if result.had_errors else 0

        shutdown_event = threading.Event()
        scheduler_service = SchedulerService(
            run_callable=orchestrator.process_due_alerts,
            interval_seconds=app_config.engine.poll_interval_seconds,
            shutdown_event=shutdown_event,
        )

        def signal_handler(signum, frame):
            logger.info(
                f"Received signal {signum}, shutting down",
                extra={"event": "service.signal_received", "signal": signum},
            )
            scheduler_service.shutdown(wait=False)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        scheduler_service.start()
        logger.info(
            "Scheduler started. Press Ctrl+C to stop",
            extra={"event": "service.daemon_mode.started"},
        )

        try:
            shutdown_event.wait()
        except KeyboardInterrupt:
            logger.info(
                "Keyboard interrupt received, shutting down",
                extra={"event": "service.keyboard_interrupt"},
            )
            scheduler_service.shutdown(wait=False)

        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except PersistenceError as e:
        print(f"Database Error: {e}", file=sys.stderr)
        logger.error(
            f"Database error: {e}",
            extra={"event": "database.error", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1
    finally:
        if database is not None:
            database.close()
        logger.info(
            "Job alert engine stopped",
            extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
        )


if __name__ == "__main__":
    sys.exit(main())
