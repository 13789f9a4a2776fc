"""Mailbox monitor - polls for new test emails and analyzes them."""

from __future__ import annotations

import signal
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from loguru import logger

from mailtrace.application.ports.analysis_store import AnalysisStore
from mailtrace.application.ports.email_source import EmailSource
from mailtrace.application.use_cases.analyze_email import AnalyzeEmailUseCase
from mailtrace.infrastructure import Settings, get_settings, get_sqlite_store
from mailtrace.infrastructure.email.providers.imap.client import ImapConfig, ImapEmailSource
from mailtrace.infrastructure.logging_config import configure_logging


@dataclass
class WorkerStats:
    """Track worker statistics."""
    total_processed: int = 0
    total_errors: int = 0
    last_poll: datetime | None = None
    polls_completed: int = 0


class EmailWorker:
    """
    Single-mailbox analysis worker.

    On start it processes the most recent test emails already in the
    mailbox, then polls for unseen ones at a fixed interval. Cycles run
    one at a time on this thread, so at most one fetch is ever in flight.
    """

    def __init__(
        self,
        settings: Settings,
        store: AnalysisStore,
        source: EmailSource | None = None,
    ):
        self.settings = settings
        self.poll_interval = settings.poll_interval_seconds
        self.source = source or ImapEmailSource(ImapConfig.from_settings(settings))
        self.use_case = AnalyzeEmailUseCase(
            source=self.source,
            store=store,
            subject_prefix=settings.test_subject_prefix,
            test_email_address=settings.test_email_address,
        )
        self.running = False
        self.stats = WorkerStats()

    def poll_once(self, initial: bool = False) -> int:
        """Run one fetch-and-process cycle. Returns the number stored."""
        self.stats.last_poll = datetime.now(timezone.utc)
        logger.info(f"Starting poll cycle #{self.stats.polls_completed + 1}")

        count = 0
        try:
            if initial:
                count = self.use_case.run(
                    unseen_only=False,
                    limit=self.settings.initial_fetch_limit,
                )
            else:
                count = self.use_case.run(unseen_only=True)
            self.stats.total_processed += count
        except Exception as e:
            self.stats.total_errors += 1
            logger.error(f"Poll cycle failed: {e}")
            # drop the connection so the next cycle reconnects
            self.source.disconnect()

        self.stats.polls_completed += 1
        self._log_stats()
        return count

    def _log_stats(self) -> None:
        """Log current worker statistics."""
        logger.info(
            f"Worker stats: "
            f"polls={self.stats.polls_completed}, "
            f"processed={self.stats.total_processed}, "
            f"errors={self.stats.total_errors}"
        )

    def _handle_shutdown(self, signum, frame) -> None:
        """Handle graceful shutdown."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.running = False

    def run(self) -> int:
        """Run the worker loop."""
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

        test_email = self.use_case.test_email_config()
        logger.info(f"Monitoring {self.settings.imap_folder} for {test_email.email}")
        logger.info(f"Test subject prefix: {self.settings.test_subject_prefix}")
        logger.info(f"Poll interval: {self.poll_interval} seconds")

        self.running = True

        # Catch up on test emails that arrived while we were down
        self.poll_once(initial=True)

        while self.running:
            logger.debug(f"Sleeping for {self.poll_interval} seconds...")

            # Sleep in small increments to respond to signals quickly
            sleep_remaining = self.poll_interval
            while sleep_remaining > 0 and self.running:
                sleep_time = min(sleep_remaining, 1)
                time.sleep(sleep_time)
                sleep_remaining -= sleep_time

            if self.running:
                self.poll_once()

        self.source.disconnect()
        logger.info("Worker shutdown complete")
        self._log_stats()
        return 0


def main() -> int:
    """Entry point for the mailbox worker."""
    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("=" * 60)
    logger.info(f"{settings.app_name} worker v{settings.app_version}")
    logger.info("=" * 60)

    if not settings.imap_enabled:
        logger.warning("IMAP credentials not provided. Email monitoring disabled.")
        return 1

    worker = EmailWorker(settings=settings, store=get_sqlite_store())
    return worker.run()


if __name__ == "__main__":
    raise SystemExit(main())
