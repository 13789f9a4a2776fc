"""Analyze incoming test emails and store one record per Message-ID."""

from __future__ import annotations

import time
from typing import Optional

from loguru import logger

from mailtrace.application.analyzer import analyze
from mailtrace.application.ports.analysis_store import AnalysisStore
from mailtrace.application.ports.email_source import EmailSource, RawEmail
from mailtrace.domain.entities.email_analysis import EmailAnalysisRecord
from mailtrace.domain.models import ConnectionStatus, TestEmailConfig
from mailtrace.infrastructure.email.headers import split_message


class AnalyzeEmailUseCase:
    """Fetch, analyze and store test emails.

    Flow:
    1. Fetch test emails from the source (subject carries the test prefix)
    2. Split each raw message into header block and body
    3. Analyze (receiving chain + ESP classification)
    4. Skip if the Message-ID is already stored, otherwise store

    One failing message is logged and never aborts the batch.
    """

    def __init__(
        self,
        source: EmailSource,
        store: AnalysisStore,
        subject_prefix: str = "ANALYZER-TEST",
        test_email_address: Optional[str] = None,
    ) -> None:
        self.source = source
        self.store = store
        self.subject_prefix = subject_prefix
        self.test_email_address = test_email_address or source.account

    def run(self, unseen_only: bool = True, limit: Optional[int] = None) -> int:
        """Process available test emails. Returns the number stored."""
        emails = self.source.fetch(unseen_only=unseen_only, limit=limit)
        logger.info(f"Received {len(emails)} email(s) to analyze")

        count = 0
        for raw in emails:
            try:
                if self.process_raw(raw) is not None:
                    count += 1
            except Exception as e:
                logger.error(f"Failed to process UID {raw.uid}: {e}")

        return count

    def process_raw(self, raw: RawEmail) -> Optional[EmailAnalysisRecord]:
        """Analyze and store a single message.

        Returns the stored record, or None if the Message-ID was already processed.
        A storage failure is recorded against the Message-ID and re-raised.
        """
        text = raw.rfc822_bytes.decode("utf-8", errors="replace")
        header_block, body = split_message(text)
        record = analyze(header_block, body)

        try:
            if self.store.exists(record.message_id):
                logger.info(f"Email {record.message_id} already processed")
                return None

            if not self.store.save(record):
                return None
        except Exception as e:
            self._mark_failed(record.message_id, e)
            raise

        logger.info(f"Successfully processed email: {record.message_id} (ESP: {record.esp_type})")
        return record

    def _mark_failed(self, message_id: str, error: Exception) -> None:
        try:
            self.store.mark_failed(message_id, str(error))
        except Exception as e:
            logger.error(f"Could not record failure for {message_id}: {e}")

    def test_email_config(self) -> TestEmailConfig:
        """Address and a fresh subject line for sending a test message."""
        return TestEmailConfig(
            email=self.test_email_address,
            subject=f"{self.subject_prefix}-{time.time_ns() // 1_000_000}",
        )

    def connection_status(self) -> ConnectionStatus:
        return ConnectionStatus(
            connected=self.source.is_connected,
            email=self.test_email_address,
        )
