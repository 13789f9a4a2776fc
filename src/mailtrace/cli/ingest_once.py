"""One-shot analysis of test emails waiting in the IMAP mailbox."""

from __future__ import annotations

import argparse

from loguru import logger

from mailtrace.application.use_cases.analyze_email import AnalyzeEmailUseCase
from mailtrace.infrastructure import get_settings, get_sqlite_store
from mailtrace.infrastructure.email.providers.imap.client import ImapConfig, ImapEmailSource
from mailtrace.infrastructure.logging_config import configure_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Analyze test emails from the IMAP mailbox")
    parser.add_argument("--all", action="store_true", help="Include already-seen messages, not just UNSEEN")
    parser.add_argument("--limit", type=int, default=None, help="Only process the most recent N messages")
    parser.add_argument("--config", action="store_true", help="Print the test address and subject, then exit")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        cfg = ImapConfig.from_settings(settings)
    except ValueError as e:
        logger.error(f"IMAP credentials not provided: {e}")
        return 1

    source = ImapEmailSource(cfg)
    uc = AnalyzeEmailUseCase(
        source=source,
        store=get_sqlite_store(),
        subject_prefix=settings.test_subject_prefix,
        test_email_address=settings.test_email_address,
    )

    if args.config:
        test_email = uc.test_email_config()
        print(f"Send a message to {test_email.email} with subject: {test_email.subject}")
        return 0

    try:
        count = uc.run(unseen_only=not args.all, limit=args.limit)
    except Exception as e:
        logger.error(f"Ingest failed: {e}")
        return 1
    finally:
        source.disconnect()

    print(f"Analyzed {count} new email(s) from {cfg.folder}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
