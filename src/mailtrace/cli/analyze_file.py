"""Analyze a saved .eml file without touching the mailbox."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict, fields
from pathlib import Path

from loguru import logger

from mailtrace.application.analyzer import analyze
from mailtrace.infrastructure import get_settings, get_sqlite_store
from mailtrace.infrastructure.email.headers import split_message, tokenize_headers
from mailtrace.infrastructure.email.received_chain import chain_from_headers
from mailtrace.infrastructure.logging_config import configure_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Trace relay hops and detect the ESP of a .eml file")
    parser.add_argument("path", type=Path, help="Path to an RFC 822 message")
    parser.add_argument("--hops", action="store_true", help="Print full hop details, not just server names")
    parser.add_argument("--store", action="store_true", help="Also save the analysis to the SQLite store")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        raw = args.path.read_bytes().decode("utf-8", errors="replace")
    except OSError as e:
        logger.error(f"Cannot read {args.path}: {e}")
        return 1

    header_block, body = split_message(raw)
    record = analyze(header_block, body)

    output = {f.name: getattr(record, f.name) for f in fields(record)}
    output["relevant_headers"] = dict(record.relevant_headers)
    if args.hops:
        output["hops"] = [asdict(hop) for hop in chain_from_headers(tokenize_headers(header_block))]
    print(json.dumps(output, indent=2, default=str))

    if args.store:
        if get_sqlite_store().save(record):
            logger.info(f"Stored analysis for {record.message_id}")
        else:
            logger.info(f"Email {record.message_id} already processed")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
