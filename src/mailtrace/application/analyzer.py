"""Assemble a full analysis record from a header block and body."""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

from mailtrace.domain.entities.email_analysis import EmailAnalysisRecord
from mailtrace.infrastructure.email.esp_detector import detect_esp
from mailtrace.infrastructure.email.headers import (
    HeaderMap,
    first_header,
    parse_header_date,
    tokenize_headers,
)
from mailtrace.infrastructure.email.received_chain import chain_from_headers, hop_servers

BODY_EXCERPT_LIMIT = 1000

RELEVANT_HEADERS = (
    "received",
    "message-id",
    "from",
    "to",
    "subject",
    "date",
    "return-path",
    "reply-to",
    "x-originating-ip",
    "x-mailer",
    "x-sender",
    "authentication-results",
    "received-spf",
    "dkim-signature",
    "list-unsubscribe",
)


def extract_relevant_headers(headers: HeaderMap) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({name: headers[name] for name in RELEVANT_HEADERS if name in headers})


def generate_message_id() -> str:
    return f"generated-{time.time_ns() // 1_000_000}-{uuid.uuid4().hex}"


def analyze(
    raw_header_block: str,
    body: str,
    *,
    now: Optional[datetime] = None,
) -> EmailAnalysisRecord:
    """Tokenize, trace and classify one message.

    Never raises on malformed input. Anything missing is defaulted: message-id
    is synthesized, dates fall back to ``now`` (current UTC time unless given),
    and those fallbacks are the only non-deterministic parts of the output.
    """
    now = now or datetime.now(timezone.utc)
    headers = tokenize_headers(raw_header_block)

    chain = chain_from_headers(headers, now=now)
    esp = detect_esp(headers)

    return EmailAnalysisRecord(
        message_id=first_header(headers, "message-id") or generate_message_id(),
        subject=first_header(headers, "subject") or "No Subject",
        sender=first_header(headers, "from") or "Unknown Sender",
        to=first_header(headers, "to") or "Unknown Recipient",
        date=parse_header_date(first_header(headers, "date")) or now,
        relevant_headers=extract_relevant_headers(headers),
        receiving_chain=hop_servers(chain),
        esp_type=esp.esp_type,
        esp_confidence=esp.confidence,
        body_excerpt=body[:BODY_EXCERPT_LIMIT],
        esp_indicators=esp.indicators,
    )
