"""Header block tokenizing for raw RFC 822 text.

Deliberately lenient: a block from an arbitrary sender is tokenized line by
line, malformed lines are skipped and nothing here raises on bad input.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Mapping, Optional

HeaderMap = Mapping[str, tuple[str, ...]]

_LINE_SPLIT = re.compile(r"\r?\n")


def tokenize_headers(raw: str) -> dict[str, tuple[str, ...]]:
    """Turn a raw header block into a HeaderMap.

    Folded continuation lines are joined onto the field in progress with a
    single space. Repeated fields keep every occurrence in the order they
    appear (``Received`` repeats once per relay hop).
    """
    fields: dict[str, list[str]] = {}
    name: Optional[str] = None
    value = ""

    def flush() -> None:
        if name:
            fields.setdefault(name.lower(), []).append(value)

    for line in _LINE_SPLIT.split(raw):
        if line[:1].isspace():
            if name:
                value += " " + line.strip()
        elif ":" in line:
            flush()
            head, _, tail = line.partition(":")
            name = head.strip()
            value = tail.strip()
        # neither folded nor a field: malformed, dropped

    flush()
    return {key: tuple(values) for key, values in fields.items()}


def header_values(headers: HeaderMap, name: str) -> tuple[str, ...]:
    return headers.get(name.lower(), ())


def first_header(headers: HeaderMap, name: str) -> Optional[str]:
    values = header_values(headers, name)
    return values[0] if values else None


def split_message(raw: str) -> tuple[str, str]:
    """Split a raw message into (header block, body) at the first blank line."""
    crlf = raw.find("\r\n\r\n")
    lf = raw.find("\n\n")

    if crlf != -1 and (lf == -1 or crlf <= lf):
        return raw[:crlf], raw[crlf + 4:]
    if lf != -1:
        return raw[:lf], raw[lf + 2:]
    return raw, ""


def parse_header_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 2822 (or ISO 8601) date; ``None`` when it can't be read.

    Naive results are taken to be UTC.
    """
    if not value or not value.strip():
        return None
    text = value.strip()

    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError, OverflowError):
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
