"""Rebuild the relay path of a message from its ``Received`` headers."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from loguru import logger

from mailtrace.domain.entities.receiving_hop import ReceivingHop
from mailtrace.infrastructure.email.headers import HeaderMap, header_values, parse_header_date

_FROM = re.compile(r"from\s+([^\s;]+)", re.IGNORECASE)
_BY = re.compile(r"by\s+([^\s;]+)", re.IGNORECASE)
_WITH = re.compile(r"with\s+([^\s;]+)", re.IGNORECASE)
_IPV4 = re.compile(r"\[(\d+\.\d+\.\d+\.\d+)\]")


def _token(pattern: re.Pattern[str], text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1) if match else None


def parse_received(received: str, position: int, now: datetime) -> ReceivingHop:
    """Parse one ``Received`` value; ``position`` is 1-based."""
    from_host = _token(_FROM, received)
    by_host = _token(_BY, received)

    timestamp = None
    if ";" in received:
        timestamp = parse_header_date(received.rpartition(";")[2])

    return ReceivingHop(
        server=from_host or by_host or f"server-{position}",
        timestamp=timestamp or now,
        ip=_token(_IPV4, received),
        by_server=by_host,
        with_protocol=_token(_WITH, received),
    )


def build_receiving_chain(
    received: Sequence[str],
    now: Optional[datetime] = None,
) -> tuple[ReceivingHop, ...]:
    """Build the hop chain, earliest hop first.

    ``received`` is in header order. Each relay prepends its own line, so
    header order is newest first and the parsed hops are reversed.
    """
    now = now or datetime.now(timezone.utc)
    hops: list[ReceivingHop] = []

    for position, line in enumerate(received, start=1):
        try:
            hops.append(parse_received(line, position, now))
        except Exception as e:
            logger.warning(f"Dropping unparsable Received header #{position}: {e}")

    hops.reverse()
    return tuple(hops)


def chain_from_headers(headers: HeaderMap, now: Optional[datetime] = None) -> tuple[ReceivingHop, ...]:
    return build_receiving_chain(header_values(headers, "received"), now=now)


def hop_servers(chain: Iterable[ReceivingHop]) -> tuple[str, ...]:
    return tuple(hop.server for hop in chain)
