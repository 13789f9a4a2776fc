"""Tests for receiving chain reconstruction."""

from datetime import datetime, timezone

import pytest

from mailtrace.infrastructure.email import received_chain
from mailtrace.infrastructure.email.headers import tokenize_headers
from mailtrace.infrastructure.email.received_chain import (
    build_receiving_chain,
    chain_from_headers,
    hop_servers,
    parse_received,
)

from conftest import FIXED_NOW, GMAIL_HEADERS


def test_standard_line_fields():
    hop = parse_received(
        "from mail.example.com by mx.target.com with ESMTP; Mon, 01 Jan 2024 00:00:00 +0000",
        1,
        FIXED_NOW,
    )

    assert hop.server == "mail.example.com"
    assert hop.by_server == "mx.target.com"
    assert hop.with_protocol == "ESMTP"
    assert hop.timestamp == datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
    assert hop.ip is None


@pytest.mark.parametrize(
    "line, attr, expected",
    [
        ("from a.example; Mon, 01 Jan 2024 00:00:00 +0000", "server", "a.example"),
        ("from a.example by mx.example; Mon, 01 Jan 2024 00:00:00 +0000", "by_server", "mx.example"),
        ("by mx.example; Mon, 01 Jan 2024 00:00:00 +0000", "server", "mx.example"),
        ("from a.example with ESMTP; Mon, 01 Jan 2024 00:00:00 +0000", "with_protocol", "ESMTP"),
    ],
)
def test_token_stops_at_semicolon(line, attr, expected):
    hop = parse_received(line, 1, FIXED_NOW)

    assert getattr(hop, attr) == expected


def test_semicolon_terminated_hosts_in_chain():
    headers = tokenize_headers(
        "Received: by mx.example; Mon, 01 Jan 2024 00:00:02 +0000\r\n"
        "Received: from a.example; Mon, 01 Jan 2024 00:00:01 +0000"
    )

    assert hop_servers(chain_from_headers(headers, now=FIXED_NOW)) == ("a.example", "mx.example")


def test_ip_literal_is_extracted():
    hop = parse_received(
        "from sender.example (sender.example [203.0.113.7]) by mx.example; Mon, 01 Jan 2024 00:00:00 +0000",
        1,
        FIXED_NOW,
    )

    assert hop.ip == "203.0.113.7"


def test_server_falls_back_to_by_host():
    hop = parse_received("by mx.only.example with LMTP; Mon, 01 Jan 2024 00:00:00 +0000", 1, FIXED_NOW)

    assert hop.server == "mx.only.example"
    assert hop.by_server == "mx.only.example"


def test_server_placeholder_uses_position():
    hop = parse_received("(qmail 1234 invoked); Mon, 01 Jan 2024 00:00:00 +0000", 3, FIXED_NOW)

    assert hop.server == "server-3"
    assert hop.by_server is None
    assert hop.with_protocol is None


def test_keywords_are_case_insensitive():
    hop = parse_received("FROM a.example BY b.example WITH smtp", 1, FIXED_NOW)

    assert (hop.server, hop.by_server, hop.with_protocol) == ("a.example", "b.example", "smtp")


def test_missing_date_defaults_to_now():
    hop = parse_received("from a.example by b.example", 1, FIXED_NOW)

    assert hop.timestamp == FIXED_NOW


def test_unparsable_date_defaults_to_now():
    hop = parse_received("from a.example by b.example; yesterday-ish", 1, FIXED_NOW)

    assert hop.timestamp == FIXED_NOW


def test_date_is_taken_after_last_semicolon():
    hop = parse_received(
        "from a.example by b.example; for <x@y>; Tue, 02 Jan 2024 03:04:05 +0000",
        1,
        FIXED_NOW,
    )

    assert hop.timestamp == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_chain_is_reversed_to_chronological_order():
    newest = "from relay.example by mx.dest.example; Mon, 01 Jan 2024 00:00:10 +0000"
    oldest = "from origin.example by relay.example; Mon, 01 Jan 2024 00:00:00 +0000"

    chain = build_receiving_chain([newest, oldest], now=FIXED_NOW)

    assert [hop.server for hop in chain] == ["origin.example", "relay.example"]
    assert chain[0].timestamp < chain[1].timestamp


def test_placeholder_positions_follow_header_order():
    chain = build_receiving_chain(["(a)", "(b)", "(c)"], now=FIXED_NOW)

    assert hop_servers(chain) == ("server-3", "server-2", "server-1")


def test_empty_received_gives_empty_chain():
    assert build_receiving_chain([], now=FIXED_NOW) == ()
    assert chain_from_headers({}, now=FIXED_NOW) == ()


def test_failing_line_is_dropped(monkeypatch):
    real_parse = received_chain.parse_received

    def flaky(line, position, now):
        if "boom" in line:
            raise ValueError("boom")
        return real_parse(line, position, now)

    monkeypatch.setattr(received_chain, "parse_received", flaky)

    chain = build_receiving_chain(["from b.example", "boom", "from a.example"], now=FIXED_NOW)

    assert hop_servers(chain) == ("a.example", "b.example")


def test_chain_from_real_headers():
    chain = chain_from_headers(tokenize_headers(GMAIL_HEADERS), now=FIXED_NOW)

    assert hop_servers(chain) == ("mail-sor-f41.google.com", "2002:a05:6402:1234:b0:5c2")
    origin, last = chain
    assert origin.ip == "209.85.220.41"
    assert origin.by_server == "mx.example.org"
    assert origin.with_protocol == "ESMTPS"
    assert origin.timestamp == datetime(2024, 1, 2, 18, 0, 3, tzinfo=timezone.utc)
    assert last.with_protocol == "SMTP"
    assert last.timestamp == datetime(2024, 1, 2, 18, 0, 5, tzinfo=timezone.utc)


def test_hops_are_immutable():
    hop = parse_received("from a.example", 1, FIXED_NOW)

    with pytest.raises(AttributeError):
        hop.server = "other"
