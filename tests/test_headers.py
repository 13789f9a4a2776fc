"""Tests for header tokenizing and message splitting."""

from datetime import datetime, timezone

from mailtrace.infrastructure.email.headers import (
    first_header,
    header_values,
    parse_header_date,
    split_message,
    tokenize_headers,
)


def test_repeated_received_preserves_count_and_order():
    raw = "\r\n".join([
        "Received: from c.example by d.example; Mon, 01 Jan 2024 00:00:02 +0000",
        "Subject: x",
        "Received: from b.example by c.example; Mon, 01 Jan 2024 00:00:01 +0000",
        "Received: from a.example by b.example; Mon, 01 Jan 2024 00:00:00 +0000",
    ])

    headers = tokenize_headers(raw)

    assert len(headers["received"]) == 3
    assert [v.split()[1] for v in headers["received"]] == ["c.example", "b.example", "a.example"]


def test_last_field_is_merged_not_overwritten():
    raw = "Received: one\r\nReceived: two"

    assert tokenize_headers(raw)["received"] == ("one", "two")


def test_single_occurrence_is_one_element_tuple():
    headers = tokenize_headers("Subject: Hello World")

    assert headers["subject"] == ("Hello World",)


def test_folded_lines_are_joined_with_single_space():
    raw = "Received: from a.example\r\n\tby b.example\r\n    with ESMTP; Mon, 01 Jan 2024 00:00:00 +0000"

    headers = tokenize_headers(raw)

    assert headers["received"] == (
        "from a.example by b.example with ESMTP; Mon, 01 Jan 2024 00:00:00 +0000",
    )


def test_names_are_lowercased_values_keep_case():
    headers = tokenize_headers("Message-ID: <ABC@Example.COM>\r\nX-SG-EID: Value")

    assert headers["message-id"] == ("<ABC@Example.COM>",)
    assert "x-sg-eid" in headers
    assert "X-SG-EID" not in headers


def test_value_split_on_first_colon_only():
    headers = tokenize_headers("Date: Mon, 01 Jan 2024 10:20:30 +0000")

    assert headers["date"] == ("Mon, 01 Jan 2024 10:20:30 +0000",)


def test_malformed_lines_are_ignored():
    raw = "this line has no colon\r\nSubject: ok\r\nanother bad line\r\nTo: someone"

    headers = tokenize_headers(raw)

    assert headers == {"subject": ("ok",), "to": ("someone",)}


def test_continuation_before_any_field_is_ignored():
    headers = tokenize_headers("   stray continuation\r\nSubject: ok")

    assert headers == {"subject": ("ok",)}


def test_bare_lf_line_endings_are_accepted():
    headers = tokenize_headers("Subject: a\nTo: b\n")

    assert headers == {"subject": ("a",), "to": ("b",)}


def test_empty_input_gives_empty_map():
    assert tokenize_headers("") == {}


def test_header_lookup_helpers():
    headers = tokenize_headers("Received: one\r\nReceived: two")

    assert header_values(headers, "Received") == ("one", "two")
    assert header_values(headers, "missing") == ()
    assert first_header(headers, "received") == "one"
    assert first_header(headers, "missing") is None


def test_split_message_on_first_blank_line():
    headers, body = split_message("Subject: a\r\nTo: b\r\n\r\nline one\r\n\r\nline two")

    assert headers == "Subject: a\r\nTo: b"
    assert body == "line one\r\n\r\nline two"


def test_split_message_with_bare_lf():
    assert split_message("Subject: a\n\nbody") == ("Subject: a", "body")


def test_split_message_without_blank_line_is_all_headers():
    assert split_message("Subject: a\r\nTo: b") == ("Subject: a\r\nTo: b", "")


def test_parse_header_date_rfc2822():
    assert parse_header_date("Mon, 01 Jan 2024 00:00:00 +0000") == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_parse_header_date_normalizes_naive_to_utc():
    parsed = parse_header_date("2024-01-01T08:30:00")

    assert parsed == datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)


def test_parse_header_date_rejects_garbage():
    assert parse_header_date("not a date") is None
    assert parse_header_date("") is None
    assert parse_header_date(None) is None
