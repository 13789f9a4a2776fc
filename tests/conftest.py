"""Shared fixtures for mailtrace tests."""

from datetime import datetime, timezone

import pytest

from mailtrace.application.ports.email_source import RawEmail
from mailtrace.infrastructure.sqlite.client import SQLiteAnalysisStore

FIXED_NOW = datetime(2030, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

GMAIL_HEADERS = "\r\n".join([
    "Delivered-To: analyzer@example.org",
    "Received: by 2002:a05:6402:1234:b0:5c2 with SMTP id abc123;",
    "        Tue, 2 Jan 2024 10:00:05 -0800 (PST)",
    "Received: from mail-sor-f41.google.com (mail-sor-f41.google.com [209.85.220.41])",
    "        by mx.example.org with ESMTPS id xyz",
    "        for <analyzer@example.org>; Tue, 02 Jan 2024 18:00:03 +0000",
    "Message-ID: <CAF=abc123@mail.gmail.com>",
    "From: Alice <alice@gmail.com>",
    "To: analyzer@example.org",
    "Subject: ANALYZER-TEST-1704218400000",
    "Date: Tue, 2 Jan 2024 10:00:00 -0800",
    "X-Mailer: none",
])

PLAIN_HEADERS = "\r\n".join([
    "Received: from relay.internal.lan by mx.internal.lan with ESMTP; Mon, 01 Jan 2024 00:00:00 +0000",
    "Message-ID: <1234@internal.lan>",
    "From: ops@internal.lan",
    "To: analyzer@internal.lan",
    "Subject: hello",
])


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def store(tmp_path):
    return SQLiteAnalysisStore(db_path=tmp_path / "analyses.db")


def make_raw(headers: str, body: str = "Hello there", uid: int = 1) -> RawEmail:
    return RawEmail(
        provider="imap",
        account="analyzer@example.org",
        folder="INBOX",
        uid=uid,
        rfc822_bytes=f"{headers}\r\n\r\n{body}".encode("utf-8"),
    )


class FakeSource:
    """In-memory EmailSource."""

    def __init__(self, emails=None, fail_with=None):
        self.emails = list(emails or [])
        self.fail_with = fail_with
        self.calls = []
        self.connected = True

    @property
    def account(self):
        return "analyzer@example.org"

    @property
    def is_connected(self):
        return self.connected

    def fetch(self, unseen_only=True, limit=None):
        self.calls.append((unseen_only, limit))
        if self.fail_with:
            raise self.fail_with
        emails = self.emails
        if limit is not None:
            emails = emails[-limit:] if limit > 0 else []
        return list(emails)

    def disconnect(self):
        self.connected = False
