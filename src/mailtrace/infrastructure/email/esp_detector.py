"""Email Service Provider detection from message headers.

Rules are evaluated in a fixed order and the first match wins, so a message
carrying both Gmail and SendGrid fingerprints is reported as Gmail. Keyword
matching is case-sensitive on the raw header text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from mailtrace.domain.entities.esp_detection import ESPDetectionResult
from mailtrace.infrastructure.email.headers import HeaderMap, first_header, header_values

UNKNOWN_ESP = ESPDetectionResult(
    esp_type="Unknown",
    confidence=0.10,
    indicators=("No known ESP patterns detected",),
)

GENERIC_CONFIDENCE = 0.80


def _message_id(headers: HeaderMap) -> str:
    return first_header(headers, "message-id") or ""


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def _received_contains(headers: HeaderMap, keywords: tuple[str, ...]) -> bool:
    return any(_contains_any(line, keywords) for line in header_values(headers, "received"))


def _signature(
    message_id: tuple[str, ...],
    received: tuple[str, ...],
    present: tuple[str, ...] = (),
) -> Callable[[HeaderMap], bool]:
    """Predicate matching message-id keywords, Received keywords or bare header presence."""

    def predicate(headers: HeaderMap) -> bool:
        return (
            _contains_any(_message_id(headers), message_id)
            or _received_contains(headers, received)
            or any(name in headers for name in present)
        )

    return predicate


@dataclass(frozen=True)
class EspRule:
    esp_type: str
    confidence: float
    indicators: tuple[str, ...]
    matches: Callable[[HeaderMap], bool]

    def result(self) -> ESPDetectionResult:
        return ESPDetectionResult(self.esp_type, self.confidence, self.indicators)


ESP_RULES: tuple[EspRule, ...] = (
    EspRule(
        "Gmail", 0.95,
        ("Google SMTP servers", "Gmail message-ID pattern"),
        _signature(("gmail.com",), ("gmail-smtp", "google.com", "googlemail.com")),
    ),
    EspRule(
        "Outlook/Hotmail", 0.90,
        ("Microsoft Exchange servers", "Outlook headers"),
        _signature(
            ("outlook.com", "hotmail.com", "live.com"),
            ("outlook.com", "hotmail.com", "protection.outlook.com", "mail.protection.outlook.com"),
        ),
    ),
    EspRule(
        "Amazon SES", 0.95,
        ("Amazon SES servers", "SES-specific headers"),
        _signature(("amazonses.com",), ("amazonses.com", "ses.amazonaws.com", "email.us-east-1.amazonaws.com")),
    ),
    EspRule(
        "SendGrid", 0.90,
        ("SendGrid infrastructure", "SendGrid headers"),
        _signature(("sendgrid",), ("sendgrid",), present=("x-sg-eid", "x-sendgrid-message-id")),
    ),
    EspRule(
        "Mailgun", 0.90,
        ("Mailgun servers", "Mailgun-specific headers"),
        _signature(("mailgun",), ("mailgun",), present=("x-mailgun-variables", "x-mailgun-sid")),
    ),
    EspRule(
        "Yahoo Mail", 0.85,
        ("Yahoo SMTP servers", "Yahoo headers"),
        _signature(("yahoo.com", "yahoodns.net"), ("yahoo.com", "yahoodns.net")),
    ),
    EspRule(
        "Zoho Mail", 0.85,
        ("Zoho servers", "Zoho-specific patterns"),
        _signature(("zoho.com", "zohomx.com"), ("zoho.com", "zohomx.com")),
    ),
)

# Bulk senders recognised by keyword in message-id, Return-Path or Received.
GENERIC_ESPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Mailchimp", ("mailchimp", "mcsv.net")),
    ("Constant Contact", ("constantcontact", "ctctcdn.com")),
    ("Campaign Monitor", ("campaignmonitor", "createsend.com")),
    ("AWeber", ("aweber.com",)),
    ("GetResponse", ("getresponse.com",)),
    ("ConvertKit", ("convertkit.com",)),
    ("ActiveCampaign", ("activecampaign.com",)),
    ("Mandrill", ("mandrillapp.com",)),
    ("Postmark", ("postmarkapp.com",)),
    ("SparkPost", ("sparkpost.com",)),
)


def detect_generic_esp(headers: HeaderMap) -> ESPDetectionResult:
    message_id = _message_id(headers)
    return_path = first_header(headers, "return-path") or ""

    for name, keywords in GENERIC_ESPS:
        if (
            _contains_any(message_id, keywords)
            or _contains_any(return_path, keywords)
            or _received_contains(headers, keywords)
        ):
            return ESPDetectionResult(
                esp_type=name,
                confidence=GENERIC_CONFIDENCE,
                indicators=(f"{name} infrastructure detected",),
            )

    return UNKNOWN_ESP


def detect_esp(headers: HeaderMap) -> ESPDetectionResult:
    """Classify the sending ESP. Always returns exactly one result."""
    for rule in ESP_RULES:
        if rule.matches(headers):
            return rule.result()
    return detect_generic_esp(headers)
