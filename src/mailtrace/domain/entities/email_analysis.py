from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping

@dataclass(frozen=True)
class EmailAnalysisRecord:
    message_id: str
    subject: str
    sender: str
    to: str
    date: datetime
    relevant_headers: Mapping[str, tuple[str, ...]] = field(hash=False)  # read-only view
    receiving_chain: tuple[str, ...]  # hop servers, earliest first
    esp_type: str
    esp_confidence: float
    body_excerpt: str
    esp_indicators: tuple[str, ...] = field(default=())
