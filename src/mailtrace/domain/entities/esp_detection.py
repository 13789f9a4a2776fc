from __future__ import annotations
from dataclasses import dataclass

@dataclass(frozen=True)
class ESPDetectionResult:
    esp_type: str
    confidence: float
    indicators: tuple[str, ...]
