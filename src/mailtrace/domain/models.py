"""Domain models for mailtrace."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProcessingStatus(str, Enum):
    """Lifecycle of a stored analysis."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class StoredAnalysis(BaseModel):
    """An analysis record as kept by the persistence layer."""

    model_config = ConfigDict(frozen=True)

    id: str
    message_id: str
    subject: str
    sender: str
    to: str
    date: datetime | None = None
    relevant_headers: dict[str, list[str]] = Field(default_factory=dict)
    receiving_chain: list[str] = Field(default_factory=list)
    esp_type: str = "Unknown"
    esp_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    esp_indicators: list[str] = Field(default_factory=list)
    body_excerpt: str = ""
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    error: str | None = None
    created_at: datetime


class TestEmailConfig(BaseModel):
    """Where to send a test message so it gets picked up."""

    email: str
    subject: str


class ConnectionStatus(BaseModel):
    """Transport connection state."""

    connected: bool
    email: str
