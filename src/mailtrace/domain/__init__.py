"""Domain models and entities."""

from mailtrace.domain.models import (
    ConnectionStatus,
    ProcessingStatus,
    StoredAnalysis,
    TestEmailConfig,
)

__all__ = [
    "ProcessingStatus",
    "StoredAnalysis",
    "TestEmailConfig",
    "ConnectionStatus",
]
