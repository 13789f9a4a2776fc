from __future__ import annotations
from typing import Optional, Protocol
from mailtrace.domain.entities.email_analysis import EmailAnalysisRecord
from mailtrace.domain.models import StoredAnalysis

class AnalysisStore(Protocol):
    def exists(self, message_id: str) -> bool: ...
    def save(self, record: EmailAnalysisRecord) -> bool: ...
    def mark_failed(self, message_id: str, error: str) -> None: ...
    def get(self, analysis_id: str) -> Optional[StoredAnalysis]: ...
    def latest(self) -> Optional[StoredAnalysis]: ...
    def list_recent(self, limit: int = 50) -> list[StoredAnalysis]: ...
