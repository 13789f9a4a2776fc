from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Protocol

@dataclass(frozen=True)
class RawEmail:
    provider: str
    account: str
    folder: str
    uid: int
    rfc822_bytes: bytes

class EmailSource(Protocol):
    @property
    def account(self) -> str: ...

    @property
    def is_connected(self) -> bool: ...

    def fetch(self, unseen_only: bool = True, limit: Optional[int] = None) -> list[RawEmail]: ...

    def disconnect(self) -> None: ...
