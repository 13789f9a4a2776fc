from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

@dataclass(frozen=True)
class ReceivingHop:
    server: str                     # "from" host, else "by" host, else server-N
    timestamp: datetime
    ip: Optional[str] = None        # [d.d.d.d] literal, if any
    by_server: Optional[str] = None
    with_protocol: Optional[str] = None
