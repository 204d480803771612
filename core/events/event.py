"""
Backoffice Event Bus - Domain Event
=====================================
What listeners receive after a state change (or a rejection).

Events are notifications, not a log: nothing persists them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class DomainEvent:
    event_type: str
    payload: dict
    occurred_at: datetime
    actor_id: str
    correlation_id: uuid.UUID
    causation_id: Optional[uuid.UUID] = None
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        if not self.event_type or len(self.event_type.split(".")) < 3:
            raise ValueError(
                f"event_type '{self.event_type}' must follow "
                f"engine.domain.action format."
            )
        if not isinstance(self.payload, dict):
            raise TypeError("payload must be a dict.")

    @property
    def is_rejection(self) -> bool:
        return self.event_type.endswith(".rejected")

    @property
    def source_engine(self) -> str:
        return self.event_type.split(".")[0]
