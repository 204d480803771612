"""
Backoffice AI Insights - Result Model and Analyzer Protocol
============================================================
The analytics collaborator is advisory only: it reads an order
snapshot and returns text. It never touches a store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Sequence

from core.errors import ExternalServiceErrorKind
from core.primitives.order import Order


InsightErrorKind = ExternalServiceErrorKind


@dataclass(frozen=True)
class InsightResult:
    """
    Either text or an error_kind, never both.

    Error kinds map to fixed user-facing messages; no provider
    detail reaches the presentation layer.
    """

    text: Optional[str] = None
    error_kind: Optional[InsightErrorKind] = None
    generated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.error_kind is None):
            raise ValueError("InsightResult needs exactly one of text or error_kind.")

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @classmethod
    def success(cls, text: str, generated_at: Optional[datetime] = None) -> "InsightResult":
        return cls(text=text, generated_at=generated_at)

    @classmethod
    def failure(
        cls, kind: InsightErrorKind, generated_at: Optional[datetime] = None,
    ) -> "InsightResult":
        return cls(error_kind=kind, generated_at=generated_at)


class OrderAnalyzer(Protocol):
    """Anything that turns an order snapshot into an InsightResult."""

    async def analyze(self, orders: Sequence[Order]) -> InsightResult:
        ...
