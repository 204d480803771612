"""
Backoffice AI Insights - Refresh Debounce
===========================================
Rules:
- at most one fetch in flight; a second request while one runs
  is dropped, even with force=True
- after a successful fetch, further requests within the cooldown
  are dropped unless force=True
- a failed fetch starts no cooldown
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Iterable, Optional

from ai.insights.models import InsightResult, OrderAnalyzer
from core.primitives.order import Order
from core.time.clock import Clock, get_default_clock
from core.time.temporal import within_cooldown

logger = logging.getLogger("backoffice.ai")


class InsightsRefresher:
    def __init__(
        self,
        analyzer: OrderAnalyzer,
        *,
        cooldown_seconds: float = 10.0,
        clock: Optional[Clock] = None,
    ):
        self._analyzer = analyzer
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._in_flight = False
        self._last_success_at: Optional[datetime] = None
        self._last_result: Optional[InsightResult] = None

    def _now(self) -> datetime:
        return (self._clock or get_default_clock()).now_utc()

    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._in_flight

    @property
    def last_result(self) -> Optional[InsightResult]:
        with self._lock:
            return self._last_result

    async def refresh(
        self, orders: Iterable[Order], force: bool = False,
    ) -> Optional[InsightResult]:
        """
        Fetch new insights, or return None when the request is
        suppressed by the in-flight or cooldown guard.
        """
        with self._lock:
            if self._in_flight:
                logger.debug("Insights refresh skipped: fetch already in flight")
                return None
            if not force and within_cooldown(
                self._last_success_at, self._cooldown_seconds, self._now(),
            ):
                logger.debug("Insights refresh skipped: within cooldown")
                return None
            self._in_flight = True

        snapshot = list(orders)
        try:
            result = await self._analyzer.analyze(snapshot)
        finally:
            with self._lock:
                self._in_flight = False

        with self._lock:
            self._last_result = result
            if result.ok:
                self._last_success_at = self._now()

        logger.info(
            f"Insights refreshed over {len(snapshot)} order(s): "
            + ("ok" if result.ok else result.error_kind.value)
        )
        return result
