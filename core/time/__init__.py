"""
Backoffice Core Time - Public API
===================================
Injectable clock and cooldown helpers.
Services never call datetime.now() directly; they ask a Clock.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    get_default_clock,
    now_utc,
    set_default_clock,
)
from core.time.temporal import within_cooldown

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "get_default_clock",
    "set_default_clock",
    "now_utc",
    "within_cooldown",
]
