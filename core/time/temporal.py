"""
Backoffice Core Time - Temporal Helpers
=========================================
Pure functions over explicit datetimes. No hidden clock access.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional


def within_cooldown(
    last_at: Optional[datetime], cooldown_seconds: float, now: datetime
) -> bool:
    """
    True while `now` is strictly inside the cooldown that began at last_at.

    A missing last_at means nothing has happened yet: no cooldown.
    """
    if last_at is None:
        return False
    return (now - last_at).total_seconds() < cooldown_seconds
