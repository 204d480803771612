"""
Backoffice Core Config - Settings
===================================
Frozen settings object plus an environment loader.

Environment variables (all optional):
    BACKOFFICE_ANALYTICS_API_KEY   (falls back to GEMINI_API_KEY, API_KEY)
    BACKOFFICE_ANALYTICS_MODEL
    BACKOFFICE_ANALYTICS_BASE_URL
    BACKOFFICE_ANALYTICS_TEMPERATURE
    BACKOFFICE_ANALYTICS_TIMEOUT
    BACKOFFICE_ANALYTICS_RETRY_DELAY
    BACKOFFICE_ANALYTICS_MAX_RETRIES
    BACKOFFICE_INSIGHTS_COOLDOWN
    BACKOFFICE_OVERSELL_POLICY     (CLAMP_TO_ZERO | REJECT)
    BACKOFFICE_ADMIN_ACTOR
    BACKOFFICE_SYSTEM_ACTOR
    BACKOFFICE_SEED
    BACKOFFICE_ORDER_COUNT
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from core.errors import ValidationError


VALID_OVERSELL_POLICIES = frozenset({"CLAMP_TO_ZERO", "REJECT"})

# At most one silent retry after a quota error.
MAX_ANALYTICS_RETRIES = 1

DEFAULT_ANALYTICS_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

_API_KEY_VARS = ("BACKOFFICE_ANALYTICS_API_KEY", "GEMINI_API_KEY", "API_KEY")

T = TypeVar("T")


# ══════════════════════════════════════════════════════════════
# SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BackofficeSettings:
    """
    Runtime configuration.

    analytics_*        Gemini text-summary collaborator
    insights_cooldown  No refetch while the last successful fetch is younger
    oversell_policy    How the ledger handles a deduction beyond on-hand stock
    admin_actor        Recorded as StatusLog.updated_by for staff actions
    system_actor       Recorded as StockMovement.user for automatic sales
    seed / order_count Mock data generation
    """

    analytics_api_key: Optional[str] = None
    analytics_model: str = "gemini-3-flash-preview"
    analytics_base_url: str = DEFAULT_ANALYTICS_BASE_URL
    analytics_temperature: float = 0.7
    analytics_timeout_seconds: float = 30.0
    analytics_retry_delay_seconds: float = 2.0
    analytics_max_retries: int = 1
    insights_cooldown_seconds: float = 10.0
    oversell_policy: str = "CLAMP_TO_ZERO"
    admin_actor: str = "Admin"
    system_actor: str = "system"
    seed: Optional[int] = None
    order_count: int = 40

    def __post_init__(self) -> None:
        if self.oversell_policy not in VALID_OVERSELL_POLICIES:
            raise ValidationError(
                f"oversell_policy '{self.oversell_policy}' not valid. "
                f"Must be one of: {sorted(VALID_OVERSELL_POLICIES)}"
            )
        if not 0 <= self.analytics_max_retries <= MAX_ANALYTICS_RETRIES:
            raise ValidationError(
                f"analytics_max_retries must be between 0 and {MAX_ANALYTICS_RETRIES}."
            )
        if self.insights_cooldown_seconds < 0:
            raise ValidationError("insights_cooldown_seconds cannot be negative.")
        if self.order_count < 0:
            raise ValidationError("order_count cannot be negative.")
        if not self.admin_actor or not self.system_actor:
            raise ValidationError("admin_actor and system_actor must be non-empty.")

    @property
    def has_analytics_credential(self) -> bool:
        return bool(self.analytics_api_key)


# ══════════════════════════════════════════════════════════════
# ENVIRONMENT LOADER
# ══════════════════════════════════════════════════════════════

def _parse(environ: Mapping[str, str], name: str, cast: Callable[[str], T], default: T) -> T:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValidationError(f"{name}={raw!r} is not a valid {cast.__name__}.") from None


def _first_set(environ: Mapping[str, str], names: tuple) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> BackofficeSettings:
    """Build settings from environment variables (os.environ by default)."""
    env = os.environ if environ is None else environ
    defaults = BackofficeSettings()

    seed_raw = env.get("BACKOFFICE_SEED")
    seed = _parse(env, "BACKOFFICE_SEED", int, 0) if seed_raw else None

    return BackofficeSettings(
        analytics_api_key=_first_set(env, _API_KEY_VARS),
        analytics_model=env.get("BACKOFFICE_ANALYTICS_MODEL") or defaults.analytics_model,
        analytics_base_url=(
            env.get("BACKOFFICE_ANALYTICS_BASE_URL") or defaults.analytics_base_url
        ).rstrip("/"),
        analytics_temperature=_parse(
            env, "BACKOFFICE_ANALYTICS_TEMPERATURE", float, defaults.analytics_temperature
        ),
        analytics_timeout_seconds=_parse(
            env, "BACKOFFICE_ANALYTICS_TIMEOUT", float, defaults.analytics_timeout_seconds
        ),
        analytics_retry_delay_seconds=_parse(
            env, "BACKOFFICE_ANALYTICS_RETRY_DELAY", float, defaults.analytics_retry_delay_seconds
        ),
        analytics_max_retries=_parse(
            env, "BACKOFFICE_ANALYTICS_MAX_RETRIES", int, defaults.analytics_max_retries
        ),
        insights_cooldown_seconds=_parse(
            env, "BACKOFFICE_INSIGHTS_COOLDOWN", float, defaults.insights_cooldown_seconds
        ),
        oversell_policy=(
            env.get("BACKOFFICE_OVERSELL_POLICY") or defaults.oversell_policy
        ).strip().upper(),
        admin_actor=env.get("BACKOFFICE_ADMIN_ACTOR") or defaults.admin_actor,
        system_actor=env.get("BACKOFFICE_SYSTEM_ACTOR") or defaults.system_actor,
        seed=seed,
        order_count=_parse(env, "BACKOFFICE_ORDER_COUNT", int, defaults.order_count),
    )
