"""
Backoffice Core Config - Public API
=====================================
Runtime settings for the back-office core and its analytics
collaborator. Values come from the environment, never from
hardcoded constants in engine logic.
"""

from core.config.settings import (
    BackofficeSettings,
    VALID_OVERSELL_POLICIES,
    load_settings,
)

__all__ = [
    "BackofficeSettings",
    "VALID_OVERSELL_POLICIES",
    "load_settings",
]
