"""
Backoffice Command Layer - Rejection Model
============================================
Structured rejection reasons for denied commands.

This is NOT an event. It is an explanation structure that becomes
part of the '<base>.rejected' notification payload.

Every rejection must be:
- Deterministic (same input → same rejection)
- Machine-readable (code)
- Human-readable (message)
- Attributable (policy_name)
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for command rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'NOT_FOUND').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes. Extensible by engines.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Lookup ────────────────────────────────────────────────
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN_PRODUCT_IN_BATCH = "UNKNOWN_PRODUCT_IN_BATCH"

    # ── Input ─────────────────────────────────────────────────
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # ── Domain ────────────────────────────────────────────────
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    TRANSITION_NOT_ALLOWED = "TRANSITION_NOT_ALLOWED"

    # ── Wiring ────────────────────────────────────────────────
    NO_HANDLER = "NO_HANDLER"
