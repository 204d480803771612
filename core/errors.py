"""
Backoffice Core - Error Taxonomy
==================================
Three families of failure exist in the back-office core:

- NotFoundError:        an id does not resolve to a record
- ValidationError:      malformed input (unknown status, bad quantity)
- ExternalServiceError: the analytics collaborator failed

Mutation commands never raise NotFoundError. An unknown id on a
command is a REJECTED outcome (see core.commands). These exceptions
are for reads that require a record and for input parsing.
"""

from __future__ import annotations

from enum import Enum


class BackofficeError(Exception):
    """Base error for back-office operations."""
    pass


class NotFoundError(BackofficeError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found.")


class ValidationError(BackofficeError, ValueError):
    """Input does not satisfy the data contract."""
    pass


# ══════════════════════════════════════════════════════════════
# EXTERNAL SERVICE ERRORS
# ══════════════════════════════════════════════════════════════

class ExternalServiceErrorKind(Enum):
    """Failure kinds surfaced by the analytics collaborator."""
    QUOTA_EXHAUSTED = "QUOTA_EXHAUSTED"
    GENERIC = "GENERIC"
    NO_CREDENTIAL = "NO_CREDENTIAL"


class ExternalServiceError(BackofficeError):
    """
    Raised inside external-service clients.

    Clients convert it into a typed result at their boundary;
    it must not escape to the presentation layer.
    """

    def __init__(self, kind: ExternalServiceErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        message = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(message)
