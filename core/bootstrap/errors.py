"""
Backoffice Bootstrap - System Errors
======================================
If seed data violates a consistency law at startup,
the dashboard must refuse to start.
"""


class SystemBootstrapError(Exception):
    """
    Raised when a consistency law is violated during startup.

    If this exception is raised:
    - The dashboard MUST NOT be handed to the presentation layer
    - No fallback
    - No warning-only mode
    """

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(
            f"BACKOFFICE BOOTSTRAP FAILURE: {invariant}: {detail}"
        )
