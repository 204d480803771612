"""
Backoffice Dashboard Adapter
==============================
The surface the presentation layer talks to.
"""

from adapters.dashboard.facade import DashboardFacade
from adapters.dashboard.wiring import build_dashboard

__all__ = [
    "DashboardFacade",
    "build_dashboard",
]
