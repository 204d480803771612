"""
Backoffice Bootstrap - Seed Data and Startup Checks
=====================================================
Ensures the dashboard never starts from inconsistent data.
"""

from core.bootstrap.errors import SystemBootstrapError
from core.bootstrap.seed import SeedData, generate_seed
from core.bootstrap.self_check import run_bootstrap_checks

__all__ = [
    "SeedData",
    "SystemBootstrapError",
    "generate_seed",
    "run_bootstrap_checks",
]
