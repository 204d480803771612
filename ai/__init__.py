"""
Backoffice AI Module - Advisory Only
======================================
AI components read snapshots and return text. They cannot
issue commands or mutate a store.
"""

from ai.insights import (
    GeminiInsightsClient,
    InsightErrorKind,
    InsightResult,
    InsightsRefresher,
    OrderAnalyzer,
)

__all__ = [
    "GeminiInsightsClient",
    "InsightErrorKind",
    "InsightResult",
    "InsightsRefresher",
    "OrderAnalyzer",
]
