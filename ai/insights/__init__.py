"""
Backoffice AI Insights
========================
Text summaries of recent orders from an external model.
"""

from ai.insights.client import GeminiInsightsClient, extract_text
from ai.insights.models import InsightErrorKind, InsightResult, OrderAnalyzer
from ai.insights.prompt import build_prompt, summarize_orders
from ai.insights.refresher import InsightsRefresher

__all__ = [
    "GeminiInsightsClient",
    "InsightErrorKind",
    "InsightResult",
    "InsightsRefresher",
    "OrderAnalyzer",
    "build_prompt",
    "extract_text",
    "summarize_orders",
]
