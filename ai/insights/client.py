"""
Backoffice AI Insights - Gemini REST Client
=============================================
Posts the order-summary prompt to the Gemini generateContent
endpoint and maps every outcome to an InsightResult.

Failure mapping:
- no API key            → NO_CREDENTIAL (no request is made)
- HTTP 429              → retry after analytics_retry_delay_seconds,
                          up to analytics_max_retries times, then
                          QUOTA_EXHAUSTED
- anything else / empty / malformed reply → GENERIC

analyze() never raises.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

import httpx

from ai.insights.models import InsightErrorKind, InsightResult
from ai.insights.prompt import build_prompt
from core.config.settings import BackofficeSettings
from core.errors import ExternalServiceError
from core.primitives.order import Order
from core.time.clock import Clock, get_default_clock

logger = logging.getLogger("backoffice.ai")

QUOTA_STATUS_CODE = 429


class GeminiInsightsClient:
    def __init__(
        self,
        settings: BackofficeSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Optional[Clock] = None,
    ):
        self._settings = settings
        self._transport = transport
        self._sleep = sleep
        self._clock = clock

    @property
    def endpoint(self) -> str:
        return (
            f"{self._settings.analytics_base_url}/models/"
            f"{self._settings.analytics_model}:generateContent"
        )

    def _now(self):
        return (self._clock or get_default_clock()).now_utc()

    async def analyze(self, orders: Sequence[Order]) -> InsightResult:
        if not self._settings.has_analytics_credential:
            logger.warning("Insights requested without an analytics API key")
            return InsightResult.failure(InsightErrorKind.NO_CREDENTIAL, self._now())

        prompt = build_prompt(orders)
        try:
            text = await self._generate_with_retry(prompt)
        except ExternalServiceError as exc:
            logger.warning(f"Insights request failed: {exc}")
            return InsightResult.failure(exc.kind, self._now())

        return InsightResult.success(text, self._now())

    async def _generate_with_retry(self, prompt: str) -> str:
        attempt = 0
        while True:
            try:
                return await self._generate(prompt)
            except ExternalServiceError as exc:
                if exc.kind is not InsightErrorKind.QUOTA_EXHAUSTED:
                    raise
                if attempt >= self._settings.analytics_max_retries:
                    raise
                attempt += 1
                logger.info(
                    f"Analytics quota hit, retrying in "
                    f"{self._settings.analytics_retry_delay_seconds}s "
                    f"(attempt {attempt})"
                )
                await self._sleep(self._settings.analytics_retry_delay_seconds)

    async def _generate(self, prompt: str) -> str:
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self._settings.analytics_temperature},
        }
        headers = {"x-goog-api-key": self._settings.analytics_api_key}

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.analytics_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(self.endpoint, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise ExternalServiceError(InsightErrorKind.GENERIC, f"timeout: {exc}") from exc
        except httpx.RequestError as exc:
            raise ExternalServiceError(InsightErrorKind.GENERIC, f"unreachable: {exc}") from exc

        if response.status_code == QUOTA_STATUS_CODE:
            raise ExternalServiceError(InsightErrorKind.QUOTA_EXHAUSTED, "HTTP 429")
        if not response.is_success:
            raise ExternalServiceError(
                InsightErrorKind.GENERIC, f"HTTP {response.status_code}",
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ExternalServiceError(InsightErrorKind.GENERIC, "invalid JSON") from exc

        text = extract_text(data)
        if not text:
            raise ExternalServiceError(InsightErrorKind.GENERIC, "empty response")
        return text


def extract_text(data: dict) -> str:
    """
    Concatenate the text parts of the first candidate.

    Any level of the reply that has the wrong shape yields "".
    """
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return ""
    content = candidate.get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if not isinstance(parts, list):
        return ""
    texts = [
        part.get("text") for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    return "".join(texts).strip()
