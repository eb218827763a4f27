"""OpenAI-compatible chat completion gateway."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..errors import AIGatewayError

log = logging.getLogger("guildsmith.ai.gateway")

Message = Dict[str, str]


class AIGateway:
    """Returns raw completion text; callers do the parsing.

    Without a key or URL every call returns ``""`` so the caller can fall back
    instead of crashing. Transient failures are retried once.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        model: str = "gpt-4o-mini",
        max_tokens: int = 2048,
        temperature: float = 0.7,
        attempts: int = 2,
        timeout: float = 90.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.url = (url or "").strip()
        self.api_key = (api_key or "").strip()
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.attempts = max(1, attempts)
        self.timeout = timeout
        self._session = session

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key)

    async def _post(self, session: Any, payload: Dict[str, Any]) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        async with session.post(self.url, headers=headers, json=payload) as response:
            data = await response.json()
            if response.status >= 400:
                message = (data.get("error") or {}).get("message", response.reason)
                raise AIGatewayError(f"AI gateway error {response.status}: {message}")
        choices = data.get("choices") or [{}]
        return (choices[0].get("message") or {}).get("content") or ""

    async def generate(self, messages: List[Message], *, model: Optional[str] = None, max_tokens: Optional[int] = None) -> str:
        if not self.configured:
            log.warning("AI gateway not configured: set AI_GATEWAY_URL and AI_GATEWAY_KEY")
            return ""

        payload = {
            "model": model or self.model,
            "messages": messages,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": self.temperature,
        }

        last_error: Optional[BaseException] = None
        for attempt in range(1, self.attempts + 1):
            try:
                if self._session is not None:
                    return await self._post(self._session, payload)
                async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                    return await self._post(session, payload)
            except (aiohttp.ClientError, AIGatewayError, asyncio.TimeoutError, ValueError) as e:
                last_error = e
                log.warning("AI request failed (attempt %d/%d): %s", attempt, self.attempts, e)

        raise AIGatewayError(f"AI request failed after {self.attempts} attempts: {last_error}")
