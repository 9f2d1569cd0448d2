"""
Wit.ai intent classification client.

Returns the raw Wit.ai ``/message`` payload, or None when the service
cannot be used. Failures are never raised to the caller and are not
retried; the dialogue falls back to a generic reply instead.
"""

import logging
from typing import Any, Optional, Protocol

import httpx

from phonebot.config import ClassifierConfig

logger = logging.getLogger(__name__)


class IntentClassifier(Protocol):
    """Anything that turns an utterance into a Wit.ai-shaped payload."""

    async def classify(self, text: str) -> Optional[dict[str, Any]]: ...


class WitIntentClassifier:
    """Calls the Wit.ai message endpoint over HTTP."""

    def __init__(
        self,
        config: ClassifierConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout_sec)
        self._owns_client = client is None

    async def classify(self, text: str) -> Optional[dict[str, Any]]:
        try:
            response = await self._client.get(
                self._config.url,
                params={"v": self._config.version, "q": text},
                headers={"Authorization": f"Bearer {self._config.access_token}"},
                timeout=self._config.timeout_sec,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Wit.ai returned %s: %s", exc.response.status_code, exc.response.text[:200]
            )
            return None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Wit.ai request failed: %s", exc)
            return None

        if not isinstance(payload, dict):
            logger.warning("Wit.ai returned a non-object payload: %r", payload)
            return None
        return payload

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
