import logging
from typing import Callable, Dict, List, Optional

import httpx

from utility import config

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """The completion service could not produce a usable answer."""


class AsyncExternalLLM:
    """
    Async client for an OpenAI-compatible chat-completions endpoint.
    One request per call, no streaming, no retries.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = config.OPENAI_MODEL,
        endpoint: str = config.OPENAI_API_URL,
        max_tokens: int = config.MAX_TOKENS,
        key_provider: Callable[[], Optional[str]] = config.get_openai_api_key,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        api_key: fixed key; when omitted the key is looked up per request
        transport: optional httpx transport (tests plug in httpx.MockTransport)
        """
        self._api_key = api_key
        self._key_provider = key_provider
        self.model = model
        self.endpoint = endpoint
        self.max_tokens = max_tokens
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        api_key = self._api_key or self._key_provider()
        if not api_key:
            raise CompletionError(f"API key must be provided or set in {config.OPENAI_API_KEY_ENV}")
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """
        Sends the messages and returns the first choice's content, trimmed.
        Raises CompletionError on transport errors, non-2xx answers or a payload
        without choices[0].message.content.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }
        headers = self._headers()

        try:
            async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
                response = await client.post(self.endpoint, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error("Completion request failed: %s: %s", type(e).__name__, e)
            raise CompletionError("transport error") from e

        if not response.is_success:
            logger.error("Completion service returned %s: %s", response.status_code, response.text)
            raise CompletionError(f"upstream status {response.status_code}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Malformed completion payload: %s", response.text)
            raise CompletionError("malformed payload") from e

        if not isinstance(content, str):
            logger.error("Completion content is not text: %r", content)
            raise CompletionError("malformed payload")

        return content.strip()
