"""
Client side of the translation proxy.

Every call resolves to a TranslationSuccess or a TranslationFailure; nothing is
raised to the caller, so a failed request can never be mistaken for translated
text that happens to read "Translation failed".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import httpx

from utility import config
from utility.languages import is_supported_language, is_supported_tone

logger = logging.getLogger(__name__)

FAILURE_TEXT = "Translation failed"


class FailureKind(str, Enum):
    EMPTY_TEXT = "empty_text"
    INVALID_REQUEST = "invalid_request"
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    MALFORMED_RESPONSE = "malformed_response"


@dataclass(frozen=True)
class TranslationSuccess:
    text: str

    @property
    def ok(self) -> bool:
        return True

    @property
    def display_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class TranslationFailure:
    kind: FailureKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def display_text(self) -> str:
        return FAILURE_TEXT


TranslationResult = Union[TranslationSuccess, TranslationFailure]


@dataclass(frozen=True)
class PreparedRequest:
    text: str = "ciao mondo"
    source_lang: str = "Italian"
    target_lang: str = "Greek"
    tone: str = "formal"


class TranslationClient:
    """
    Sends {text, source_lang, target_lang, tone} to the proxy and waits for one answer.
    No retry and no deduplication: concurrent calls are independent.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        path: str = config.TRANSLATE_PATH,
    ):
        """
        base_url: where the proxy lives, e.g. "http://localhost:8000"
        http_client: pre-built client (in-process ASGI transport, tests); its
                     base_url is used and it is left open after each call
        """
        if base_url is None and http_client is None:
            raise ValueError("Either base_url or http_client must be provided")
        self.base_url = base_url
        self.path = path
        self._http_client = http_client

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    @staticmethod
    def _check_request(text: str, source_lang: str, target_lang: str, tone: str) -> Optional[TranslationFailure]:
        fields = {"text": text, "source_lang": source_lang, "target_lang": target_lang, "tone": tone}
        for name, value in fields.items():
            if not isinstance(value, str):
                return TranslationFailure(FailureKind.INVALID_REQUEST, f"{name} must be a string")
        if not text.strip():
            return TranslationFailure(FailureKind.EMPTY_TEXT, "nothing to translate")
        for lang in (source_lang, target_lang):
            if not is_supported_language(lang):
                return TranslationFailure(FailureKind.INVALID_REQUEST, f"unsupported language: {lang}")
        if not is_supported_tone(tone):
            return TranslationFailure(FailureKind.INVALID_REQUEST, f"unsupported tone: {tone}")
        return None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def translate(self, text: str, source_lang: str, target_lang: str, tone: str) -> TranslationResult:
        rejected = self._check_request(text, source_lang, target_lang, tone)
        if rejected is not None:
            logger.info("Translation skipped (%s): %s", rejected.kind.value, rejected.detail)
            return rejected

        payload = {
            "text": text,
            "source_lang": source_lang,
            "target_lang": target_lang,
            "tone": tone,
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.path, json=payload)
            else:
                async with httpx.AsyncClient(base_url=self.base_url, timeout=None) as client:
                    response = await client.post(self.path, json=payload)
        except httpx.HTTPError as e:
            logger.error("Translation request failed: %s: %s", type(e).__name__, e)
            return TranslationFailure(FailureKind.NETWORK, type(e).__name__)

        if not response.is_success:
            logger.error("Translation proxy returned %s", response.status_code)
            return TranslationFailure(FailureKind.HTTP_STATUS, str(response.status_code))

        try:
            translation = response.json()["translation"]
        except (ValueError, KeyError, TypeError):
            translation = None
        if not isinstance(translation, str):
            logger.error("Translation proxy answered without a translation: %s", response.text)
            return TranslationFailure(FailureKind.MALFORMED_RESPONSE, "missing translation")

        return TranslationSuccess(translation)

    async def translate_prepared(self, prepared: PreparedRequest = PreparedRequest()) -> TranslationResult:
        """Canned request used to smoke-test the proxy from the page."""
        return await self.translate(prepared.text, prepared.source_lang, prepared.target_lang, prepared.tone)
