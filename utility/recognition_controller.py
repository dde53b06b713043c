"""
Continuous speech capture on top of a per-utterance recognition engine.

The engine (browser speech recognition behind a WebSocket, or a fake in tests)
ends its session on its own after each utterance. The controller restarts it on
`end` unless the user asked it to stop, so capture looks continuous.

States:  Idle --start()--> Listening --stop()--> Stopping --end--> Idle
                           Listening --end (engine timeout)--> Listening
                           Listening/Stopping --error--> Idle
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from utility.languages import get_language_code

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Speech recognition not supported in this browser."


class RecognitionStatus(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    STOPPING = "stopping"


@dataclass
class RecognitionSession:
    """Owned by a single RecognitionController; replaced on every explicit stop."""
    status: RecognitionStatus = RecognitionStatus.IDLE
    restart_on_end: bool = False
    locale: Optional[str] = None


class RecognitionEngine:
    """
    Capture capability driven by the controller.
    Implementations report back through controller.handle_start/result/error/end.
    """

    async def start(self, locale: str, continuous: bool = True, interim_results: bool = False) -> None:
        raise NotImplementedError

    async def stop(self) -> None:
        raise NotImplementedError


TranscriptCallback = Callable[[str], Awaitable[None]]
StatusCallback = Callable[[str], Awaitable[None]]
RecordingCallback = Callable[[bool], Awaitable[None]]


async def _noop(_value: Any) -> None:
    return None


class RecognitionController:
    def __init__(
        self,
        engine: Optional[RecognitionEngine],
        source_language: Callable[[], str],
        on_transcript: TranscriptCallback = _noop,
        on_status: StatusCallback = _noop,
        on_recording: RecordingCallback = _noop,
    ):
        """
        engine: capture engine, or None when the host has no speech recognition
        source_language: returns the currently selected source language name
        on_transcript: receives each recognized utterance; must not block for long
        """
        self.engine = engine
        self._source_language = source_language
        self._on_transcript = on_transcript
        self._on_status = on_status
        self._on_recording = on_recording

        self.session = RecognitionSession()
        self.available = engine is not None
        self._unavailable_reported = False

    # -----------------------------
    # State
    # -----------------------------
    @property
    def status(self) -> RecognitionStatus:
        return self.session.status

    @property
    def is_listening(self) -> bool:
        return self.session.status is RecognitionStatus.LISTENING

    async def disable(self, reason: str = UNSUPPORTED_MESSAGE) -> None:
        """The host cannot recognize speech; report it once and refuse to start from now on."""
        self.available = False
        self.engine = None
        self.session = RecognitionSession()
        if self._unavailable_reported:
            return
        self._unavailable_reported = True
        logger.warning(reason)
        await self._on_status(reason)

    # -----------------------------
    # Commands
    # -----------------------------
    async def start(self) -> None:
        if not self.available:
            if not self._unavailable_reported:
                await self.disable()
            return
        if self.session.status is not RecognitionStatus.IDLE:
            logger.debug("start() ignored while %s", self.session.status.value)
            return

        locale = get_language_code(self._source_language())
        await self._begin(locale)

    async def stop(self) -> None:
        if self.session.status is not RecognitionStatus.LISTENING:
            logger.debug("stop() ignored while %s", self.session.status.value)
            return

        logger.info("Stopping recognition...")
        self.session.status = RecognitionStatus.STOPPING
        self.session.restart_on_end = False
        await self.engine.stop()
        await self._on_recording(False)

    async def _begin(self, locale: str) -> None:
        self.session.locale = locale
        self.session.status = RecognitionStatus.LISTENING
        self.session.restart_on_end = True
        logger.info("Starting recognition (%s)", locale)
        await self.engine.start(locale, continuous=True, interim_results=False)

    # -----------------------------
    # Engine events
    # -----------------------------
    async def handle_start(self) -> None:
        logger.info("Recognition started")
        if self.session.status is RecognitionStatus.LISTENING:
            await self._on_recording(True)

    async def handle_result(self, results: Sequence[Sequence[Dict[str, Any]]], result_index: int) -> None:
        """results[result_index][0] is the best alternative of the newest segment."""
        if self.session.status is not RecognitionStatus.LISTENING:
            logger.debug("Result dropped while %s", self.session.status.value)
            return
        try:
            transcript = results[result_index][0]["transcript"]
        except (IndexError, KeyError, TypeError):
            logger.warning("Result event without a transcript at index %s", result_index)
            return

        logger.info("Recognized text: %s", transcript)
        await self._on_transcript(transcript)

    async def handle_error(self, code: str) -> None:
        logger.error("Speech recognition error: %s", code)
        was_listening = self.is_listening
        self.session.status = RecognitionStatus.IDLE
        self.session.restart_on_end = False
        if was_listening:
            await self._on_recording(False)

    async def handle_end(self) -> None:
        logger.info("Recognition ended")
        # Read the flag now: a stop() that raced this event has already cleared it
        if self.session.restart_on_end:
            await self._begin(self.session.locale)
            return

        self.session = RecognitionSession()

    async def dispatch(self, event: Dict[str, Any]) -> None:
        """Route a raw engine event ({"event": "result", ...}) to its handler."""
        name = event.get("event")
        if name == "start":
            await self.handle_start()
        elif name == "result":
            try:
                result_index = int(event.get("result_index", 0))
            except (TypeError, ValueError):
                raise ValueError(f"Invalid result_index: {event.get('result_index')!r}") from None
            await self.handle_result(event.get("results") or [], result_index)
        elif name == "error":
            await self.handle_error(str(event.get("error", "unknown")))
        elif name == "end":
            await self.handle_end()
        else:
            raise ValueError(f"Unknown recognition event: {name!r}")
