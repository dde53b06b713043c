import logging
from typing import Any, Awaitable, Callable, Dict

from utility.recognition_controller import RecognitionEngine

logger = logging.getLogger(__name__)


class WebSocketSpeechEngine(RecognitionEngine):
    """
    Browser speech recognition seen from the server.
    start/stop become {"type": "recognition", ...} commands on the socket; the
    page answers with {"type": "engine", "event": ...} messages.
    """

    def __init__(self, send_json: Callable[[Dict[str, Any]], Awaitable[None]]):
        self._send_json = send_json

    async def start(self, locale: str, continuous: bool = True, interim_results: bool = False) -> None:
        await self._send_json({
            "type": "recognition",
            "command": "start",
            "lang": locale,
            "continuous": continuous,
            "interimResults": interim_results,
        })

    async def stop(self) -> None:
        await self._send_json({"type": "recognition", "command": "stop"})
