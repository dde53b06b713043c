from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import httpx
import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response

from utility import config
from utility.AsyncExternalLLM import AsyncExternalLLM, CompletionError
from utility.dto import TranslateRequest, TranslateResponse, ErrorResponse, DummyResponse
from utility.languages import options_payload
from utility.prompt_manager import PromptManager
from utility.recognition_controller import RecognitionController
from utility.session_manager import SessionManager, SessionData
from utility.translation_client import TranslationClient, TranslationResult
from utility.ws_speech_engine import WebSocketSpeechEngine

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

UPSTREAM_FAILURE_MESSAGE = "Failed to get a valid response from OpenAI"

CORS_ALLOW_METHODS = ["POST", "GET", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization"]

# -----------------------------
# FastAPI app
# -----------------------------
app = FastAPI()

# CORS: public, credential-less API
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

static_path = Path(__file__).parent.parent / "static"


# -----------------------------
# Startup
# -----------------------------
@app.on_event("startup")
async def startup():
    app.state.llm = AsyncExternalLLM()
    app.state.session_manager = SessionManager(
        ttl_hours=config.SESSION_TTL_HOURS,
        cleanup_interval=config.SESSION_CLEANUP_INTERVAL,
    )

    if config.TRANSLATION_PROXY_URL:
        app.state.proxy_http_client = None
        app.state.translation_client = TranslationClient(base_url=config.TRANSLATION_PROXY_URL)
    else:
        # Same proxy endpoint, reached without leaving the process
        app.state.proxy_http_client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://translator",
            timeout=None,
        )
        app.state.translation_client = TranslationClient(http_client=app.state.proxy_http_client)

    logger.info("✅ Server started (model=%s, max_tokens=%s)", config.OPENAI_MODEL, config.MAX_TOKENS)


@app.on_event("shutdown")
async def shutdown():
    if getattr(app.state, "proxy_http_client", None) is not None:
        await app.state.proxy_http_client.aclose()


@app.exception_handler(CompletionError)
async def completion_error_handler(request: Request, exc: CompletionError):
    # Detail stays in the server log; callers only get the generic message
    logger.error("Translation failed for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": UPSTREAM_FAILURE_MESSAGE})


# -----------------------------
# HTTP Endpoints
# -----------------------------
@app.get("/", response_class=HTMLResponse)
async def serve_ui():
    html_path = static_path / "index.html"
    with html_path.open("r", encoding="utf-8") as f:
        return f.read()


@app.post("/translate", response_model=TranslateResponse, responses={500: {"model": ErrorResponse}})
@app.post("/api/translate", response_model=TranslateResponse, responses={500: {"model": ErrorResponse}})
async def translate(req: TranslateRequest):
    messages = PromptManager.build_chat_messages(req.text, req.source_lang, req.target_lang, req.tone)
    translation = await app.state.llm.complete(messages)
    return TranslateResponse(translation=translation)


@app.options("/translate")
@app.options("/api/translate")
async def translate_preflight():
    return Response(headers={
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
        "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
    })


@app.get("/api/dummy", response_model=DummyResponse)
async def dummy():
    return DummyResponse(userId=1, id=1, title="Dummy Title", body="This is a dummy response.")


@app.get("/api/options")
async def options():
    return options_payload()


# -----------------------------
# WebSocket: speech capture → translation
# -----------------------------
def translation_message(result: TranslationResult) -> dict:
    message = {"type": "translation", "ok": result.ok, "text": result.display_text}
    if not result.ok:
        message["error"] = result.kind.value
    return message


@app.websocket("/ws/translate")
async def translate_ws(websocket: WebSocket):
    await websocket.accept()

    session: SessionData | None = None
    controller: RecognitionController | None = None
    pending: set[asyncio.Task] = set()

    session_manager = app.state.session_manager
    client = app.state.translation_client

    async def send_quietly(message: dict):
        # Translations can outlive the socket; a closed page just misses them
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.info("Dropped %s message for closed socket: %s", message.get("type"), e)

    async def run_translation(text: str, prepared: bool = False):
        if prepared:
            result = await client.translate_prepared()
        else:
            result = await client.translate(text, session.source_lang, session.target_lang, session.tone)
        session.translation = result.display_text
        session.translation_ok = result.ok
        await send_quietly(translation_message(result))

    def translation_done(task: asyncio.Task):
        pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Translation task failed", exc_info=task.exception())

    def schedule_translation(text: str = "", prepared: bool = False):
        # Independent tasks: a slow earlier answer may arrive after a later one
        task = asyncio.create_task(run_translation(text, prepared))
        pending.add(task)
        task.add_done_callback(translation_done)

    async def on_transcript(text: str):
        session.recognized_text = text
        await websocket.send_json({"type": "transcript", "text": text})
        schedule_translation(text)

    async def on_status(message: str):
        session.status = message
        await websocket.send_json({"type": "status", "message": message})

    async def on_recording(value: bool):
        await websocket.send_json({"type": "recording", "value": value})

    try:
        while True:
            msg = await websocket.receive_text()
            try:
                data = json.loads(msg)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            msg_type = data.get("type") if isinstance(data, dict) else None

            # ────────────── Session + selections ──────────────
            if msg_type == "config":
                session_id = data.get("session_id")
                if not session_id or not isinstance(session_id, str):
                    await websocket.send_json({"type": "error", "message": "session_id is required"})
                    continue

                invalid = [
                    name for name in ("source_lang", "target_lang", "tone")
                    if name in data and not isinstance(data[name], str)
                ]
                if invalid:
                    await websocket.send_json({
                        "type": "error",
                        "message": f"{', '.join(invalid)} must be a string",
                    })
                    continue

                session = session_manager.get_or_create_session(session_id)
                if controller is None:
                    controller = RecognitionController(
                        engine=WebSocketSpeechEngine(websocket.send_json),
                        source_language=lambda: session.source_lang,
                        on_transcript=on_transcript,
                        on_status=on_status,
                        on_recording=on_recording,
                    )

                source_lang = data.get("source_lang", session.source_lang)
                target_lang = data.get("target_lang", session.target_lang)
                languages_changed = (source_lang, target_lang) != (session.source_lang, session.target_lang)
                if languages_changed and controller.is_listening:
                    await websocket.send_json({
                        "type": "error",
                        "message": "Languages cannot change while recording",
                    })
                else:
                    session.source_lang = source_lang
                    session.target_lang = target_lang
                session.tone = data.get("tone", session.tone)

                await websocket.send_json({"type": "status", "step": "config_loaded"})
                await websocket.send_json({"type": "theme", "dark": session.theme.dark})
                continue

            if session is None:
                await websocket.send_json({"type": "error", "message": "No active session"})
                continue

            # ────────────── Recognition ──────────────
            if msg_type == "capability":
                if not data.get("supported", False):
                    await controller.disable()

            elif msg_type == "record":
                await controller.start()

            elif msg_type == "stop":
                await controller.stop()

            elif msg_type == "engine":
                try:
                    await controller.dispatch(data)
                except (TypeError, ValueError) as e:
                    await websocket.send_json({"type": "error", "message": str(e)})

            # ────────────── Manual requests ──────────────
            elif msg_type == "text":
                schedule_translation(data.get("text", ""))

            elif msg_type == "prepared":
                schedule_translation(prepared=True)

            elif msg_type == "theme":
                theme = session_manager.set_theme(session.session_id, bool(data.get("dark", False)))
                await websocket.send_json({"type": "theme", "dark": theme.dark})

            else:
                await websocket.send_json({"type": "error", "message": f"Unknown message type: {msg_type}"})

    except WebSocketDisconnect:
        if session is not None:
            logger.info("[%s] Client disconnected", session.session_id)
        else:
            logger.info("Client disconnected")


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)
