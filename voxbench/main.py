"""
FastAPI application and voxbench entry point.

Serves two things:
  - the speech-to-speech gateway function (multipart in, JSON out)
  - owner-scoped JSON endpoints over the conversation store
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response

from voxbench.auth import owner_from_header
from voxbench.backends.router import SpeechBackendRouter
from voxbench.config import get_config
from voxbench.errors import (
    Forbidden,
    MissingParameter,
    NotFound,
    NotSignedIn,
    UnsupportedModel,
    VoxBenchError,
)
from voxbench.history import HistoryBrowser
from voxbench.performance import PerformanceAggregator
from voxbench.storage.sqlite_store import SQLiteStore

__version__ = "1.0.0"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, x-owner-id",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
}

REQUIRED_FIELDS = ("audio", "model", "language")

# ---------------------------------------------------------------------------
# Globals, set in lifespan()
# ---------------------------------------------------------------------------
backend_router: SpeechBackendRouter | None = None
sqlite_store: SQLiteStore | None = None

logger = logging.getLogger(__name__)


def _setup_logging(cfg: dict):
    log_cfg = cfg.get("logging", {})
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    log_file = log_cfg.get("file")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        from pathlib import Path
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    global backend_router, sqlite_store

    cfg = get_config()
    _setup_logging(cfg)

    sqlite_store = SQLiteStore(cfg["storage"]["sqlite_path"])
    backend_router = SpeechBackendRouter(
        cfg.get("models", {}),
        audio_base_url=cfg["audio"].get("base_url", "https://mock-audio-storage.com"),
    )

    logger.info(
        "voxbench started, listening on %s:%s",
        cfg["server"]["host"],
        cfg["server"]["port"],
    )
    logger.info("Storage: SQLite=%s", cfg["storage"]["sqlite_path"])

    yield

    logger.info("voxbench shutting down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="voxbench",
    description="Speech-to-speech model bench",
    version=__version__,
    lifespan=lifespan,
)

_STATUS_BY_ERROR: list[tuple[type[VoxBenchError], int]] = [
    (NotSignedIn, 401),
    (Forbidden, 403),
    (NotFound, 404),
    (UnsupportedModel, 400),
]


@app.exception_handler(VoxBenchError)
async def voxbench_error_handler(request: Request, exc: VoxBenchError):
    status = 500
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            status = code
            break
    if status == 500:
        logger.error("%s on %s: %s", exc.__class__.__name__, request.url.path, exc)
    return JSONResponse({"error": str(exc), "success": False}, status_code=status)


# ---------------------------------------------------------------------------
# Gateway function
# ---------------------------------------------------------------------------

def _gateway_error(message: str) -> JSONResponse:
    return JSONResponse(
        {"error": message or "Internal server error", "success": False},
        status_code=500,
        headers=CORS_HEADERS,
    )


async def _read_audio(value) -> bytes:
    if isinstance(value, str):
        return value.encode()
    return await value.read()


@app.options("/functions/v1/speech-to-speech")
async def speech_to_speech_preflight():
    """CORS preflight."""
    return Response(status_code=200, headers=CORS_HEADERS)


@app.post("/functions/v1/speech-to-speech")
async def speech_to_speech(request: Request):
    """
    Multipart fields: audio (file), model, language.
    Returns the transcript, reply audio URL and backend processing time.
    """
    logger.info("Speech-to-Speech processing started")
    try:
        form = await request.form()
        missing = [f for f in REQUIRED_FIELDS if not form.get(f)]
        if missing:
            raise MissingParameter(missing)

        model = str(form["model"])
        language = str(form["language"])
        audio = await _read_audio(form["audio"])

        response = await backend_router.process(model, audio, language)
    except VoxBenchError as e:
        logger.error("Error in speech-to-speech processing: %s", e)
        return _gateway_error(str(e))

    if not response.ok:
        logger.error("Error in speech-to-speech processing: %s", response.error)
        return _gateway_error(response.error)

    return JSONResponse(
        {
            "transcript": response.transcript,
            "audioUrl": response.audio_url,
            "latency": response.latency_ms,
            "model": model,
            "language": language,
            "success": True,
        },
        headers=CORS_HEADERS,
    )


# ---------------------------------------------------------------------------
# API v1 endpoints (owner-scoped)
# ---------------------------------------------------------------------------

@app.get("/api/v1/health")
async def health():
    """Health check."""
    return JSONResponse({
        "status": "ok",
        "version": __version__,
        "models": [m["name"] for m in backend_router.list_models()] if backend_router else [],
        "storage": sqlite_store is not None,
    })


@app.get("/api/v1/models")
async def list_models():
    """Registered speech models."""
    return JSONResponse({"models": backend_router.list_models() if backend_router else []})


@app.get("/api/v1/conversations")
async def list_conversations(limit: int | None = None, x_owner_id: str | None = Header(None)):
    """Owner's conversations, newest first, with message counts."""
    owner = owner_from_header(x_owner_id)
    summaries = HistoryBrowser(sqlite_store).list(owner, limit=limit)
    return JSONResponse({"conversations": [s.to_dict() for s in summaries]})


@app.get("/api/v1/conversations/{conversation_id}/messages")
async def conversation_messages(conversation_id: str, x_owner_id: str | None = Header(None)):
    """Messages of one owned conversation, oldest first."""
    owner = owner_from_header(x_owner_id)
    messages = HistoryBrowser(sqlite_store).open(owner, conversation_id)
    return JSONResponse({
        "conversation_id": conversation_id,
        "messages": [m.to_dict() for m in messages],
    })


@app.delete("/api/v1/conversations/{conversation_id}")
async def delete_conversation(conversation_id: str, x_owner_id: str | None = Header(None)):
    """Delete an owned conversation and its messages."""
    owner = owner_from_header(x_owner_id)
    HistoryBrowser(sqlite_store).delete(owner, conversation_id)
    return JSONResponse({"deleted": conversation_id, "success": True})


@app.get("/api/v1/stats")
async def stats(x_owner_id: str | None = Header(None)):
    """Per-model averages over every performance record of the owner."""
    owner = owner_from_header(x_owner_id)
    model_stats = PerformanceAggregator(sqlite_store, owner).compute_stats()
    return JSONResponse({
        "stats": [s.to_dict() for s in model_stats],
        "totals": sqlite_store.get_stats(owner),
    })
