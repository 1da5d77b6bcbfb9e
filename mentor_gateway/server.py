"""
FastAPI server for the Mentor Gateway.

This module implements the HTTP API: the mentor features under ``/ai``, a
REST facade over the entries service, and liveness endpoints. Collaborators
are built once at startup and passed to ``create_app`` explicitly.
"""

import logging
import re
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__, mentor
from .config import GatewaySettings
from .entries import EntriesClient
from .errors import (
    EntriesFacadeError,
    EntriesServiceError,
    GatewayError,
    LLMNotConfiguredError,
    translate_upstream_errors,
)
from .llm import ChatInvoker
from .models import (
    AnomalyRequest,
    AnomalyResponse,
    ChatRequest,
    ChatResponse,
    EntriesListResponse,
    EntryCreate,
    EntryCreateResponse,
    GoalsRequest,
    GoalsResponse,
    InsightsRequest,
    InsightsResponse,
    PartnerRequest,
    PartnerResponse,
    PatternRequest,
    PatternResponse,
    PromptRequest,
    PromptResponse,
    SummaryRequest,
    SummaryResponse,
    TranscriptRequest,
    TranscriptResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_ENTRIES_LIMIT = 50
MAX_ENTRIES_LIMIT = 200


# Leading integer of a query value, read the way JavaScript's parseInt reads it
_LEADING_INT = re.compile(r"\s*([+-]?)([0-9]+)")


def parse_limit(raw: str | None) -> int:
    """Parse the entries ``limit`` query value, falling back to 50 and capping at 200."""
    match = _LEADING_INT.match(raw or "")
    if match is None:
        return DEFAULT_ENTRIES_LIMIT

    sign, digits = match.groups()
    digits = digits.lstrip("0") or "0"
    if sign == "-" or digits == "0":
        return DEFAULT_ENTRIES_LIMIT
    if len(digits) > len(str(MAX_ENTRIES_LIMIT)):
        return MAX_ENTRIES_LIMIT
    return min(MAX_ENTRIES_LIMIT, int(digits))


def create_app(
    settings: GatewaySettings,
    invoker: ChatInvoker | None = None,
    entries_client: EntriesClient | None = None,
) -> FastAPI:
    """
    Create a FastAPI application wired to the given collaborators.

    Args:
        settings: Immutable gateway configuration
        invoker: Chat invoker to use, built from ``settings`` when omitted
        entries_client: Entries service client, built from ``settings`` when omitted

    Returns:
        Configured FastAPI application
    """
    chat = invoker or ChatInvoker.from_settings(settings)
    entries = entries_client or EntriesClient(
        settings.entries_service_addr, timeout=settings.entries_timeout
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for FastAPI application."""
        logger.info("Entries service at %s", settings.entries_service_addr)
        if chat.available:
            logger.info("LLM features enabled with model %s", chat.model)
        else:
            logger.warning("OPENAI_API_KEY is not set, LLM features are disabled")
        yield
        await entries.aclose()
        await chat.aclose()

    app = FastAPI(
        title="Mentor Gateway",
        description="API gateway for journal entries and AI mentor insights",
        version=__version__,
        lifespan=lifespan,
    )

    # MARK: - Error Envelopes

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.envelope())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400, content={"error": "Request body must be a JSON object."}
        )

    # MARK: - Health

    @app.get("/healthz")
    async def healthz() -> dict[str, Any]:
        """Report configured upstreams without calling them."""
        return {
            "ok": True,
            "services": {
                "entries": settings.entries_service_addr,
                "openai": chat.available,
            },
        }

    @app.get("/ai/healthz")
    async def ai_healthz() -> dict[str, Any]:
        """Report whether the LLM features can be used."""
        if not chat.available:
            raise LLMNotConfiguredError("OPENAI_API_KEY missing")
        return {"ok": True, "model": chat.model}

    # MARK: - Entries Facade

    @app.get("/entries/all")
    async def list_entries(limit: str | None = None) -> EntriesListResponse:
        """List recent entries, at most 200."""
        try:
            rows = await entries.list_entries(parse_limit(limit))
        except EntriesServiceError as e:
            raise GatewayError(e.message, status_code=500) from e
        return EntriesListResponse(rows=rows)

    @app.post("/entries")
    async def create_entry(body: EntryCreate | None = None) -> EntryCreateResponse:
        """Store a new entry through the entries service."""
        raw = body.text if body is not None else None
        text = str(raw).strip() if raw else ""
        try:
            entry = await entries.create_entry(text)
        except EntriesServiceError as e:
            raise EntriesFacadeError(e.message) from e
        return EntryCreateResponse(entry=entry)

    # MARK: - Mentor Features

    def require_llm() -> None:
        """Reject the request before any work when the LLM is not configured."""
        if not chat.available:
            raise LLMNotConfiguredError()

    ai = APIRouter(prefix="/ai", dependencies=[Depends(require_llm)])

    @ai.post("/insights")
    async def insights(body: InsightsRequest | None = None) -> InsightsResponse:
        with translate_upstream_errors("insights", "Unable to fetch AI insights"):
            return await mentor.generate_insights(chat, body or InsightsRequest())

    @ai.post("/prompt")
    async def prompt(body: PromptRequest | None = None) -> PromptResponse:
        with translate_upstream_errors("prompt", "Unable to fetch AI prompt"):
            return await mentor.generate_prompt(chat, body or PromptRequest())

    @ai.post("/summary")
    async def summary(body: SummaryRequest | None = None) -> SummaryResponse:
        with translate_upstream_errors("summary", "Unable to fetch AI summary"):
            return await mentor.summarize_week(chat, body or SummaryRequest())

    @ai.post("/goals")
    async def goals(body: GoalsRequest | None = None) -> GoalsResponse:
        with translate_upstream_errors("goals", "Unable to fetch goal reflections"):
            return await mentor.reflect_on_goals(chat, body or GoalsRequest())

    @ai.post("/anomaly")
    async def anomaly(body: AnomalyRequest | None = None) -> AnomalyResponse:
        with translate_upstream_errors("anomaly", "Unable to run anomaly detection"):
            return await mentor.detect_anomalies(chat, body or AnomalyRequest())

    @ai.post("/pattern")
    async def pattern(body: PatternRequest | None = None) -> PatternResponse:
        with translate_upstream_errors("pattern", "Unable to map patterns"):
            return await mentor.map_patterns(chat, body or PatternRequest())

    @ai.post("/transcript")
    async def transcript(body: TranscriptRequest | None = None) -> TranscriptResponse:
        with translate_upstream_errors("transcript", "Unable to transcribe note"):
            return await mentor.clean_transcript(chat, body or TranscriptRequest())

    @ai.post("/partner")
    async def partner(body: PartnerRequest | None = None) -> PartnerResponse:
        with translate_upstream_errors("partner", "Unable to craft partner update"):
            return await mentor.share_with_partner(chat, body or PartnerRequest())

    @ai.post("/chat")
    async def chat_reply(body: ChatRequest | None = None) -> ChatResponse:
        with translate_upstream_errors("chat", "Unable to continue the mentor chat"):
            return await mentor.continue_chat(chat, body or ChatRequest())

    app.include_router(ai)

    return app


# Default app instance for ``uvicorn mentor_gateway.server:app``
app = create_app(GatewaySettings())


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    settings = GatewaySettings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("API Gateway listening on :%s", settings.port)
    uvicorn.run(
        "mentor_gateway.server:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
