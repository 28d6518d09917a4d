# -*- coding: utf-8 -*-
"""
MoodFlow relay server
---------------------
- POST /ai-response : {moodValue, note} -> {reply}
- GET  /healthz     : health check
Notes:
- Stateless; check-ins are never stored server-side
- Every generator failure is answered with a fallback reply, never an error
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import ALLOWED_ORIGINS, APP_NAME, GEMINI_MODEL, HOST, PORT
from .gemini import GeminiClient, build_prompt
from .schemas import RelayReply, RelayRequest

logger = logging.getLogger("moodflow.server")

EMPTY_GENERATION_REPLY = "I'm here with you, even if I couldn't generate a reply ❤️"
SERVER_FALLBACK_REPLY = "AI couldn't respond right now, but you're doing great ❤️"

Generator = Callable[[str], Awaitable[str]]


def create_app(generate: Optional[Generator] = None, model: str = GEMINI_MODEL) -> FastAPI:
    """Build the relay app. ``generate`` defaults to the Gemini client."""
    if generate is None:
        generate = GeminiClient(model=model).generate

    app = FastAPI(title=APP_NAME, version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=ALLOWED_ORIGINS != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok", "model": model}

    @app.post("/ai-response", response_model=RelayReply)
    async def ai_response(payload: RelayRequest) -> RelayReply:
        logger.info("Incoming check-in: mood=%s note_len=%d", payload.mood_value, len(payload.note))

        prompt = build_prompt(payload.mood_value, payload.note)
        try:
            text = (await generate(prompt) or "").strip()
        except Exception as exc:
            logger.error("Text generation failed: %s", exc)
            return RelayReply(reply=SERVER_FALLBACK_REPLY)

        if not text:
            logger.warning("Text generation returned an empty reply")
            return RelayReply(reply=EMPTY_GENERATION_REPLY)

        logger.info("Reply generated (%d chars)", len(text))
        return RelayReply(reply=text)

    return app


def run(host: str = HOST, port: int = PORT) -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("Relay running on http://%s:%s", host, port)
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    run()
