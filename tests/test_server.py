"""Tests for the relay server and the generative-text boundary."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from google.genai import errors

from moodflow.gemini import GeminiClient, GenerationError, build_prompt
from moodflow.server import EMPTY_GENERATION_REPLY, SERVER_FALLBACK_REPLY, create_app


def _client(generate) -> TestClient:
    return TestClient(create_app(generate=generate, model="test-model"))


# ---- /ai-response ----


def test_reply_from_generator():
    prompts: list[str] = []

    async def generate(prompt: str) -> str:
        prompts.append(prompt)
        return "  It sounds like relief. Try a short walk.  "

    resp = _client(generate).post("/ai-response", json={"moodValue": 4, "note": "finished the exam"})
    assert resp.status_code == 200
    assert resp.json() == {"reply": "It sounds like relief. Try a short walk."}
    assert "good (🙂)" in prompts[0]
    assert '"finished the exam"' in prompts[0]


def test_generator_failure_is_absorbed():
    async def generate(prompt: str) -> str:
        raise GenerationError("quota exceeded")

    resp = _client(generate).post("/ai-response", json={"moodValue": 2, "note": ""})
    assert resp.status_code == 200
    assert resp.json() == {"reply": SERVER_FALLBACK_REPLY}


def test_generator_timeout_is_absorbed():
    async def generate(prompt: str) -> str:
        raise asyncio.TimeoutError()

    resp = _client(generate).post("/ai-response", json={"moodValue": 2})
    assert resp.json() == {"reply": SERVER_FALLBACK_REPLY}


def test_empty_generation():
    async def generate(prompt: str) -> str:
        return ""

    resp = _client(generate).post("/ai-response", json={"moodValue": 3, "note": "meh"})
    assert resp.json() == {"reply": EMPTY_GENERATION_REPLY}


@pytest.mark.parametrize("body", [{"moodValue": 9, "note": ""}, {"note": "no mood"}, {"moodValue": "great"}])
def test_invalid_payload_rejected(body):
    async def generate(prompt: str) -> str:  # pragma: no cover - never reached
        raise AssertionError("should not be called")

    resp = _client(generate).post("/ai-response", json=body)
    assert resp.status_code == 422


def test_healthz():
    async def generate(prompt: str) -> str:  # pragma: no cover
        return ""

    resp = _client(generate).get("/healthz")
    assert resp.json() == {"status": "ok", "model": "test-model"}


# ---- prompt ----


def test_prompt_placeholders():
    prompt = build_prompt(1, "   ")
    assert "very low (😞)" in prompt
    assert '"(no note)"' in prompt
    assert "do not mention AI" in prompt


# ---- GeminiClient ----


class _FakeModels:
    def __init__(self, result=None, exc=None, delay: float = 0.0):
        self.result, self.exc, self.delay = result, exc, delay
        self.calls: list[dict] = []

    async def generate_content(self, *, model, contents):
        self.calls.append({"model": model, "contents": contents})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.result


def _gemini(models: _FakeModels, timeout: float = 5.0) -> GeminiClient:
    sdk = SimpleNamespace(aio=SimpleNamespace(models=models))
    return GeminiClient(api_key="k", model="m", timeout=timeout, client=sdk)


def test_gemini_returns_text():
    models = _FakeModels(result=SimpleNamespace(text="  Hello there.  "))
    assert asyncio.run(_gemini(models).generate("hi")) == "Hello there."
    assert models.calls == [{"model": "m", "contents": "hi"}]


def test_gemini_no_text_is_empty():
    models = _FakeModels(result=SimpleNamespace(text=None))
    assert asyncio.run(_gemini(models).generate("hi")) == ""


def test_gemini_missing_key():
    with pytest.raises(GenerationError):
        asyncio.run(GeminiClient(api_key="", model="m").generate("hi"))


def test_gemini_api_error():
    exc = errors.APIError(429, {"error": {"message": "quota", "status": "RESOURCE_EXHAUSTED"}})
    with pytest.raises(GenerationError, match="429"):
        asyncio.run(_gemini(_FakeModels(exc=exc)).generate("hi"))


def test_gemini_timeout():
    models = _FakeModels(result=SimpleNamespace(text="late"), delay=1.0)
    with pytest.raises(GenerationError, match="timed out"):
        asyncio.run(_gemini(models, timeout=0.01).generate("hi"))
