import httpx
import pytest

from resume_ai.model_discovery import fetch_available_models
from resume_ai.model_registry import get_models_for_service


def _model_list(*ids):
    return httpx.Response(200, json={
        "object": "list",
        "data": [{"id": i, "object": "model", "created": 0, "owned_by": "test"} for i in ids],
    })


@pytest.mark.asyncio
async def test_openai_filters_and_sorts(mock_http):
    client, transport = mock_http(lambda request: _model_list(
        "gpt-4o", "gpt-3.5-turbo-instruct", "gpt-4-0314", "dall-e-3", "gpt-4o", "gpt-4-turbo",
    ))
    async with client:
        models = await fetch_available_models("openai", "sk-test", http_client=client)

    assert models == ["gpt-4-turbo", "gpt-4o"]
    assert transport.requests[0].url.path.endswith("/models")
    assert transport.requests[0].headers["authorization"] == "Bearer sk-test"


@pytest.mark.asyncio
async def test_groq_drops_non_chat_models(mock_http):
    client, _ = mock_http(lambda request: _model_list(
        "whisper-large-v3", "llama-3.3-70b-versatile", "llama-guard-3-8b", "playai-tts", "gemma2-9b-it",
    ))
    async with client:
        models = await fetch_available_models("groq", "gsk-test", http_client=client)

    assert models == ["gemma2-9b-it", "llama-3.3-70b-versatile"]


@pytest.mark.asyncio
async def test_failed_request_falls_back_to_static_list(mock_http):
    def fail(request):
        raise httpx.ConnectError("network down", request=request)

    client, _ = mock_http(fail)
    async with client:
        models = await fetch_available_models("openai", "sk-test", http_client=client)

    assert models == get_models_for_service("openai")


@pytest.mark.asyncio
async def test_http_error_falls_back_to_static_list(mock_http):
    client, _ = mock_http(lambda request: httpx.Response(401, json={"error": {"message": "bad key"}}))
    async with client:
        models = await fetch_available_models("groq", "gsk-bad", http_client=client)

    assert models == get_models_for_service("groq")


@pytest.mark.asyncio
async def test_filter_leaving_nothing_uses_static_list(mock_http):
    client, _ = mock_http(lambda request: _model_list("dall-e-3", "whisper-1"))
    async with client:
        models = await fetch_available_models("openai", "sk-test", http_client=client)

    assert models == get_models_for_service("openai")


@pytest.mark.asyncio
@pytest.mark.parametrize("provider_id", ["anthropic", "google"])
async def test_providers_without_listing_use_static_list(provider_id, mock_http):
    client, transport = mock_http(lambda request: _model_list("unused"))
    async with client:
        models = await fetch_available_models(provider_id, "key", http_client=client)

    assert models == get_models_for_service(provider_id)
    assert transport.requests == []


@pytest.mark.asyncio
async def test_empty_key_makes_no_request(mock_http):
    client, transport = mock_http(lambda request: _model_list("gpt-4o"))
    async with client:
        models = await fetch_available_models("openai", "", http_client=client)

    assert models == get_models_for_service("openai")
    assert transport.requests == []
