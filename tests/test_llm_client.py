import httpx
import pytest

from conftest import chat_completion, request_json
from llm_client import ADAPTERS, ANTHROPIC_VERSION, call_provider
from resume_ai.errors import ProviderError


@pytest.mark.asyncio
@pytest.mark.parametrize("provider_id, host", [
    ("openai", "api.openai.com"),
    ("groq", "api.groq.com"),
])
async def test_chat_completions_request_and_parse(provider_id, host, mock_http):
    client, transport = mock_http(lambda request: chat_completion("  Better text  "))
    async with client:
        text = await call_provider(
            provider_id, "key-123", "model-x", "Improve this", system_prompt="Be brief", http_client=client,
        )

    assert text == "Better text"
    request = transport.requests[0]
    assert request.url.host == host
    assert request.url.path.endswith("/chat/completions")
    assert request.headers["authorization"] == "Bearer key-123"
    body = request_json(request)
    assert body["model"] == "model-x"
    assert body["messages"] == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "Improve this"},
    ]
    assert "temperature" in body and "max_tokens" in body


@pytest.mark.asyncio
async def test_anthropic_request_and_parse(mock_http):
    client, transport = mock_http(lambda request: httpx.Response(200, json={
        "content": [{"type": "tool_use", "id": "x"}, {"type": "text", "text": "Claude says hi"}],
    }))
    async with client:
        text = await call_provider("anthropic", "ak", "claude-3-haiku-20240307", "Hi", http_client=client)

    assert text == "Claude says hi"
    request = transport.requests[0]
    assert str(request.url) == "https://api.anthropic.com/v1/messages"
    assert request.headers["x-api-key"] == "ak"
    assert request.headers["anthropic-version"] == ANTHROPIC_VERSION
    body = request_json(request)
    assert body["messages"] == [{"role": "user", "content": "Hi"}]
    assert body["system"]
    assert body["max_tokens"] > 0


@pytest.mark.asyncio
async def test_google_request_and_parse(mock_http):
    client, transport = mock_http(lambda request: httpx.Response(200, json={
        "candidates": [{"content": {"parts": [{"text": "Gemini answer"}]}}],
    }))
    async with client:
        text = await call_provider("google", "gk", "gemini-pro", "Hi", max_tokens=50, http_client=client)

    assert text == "Gemini answer"
    request = transport.requests[0]
    assert request.url.path == "/v1beta/models/gemini-pro:generateContent"
    assert request.url.params["key"] == "gk"
    body = request_json(request)
    assert body["contents"] == [{"role": "user", "parts": [{"text": "Hi"}]}]
    assert body["generationConfig"]["maxOutputTokens"] == 50
    assert body["systemInstruction"]["parts"][0]["text"]


@pytest.mark.asyncio
async def test_non_success_status_uses_provider_message(mock_http):
    client, _ = mock_http(lambda request: httpx.Response(
        401, json={"error": {"message": "Incorrect API key provided"}},
    ))
    async with client:
        with pytest.raises(ProviderError) as exc_info:
            await call_provider("openai", "bad", "gpt-4o", "Hi", http_client=client)

    assert exc_info.value.status == 401
    assert exc_info.value.message == "Incorrect API key provided"


@pytest.mark.asyncio
async def test_missing_text_field_is_provider_error(mock_http):
    client, _ = mock_http(lambda request: httpx.Response(200, json={"candidates": []}))
    async with client:
        with pytest.raises(ProviderError) as exc_info:
            await call_provider("google", "gk", "gemini-pro", "Hi", http_client=client)

    assert exc_info.value.status == 200


@pytest.mark.asyncio
async def test_non_json_body_is_provider_error(mock_http):
    client, _ = mock_http(lambda request: httpx.Response(200, text="<html>oops</html>"))
    async with client:
        with pytest.raises(ProviderError):
            await call_provider("groq", "k", "m", "Hi", http_client=client)


@pytest.mark.asyncio
async def test_transport_failure_has_no_status(mock_http):
    def fail(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    client, _ = mock_http(fail)
    async with client:
        with pytest.raises(ProviderError) as exc_info:
            await call_provider("anthropic", "k", "m", "Hi", http_client=client)

    assert exc_info.value.status is None


@pytest.mark.asyncio
async def test_unknown_provider_makes_no_request(mock_http):
    client, transport = mock_http(lambda request: chat_completion("x"))
    async with client:
        with pytest.raises(ProviderError) as exc_info:
            await call_provider("mistral", "k", "m", "Hi", http_client=client)

    assert exc_info.value.status is None
    assert transport.requests == []


def test_null_chat_content_parses_as_empty():
    data = {"choices": [{"message": {"role": "assistant", "content": None}}]}
    assert ADAPTERS["openai"].parse_response(data) == ""
