import json

import httpx
import pytest

from resume_ai.storage import LocalStore


@pytest.fixture
def store(tmp_path):
    """Local store backed by a temp file."""
    return LocalStore(tmp_path / "local_storage.json")


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def recording(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording)


@pytest.fixture
def mock_http():
    """
    Build an AsyncClient whose responses come from ``handler``.

    Returns (client, transport); transport.requests lists what was sent.
    """
    def factory(handler):
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport
    return factory


def chat_completion(content):
    return httpx.Response(200, json={
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    })


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


VALID_TEMPLATE = (
    "React.createElement('div', { className: 'resume', style: { color: templateColors.primary } }, "
    "React.createElement('h1', null, personalInfo.name), "
    "skills.length > 0 && React.createElement('ul', null, "
    "skills.map((skill, i) => React.createElement('li', { key: i }, skill))))"
)
