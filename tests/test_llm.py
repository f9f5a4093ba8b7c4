import json

import httpx
import pytest

from utils.errors import ConfigurationError, GenerationError
from utils.llm import call_llm

CONFIG = {
    "llm": {
        "api_url": "https://llm.test/v1/chat/completions",
        "api_key": "sk-test",
        "model": "test/model",
        "timeout": 5,
        "referer": "https://solace.test",
        "title": "Solace",
    }
}


def _transport(handler):
    return httpx.MockTransport(handler)


def test_call_llm_returns_message_content():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["title"] = request.headers["X-Title"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "  [1, 2]  "}}]})

    content = call_llm("Find quotes", config=CONFIG, transport=_transport(handler), temperature=0.3)

    assert content == "[1, 2]"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["title"] == "Solace"
    assert seen["body"]["model"] == "test/model"
    assert seen["body"]["temperature"] == 0.3
    assert seen["body"]["messages"][-1] == {"role": "user", "content": "Find quotes"}


def test_missing_api_key_is_configuration_error():
    config = {"llm": {**CONFIG["llm"], "api_key": ""}}

    with pytest.raises(ConfigurationError):
        call_llm("prompt", config=config, transport=_transport(lambda request: httpx.Response(200)))


def test_http_error_status_is_generation_error():
    transport = _transport(lambda request: httpx.Response(500, text="upstream down"))

    with pytest.raises(GenerationError, match="500"):
        call_llm("prompt", config=CONFIG, transport=transport)


def test_empty_content_is_generation_error():
    transport = _transport(lambda request: httpx.Response(200, json={"choices": [{"message": {"content": ""}}]}))

    with pytest.raises(GenerationError):
        call_llm("prompt", config=CONFIG, transport=transport)


def test_missing_choices_is_generation_error():
    transport = _transport(lambda request: httpx.Response(200, json={"error": "quota"}))

    with pytest.raises(GenerationError):
        call_llm("prompt", config=CONFIG, transport=transport)


def test_transport_failure_is_generation_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GenerationError):
        call_llm("prompt", config=CONFIG, transport=_transport(handler))
