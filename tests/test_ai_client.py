"""OpenRouterClientのテスト"""

from unittest.mock import MagicMock

import pytest
import requests

from src.growth_tracker.ai_client import OpenRouterClient
from src.growth_tracker.config import AIConfig
from src.growth_tracker.exceptions import (
    AIConfigurationError,
    AIRequestError,
    AIResponseError,
    AITimeoutError,
)

MESSAGES = [{"role": "user", "content": "hello"}]


def make_response(status_code=200, payload=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = "error body"
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return OpenRouterClient(
        api_key="sk-test",
        base_url="https://example.test/api/v1/",
        model="test-model",
        app_url="https://app.test",
        app_title="Test App",
        session=session,
    )


def test_chat_returns_first_choice_content(client, session):
    session.post.return_value = make_response(
        payload={"choices": [{"message": {"content": '{"tasks": []}'}}]}
    )

    assert client.chat(MESSAGES) == '{"tasks": []}'

    args, kwargs = session.post.call_args
    assert args[0] == "https://example.test/api/v1/chat/completions"
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
    assert kwargs["headers"]["HTTP-Referer"] == "https://app.test"
    assert kwargs["headers"]["X-Title"] == "Test App"
    assert kwargs["json"]["model"] == "test-model"
    assert kwargs["json"]["messages"] == MESSAGES
    assert kwargs["json"]["temperature"] == 0.7
    assert kwargs["json"]["max_tokens"] == 1000
    assert kwargs["timeout"] == 30.0


def test_chat_without_api_key_raises_configuration_error(session):
    client = OpenRouterClient(api_key="", session=session)

    assert not client.is_configured
    with pytest.raises(AIConfigurationError):
        client.chat(MESSAGES)
    session.post.assert_not_called()


def test_non_2xx_raises_response_error_with_status(client, session):
    session.post.return_value = make_response(status_code=500)

    with pytest.raises(AIResponseError) as excinfo:
        client.chat(MESSAGES)
    assert excinfo.value.status_code == 500


def test_timeout_is_mapped(client, session):
    session.post.side_effect = requests.exceptions.Timeout("slow")
    with pytest.raises(AITimeoutError):
        client.chat(MESSAGES)


def test_connection_error_is_mapped(client, session):
    session.post.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(AIRequestError):
        client.chat(MESSAGES)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"json_error": True},
        {"payload": {"choices": []}},
        {"payload": {"choices": [{"message": {"content": "   "}}]}},
        {"payload": ["unexpected"]},
        {"payload": {"choices": [{"message": "plain text"}]}},
        {"payload": {"choices": {"message": {"content": "x"}}}},
    ],
)
def test_malformed_body_raises_response_error(client, session, kwargs):
    session.post.return_value = make_response(**kwargs)
    with pytest.raises(AIResponseError):
        client.chat(MESSAGES)


def test_from_config_reads_key_from_environment(monkeypatch):
    monkeypatch.setenv("TEST_AI_KEY", "sk-env")
    client = OpenRouterClient.from_config(AIConfig(api_key_env="TEST_AI_KEY", model="m"))
    assert client.is_configured
    assert client.api_key == "sk-env"
    assert client.model == "m"

    monkeypatch.delenv("TEST_AI_KEY")
    assert not OpenRouterClient.from_config(AIConfig(api_key_env="TEST_AI_KEY")).is_configured
