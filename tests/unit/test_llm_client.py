"""Tests for the LLM client."""

from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from viral_video.core.exceptions import ConfigurationError, TransportError, ValidationError
from viral_video.services.llm_client import SYSTEM_PROMPT, LLMClient, build_plan_prompt


def chat_response(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def keyed_settings(settings):
    return settings.model_copy(update={"openai_api_key": "sk-test"})


def test_missing_api_key(settings, logger):
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        LLMClient(settings, logger).generate_plan_json("Topic", 6, 60)


def test_prompt_mentions_scene_count_and_duration():
    prompt = build_plan_prompt("Index funds", 8, 45)
    assert 'Topic: "Index funds"' in prompt
    assert "exactly 8 prompts" in prompt
    assert "sum to ~45" in prompt


@patch("viral_video.services.llm_client.OpenAI")
def test_generate_plan_json(mock_openai, keyed_settings, logger):
    client = mock_openai.return_value
    client.chat.completions.create.return_value = chat_response('{"title": "Index funds", "sections": []}')

    data = LLMClient(keyed_settings, logger).generate_plan_json("Index funds", 6, 60)

    assert data == {"title": "Index funds", "sections": []}
    mock_openai.assert_called_once_with(api_key="sk-test")
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-5"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert kwargs["messages"][1]["role"] == "user"


@pytest.mark.parametrize("content", ["not json", "[1, 2]", ""])
@patch("viral_video.services.llm_client.OpenAI")
def test_invalid_json_is_a_validation_error(mock_openai, content, keyed_settings, logger):
    mock_openai.return_value.chat.completions.create.return_value = chat_response(content)

    with pytest.raises(ValidationError, match="Model did not return valid JSON."):
        LLMClient(keyed_settings, logger).generate_plan_json("Topic", 6, 60)


@patch("viral_video.services.llm_client.OpenAI")
def test_api_failure_is_a_transport_error(mock_openai, keyed_settings, logger):
    mock_openai.return_value.chat.completions.create.side_effect = OpenAIError("rate limit exceeded")

    with pytest.raises(TransportError) as exc_info:
        LLMClient(keyed_settings, logger).generate_plan_json("Topic", 6, 60)

    assert exc_info.value.provider == "OpenAI"
    assert "rate limit exceeded" in str(exc_info.value)
