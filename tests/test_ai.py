"""Tests for the conversation client."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from conftest import completion, make_ai, sent_messages
from stepgen.ai import AI
from stepgen.domain import Message
from stepgen.errors import MalformedResponseError, TransportError

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _ai_raising(exc):
    client = MagicMock()
    client.chat.completions.create.side_effect = exc
    return AI(model="m", client=client)


def test_start_sends_system_and_user_and_appends_reply():
    ai, create = make_ai("Sure.")
    messages = ai.start("be helpful", "write code")
    assert messages == [
        Message("system", "be helpful"),
        Message("user", "write code"),
        Message("assistant", "Sure."),
    ]
    assert create.call_count == 1
    assert sent_messages(create) == [
        {"role": "system", "content": "be helpful"},
        {"role": "user", "content": "write code"},
    ]


def test_request_uses_model_temperature_and_fixed_top_p():
    ai, create = make_ai("ok")
    ai.temperature = 0.7
    ai.start("s", "u")
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["temperature"] == 0.7
    assert kwargs["top_p"] == 1.0
    assert "max_tokens" not in kwargs


def test_next_appends_prompt_and_mutates_the_same_list():
    ai, create = make_ai("second")
    messages = [Message("system", "s")]
    result = ai.next(messages, "question")
    assert result is messages
    assert [m.role for m in messages] == ["system", "user", "assistant"]
    assert messages[1].content == "question"


def test_next_without_prompt_sends_transcript_as_is():
    ai, create = make_ai("reply")
    messages = [Message("system", "s"), Message("user", "u"), Message("system", "again")]
    ai.next(messages)
    assert len(sent_messages(create)) == 3
    assert messages[-1] == Message("assistant", "reply")


def test_missing_content_becomes_empty_string():
    ai, _ = make_ai(None)
    messages = ai.start("s", "u")
    assert messages[-1] == Message("assistant", "")


def test_only_first_choice_is_used():
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[
            SimpleNamespace(message=SimpleNamespace(content="first")),
            SimpleNamespace(message=SimpleNamespace(content="second")),
        ]
    )
    ai = AI(client=client)
    assert ai.start("s", "u")[-1].content == "first"


def test_empty_choices_is_malformed():
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[])
    ai = AI(client=client)
    with pytest.raises(MalformedResponseError):
        ai.start("s", "u")


def test_choice_without_message_is_malformed():
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[SimpleNamespace(message=None)])
    ai = AI(client=client)
    with pytest.raises(MalformedResponseError):
        ai.start("s", "u")


def test_connection_error_becomes_transport_error():
    ai = _ai_raising(openai.APIConnectionError(request=_REQUEST))
    with pytest.raises(TransportError):
        ai.start("s", "u")


def test_status_error_becomes_transport_error():
    response = httpx.Response(500, request=_REQUEST)
    ai = _ai_raising(openai.APIStatusError("server error", response=response, body=None))
    with pytest.raises(TransportError):
        ai.start("s", "u")


def test_response_validation_error_becomes_malformed():
    response = httpx.Response(200, request=_REQUEST)
    ai = _ai_raising(openai.APIResponseValidationError(response=response, body=None))
    with pytest.raises(MalformedResponseError):
        ai.start("s", "u")


def test_transport_error_is_not_retried():
    client = MagicMock()
    client.chat.completions.create.side_effect = [openai.APIConnectionError(request=_REQUEST), completion("late")]
    ai = AI(client=client)
    with pytest.raises(TransportError):
        ai.start("s", "u")
    assert client.chat.completions.create.call_count == 1


def test_default_client_disables_sdk_retries():
    ai = AI(api_key="sk-test")
    assert isinstance(ai.client, openai.OpenAI)
    assert ai.client.max_retries == 0
    assert ai.client.api_key == "sk-test"
