"""Conversation client wrapping the OpenAI chat-completions API."""

import json
from typing import Any

import openai

from stepgen.config import DEFAULT_MODEL, DEFAULT_TEMPERATURE, TOP_P
from stepgen.domain import Message, Transcript
from stepgen.errors import MalformedResponseError, TransportError
from stepgen.utils import debug, log


class AI:
    """One backend model plus conversation-history semantics.

    Every step is built from next(): append an optional user message, send
    the whole transcript, append the first choice's reply as an assistant
    message. There is no retry and no token cap at this layer.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        api_key: str = "",
        client: Any = None,
    ):
        self.model = model
        self.temperature = temperature
        if client is None:
            client = openai.OpenAI(api_key=api_key, max_retries=0)
        self.client = client

    def start(self, system: str, user: str) -> Transcript:
        messages = [self.fsystem(system), self.fuser(user)]
        return self.next(messages)

    def fsystem(self, msg: str) -> Message:
        return Message(role="system", content=msg)

    def fuser(self, msg: str) -> Message:
        return Message(role="user", content=msg)

    def fassistant(self, msg: str) -> Message:
        return Message(role="assistant", content=msg)

    def next(self, messages: Transcript, prompt: str | None = None) -> Transcript:
        """Advance the conversation by one round-trip and return *messages*."""
        if prompt:
            messages.append(self.fuser(prompt))

        debug(
            f"Creating a new chat completion: {_dump(messages)} "
            f"with model: {self.model} and temperature: {self.temperature}"
        )

        content = self._complete(messages)

        log()
        log(content)

        messages.append(self.fassistant(content))

        debug(f"Chat completion finished: {_dump(messages)}")
        return messages

    def _complete(self, messages: Transcript) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[m.to_dict() for m in messages],
                temperature=self.temperature,
                top_p=TOP_P,
            )
        except openai.APIResponseValidationError as exc:
            raise MalformedResponseError(f"Unexpected response from {self.model}: {exc}") from exc
        except (openai.APIConnectionError, openai.APIStatusError) as exc:
            raise TransportError(f"Chat completion request failed: {exc}") from exc

        choices = getattr(response, "choices", None)
        if not choices:
            raise MalformedResponseError("Chat completion response contained no choices")
        message = getattr(choices[0], "message", None)
        if message is None:
            raise MalformedResponseError("First choice in the response has no message")
        return getattr(message, "content", None) or ""


def _dump(messages: Transcript) -> str:
    return json.dumps([m.to_dict() for m in messages])
