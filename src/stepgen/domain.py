"""Conversation types and the transcript JSON codec."""

import json
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Callable, Literal

from stepgen.errors import NotFoundError

if TYPE_CHECKING:
    from stepgen.ai import AI
    from stepgen.db import DBs

Role = Literal["system", "user", "assistant"]

_ROLES = ("system", "user", "assistant")


@dataclass
class Message:
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


# An ordered, append-only sequence of messages exchanged with the backend.
Transcript = list[Message]

# A step takes the conversation client and the store bundle and returns the
# transcript the runner persists under the step's name.
Step = Callable[["AI", "DBs"], Transcript]


def serialize_messages(messages: Transcript) -> str:
    return json.dumps([m.to_dict() for m in messages])


def deserialize_messages(text: str, source: str = "transcript") -> Transcript:
    """Parse a persisted transcript back into Message objects.

    Anything that is not a JSON array of {"role", "content"} objects with a
    known role and string content raises NotFoundError: a structurally
    invalid record is treated the same as a missing one.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise NotFoundError(f"{source} is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise NotFoundError(f"{source} is not a list of messages")

    messages: Transcript = []
    for index, item in enumerate(data):
        if (
            not isinstance(item, dict)
            or item.get("role") not in _ROLES
            or not isinstance(item.get("content"), str)
        ):
            raise NotFoundError(f"{source} has an invalid message at index {index}")
        messages.append(Message(role=item["role"], content=item["content"]))
    return messages
