"""Shared fixtures: a store bundle in tmp_path and an AI with a scripted backend."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from stepgen.ai import AI
from stepgen.config import PREPROMPT_NAMES
from stepgen.db import DB, DBs
from stepgen.utils import configure_logging


def completion(content):
    """Build an object shaped like an openai ChatCompletion with one choice."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(role="assistant", content=content))])


def make_ai(*replies):
    """Return (ai, create_mock); each backend call returns the next reply."""
    client = MagicMock()
    client.chat.completions.create.side_effect = [completion(r) for r in replies]
    ai = AI(model="test-model", temperature=0.0, client=client)
    return ai, client.chat.completions.create


def sent_messages(create_mock, call_index=-1):
    """The message dicts passed to the backend on a given call."""
    return create_mock.call_args_list[call_index].kwargs["messages"]


@pytest.fixture(autouse=True)
def _reset_logging():
    configure_logging()
    yield
    configure_logging()


@pytest.fixture
def dbs(tmp_path):
    project = tmp_path / "project"
    memory = project / "memory"
    preprompts = DB(str(tmp_path / "preprompts"))
    for name in PREPROMPT_NAMES:
        preprompts.write(name, f"<{name}>")
    return DBs(
        memory=DB(str(memory)),
        logs=DB(str(memory / "logs")),
        preprompts=preprompts,
        input=DB(str(project)),
        workspace=DB(str(project / "workspace")),
    )


@pytest.fixture
def dbs_with_prompt(dbs):
    dbs.input.write("prompt", "Build a todo app")
    return dbs
