import os
import json
import tempfile
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="uploads-"))
os.environ.setdefault("STORAGE_PROVIDER", "local")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from services.openai_review import InvokerConfig


def completion(content):
    """Shape of an openai chat completion, as far as the invoker reads it."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def prompt_text(kwargs):
    user = kwargs["messages"][-1]["content"]
    if isinstance(user, list):
        return user[0]["text"]
    return user


@pytest.fixture
def config():
    return InvokerConfig(api_key="sk-test", timeout=5, fallback_model="gpt-4o-mini")


@pytest.fixture
def fake_openai():
    """Patch the OpenAI client; set ``.replies`` to route replies by prompt text."""
    client = MagicMock()
    state = SimpleNamespace(client=client, replies={}, default="{}")

    def create(**kwargs):
        text = prompt_text(kwargs)
        for needle, reply in state.replies.items():
            if needle in text:
                if isinstance(reply, Exception):
                    raise reply
                return completion(reply if isinstance(reply, str) else json.dumps(reply))
        return completion(state.default)

    client.chat.completions.create.side_effect = create
    with patch("services.openai_review.OpenAI", return_value=client):
        yield state
