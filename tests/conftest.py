"""Root pytest configuration for Campaign Hub tests."""

import os
import tempfile

# Point config at a throwaway directory before anything imports it; api.py
# opens the database at import time.
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="campaign-hub-tests-")
os.environ["DATA_DIR"] = _TEST_DATA_DIR
os.environ["DATABASE_PATH"] = os.path.join(_TEST_DATA_DIR, "campaign_hub.db")
os.environ["LLM_BACKEND"] = "openai"
os.environ["OPENAI_API_KEY"] = ""

from pathlib import Path
from typing import Any

import pytest

from campaign_hub.models.base import LLMBackend, LLMResponse, LLMUnavailableError, Message
from campaign_hub.storage import Storage


# ---------------------------------------------------------------------------
# Mock LLM Backend
# ---------------------------------------------------------------------------


class MockLLMBackend(LLMBackend):
    """Mock LLM backend for testing.

    Returns the queued responses in order, repeating the last one. With
    ``unavailable=True`` every call raises ``LLMUnavailableError``.
    """

    def __init__(self, responses: list[str] | None = None, unavailable: bool = False):
        self.responses = responses or ["Mock response"]
        self.unavailable = unavailable
        self._call_index = 0
        self.calls: list[tuple[list[Message], dict[str, Any]]] = []

    def chat(
        self,
        messages: list[Message],
        json_mode: bool = False,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        self.calls.append(
            (messages, {"json_mode": json_mode, "temperature": temperature, "max_tokens": max_tokens})
        )
        if self.unavailable:
            raise LLMUnavailableError("mock backend is down")
        if self._call_index < len(self.responses):
            text = self.responses[self._call_index]
            self._call_index += 1
        else:
            text = self.responses[-1]
        return LLMResponse(text=text)

    def get_model_name(self) -> str:
        return "mock-model"

    def is_available(self) -> bool:
        return not self.unavailable


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def storage(tmp_path: Path):
    """Storage facade over a fresh sqlite file."""
    s = Storage(tmp_path / "test.db")
    yield s
    s.close()


@pytest.fixture
def mock_llm() -> MockLLMBackend:
    return MockLLMBackend()


@pytest.fixture
def seeded(storage: Storage) -> dict[str, Any]:
    """A DM, a player with a character in one campaign, and an outsider."""
    dm = storage.users.create("dungeon_master", "dm-pass")
    player = storage.users.create("player_one", "p1-pass")
    outsider = storage.users.create("outsider", "out-pass")
    campaign = storage.campaigns.create("The Sunken Crown", dm.id, setting="Coastal ruins")
    character = storage.characters.create(player.id, "Mira", "Elf", "Ranger")
    storage.campaigns.add_character(campaign.id, character.id)
    return {
        "dm": dm,
        "player": player,
        "outsider": outsider,
        "campaign": campaign,
        "character": character,
    }


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def api_module(tmp_path: Path, mock_llm: MockLLMBackend):
    """The api module rewired to a fresh database and the mock LLM."""
    import api

    api.init_services(tmp_path / "api.db", mock_llm)
    api.app.config["TESTING"] = True
    yield api
    api.registry.clear()
    api.storage.close()


@pytest.fixture
def client(api_module):
    with api_module.app.test_client() as test_client:
        yield test_client


@pytest.fixture
def api_seeded(api_module) -> dict[str, Any]:
    """Same shape as ``seeded`` but stored in the api module's database."""
    s = api_module.storage
    dm = s.users.create("dungeon_master", "dm-pass")
    player = s.users.create("player_one", "p1-pass")
    outsider = s.users.create("outsider", "out-pass")
    campaign = s.campaigns.create("The Sunken Crown", dm.id, setting="Coastal ruins")
    character = s.characters.create(player.id, "Mira", "Elf", "Ranger")
    s.campaigns.add_character(campaign.id, character.id)
    return {
        "dm": dm,
        "player": player,
        "outsider": outsider,
        "campaign": campaign,
        "character": character,
    }


@pytest.fixture
def auth_headers(api_module):
    """Build an Authorization header for a user."""
    from flask_jwt_extended import create_access_token

    def make(user) -> dict[str, str]:
        with api_module.app.app_context():
            token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}"}

    return make
