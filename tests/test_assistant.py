"""
AssistantClient with the Gemini SDK replaced by an in-memory fake.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from backend_charity.assistant import llm
from backend_charity.assistant.llm import AssistantClient, strip_code_fence, to_gemini_history
from backend_charity.assistant.prompts import (
    AUDIT_SYSTEM_PROMPT,
    CHAT_SYSTEM_PROMPT,
    DESCRIPTION_DEFAULTS,
    description_prompt,
)
from backend_charity.core.exceptions import AssistantError


class FakeChat:
    def __init__(self, model, history):
        self.model = model
        self.history = history

    async def send_message_async(self, message):
        self.model.prompts.append(message)
        return self.model.respond()


class FakeModel:
    def __init__(self, model_name, system_instruction=None, generation_config=None):
        self.model_name = model_name
        self.system_instruction = system_instruction
        self.generation_config = generation_config
        self.prompts = []
        self.chats = []
        self.reply = "ok"
        self.error = None

    def respond(self):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.reply)

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        return self.respond()

    def start_chat(self, history):
        chat = FakeChat(self, history)
        self.chats.append(chat)
        return chat


@pytest.fixture
def fake_genai(monkeypatch):
    configured = {}
    fake = SimpleNamespace(
        configure=lambda **kwargs: configured.update(kwargs),
        GenerativeModel=FakeModel,
        configured=configured,
    )
    monkeypatch.setattr(llm, "genai", fake)
    return fake


@pytest.fixture
def client(fake_genai):
    return AssistantClient("secret", model_name="gemini-test")


def test_client_configures_models(fake_genai, client):
    assert fake_genai.configured == {"api_key": "secret"}
    assert client._chat_model.system_instruction == CHAT_SYSTEM_PROMPT
    assert client._chat_model.model_name == "gemini-test"
    assert client._audit_model.system_instruction == AUDIT_SYSTEM_PROMPT
    assert client._audit_model.generation_config["response_mime_type"] == "application/json"


def test_missing_key_rejected(fake_genai):
    with pytest.raises(AssistantError):
        AssistantClient("")


def test_history_mapping():
    history = [
        {"role": "user", "content": "Xin chào"},
        {"role": "assistant", "content": "Chào bạn"},
        {"role": "system", "content": "ignored"},
        {"role": "user", "content": ""},
        {"content": "no role"},
        {"role": None, "content": "null role"},
        {"role": "assistant", "content": None},
    ]
    assert to_gemini_history(history) == [
        {"role": "user", "parts": ["Xin chào"]},
        {"role": "model", "parts": ["Chào bạn"]},
    ]
    assert to_gemini_history(None) == []


def test_chat_continues_history(client):
    client._chat_model.reply = "  Tôi có thể giúp gì?  "
    reply = asyncio.run(client.chat("Làm sao để đấu giá?", [{"role": "user", "content": "hi"}]))
    assert reply == "Tôi có thể giúp gì?"
    chat = client._chat_model.chats[0]
    assert chat.history == [{"role": "user", "parts": ["hi"]}]
    assert client._chat_model.prompts == ["Làm sao để đấu giá?"]


def test_chat_failure_becomes_assistant_error(client):
    client._chat_model.error = RuntimeError("quota exceeded")
    with pytest.raises(AssistantError, match="quota exceeded"):
        asyncio.run(client.chat("hi"))


def test_empty_reply_is_an_error(client):
    client._quick_model.reply = "   "
    with pytest.raises(AssistantError):
        asyncio.run(client.describe("Bình gốm"))


def test_generate_description_uses_defaults(client):
    client._description_model.reply = "Một món quà ý nghĩa."
    assert asyncio.run(client.generate_description(item_name="Bình gốm")) == "Một món quà ý nghĩa."
    prompt = client._description_model.prompts[0]
    assert prompt == description_prompt("Bình gốm", None, None, None)
    assert "Bình gốm" in prompt
    assert DESCRIPTION_DEFAULTS["donor_name"] in prompt


def test_audit_parses_json_verdict(client):
    client._audit_model.reply = '```json\n{"is_valid": false, "score": 12, "summary": "Fake", "reason": "No seal"}\n```'
    verdict = asyncio.run(client.audit_document("Hope", "document text"))
    assert verdict == {"is_valid": False, "score": 12, "summary": "Fake", "reason": "No seal"}
    assert "Hope" in client._audit_model.prompts[0]
    assert "document text" in client._audit_model.prompts[0]


@pytest.mark.parametrize("reply", ["not json at all", "[1, 2, 3]"])
def test_audit_rejects_unusable_reply(client, reply):
    client._audit_model.reply = reply
    with pytest.raises(AssistantError):
        asyncio.run(client.audit_document("Hope", "text"))


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence("```\n{}\n```") == "{}"
    assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'
