"""
Assistant client: stateless relay to Google Gemini.

Responsibilities:
- General chat under the charity-guardian persona, with caller-supplied history.
- Item description generation (quick one-liner route and the full template).
- Document audit returning the model's strict JSON verdict.

Every upstream failure surfaces as AssistantError; HTTP handlers turn it
into a fixed user-facing message.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

import google.generativeai as genai

from backend_charity.assistant.prompts import (
    AUDIT_SYSTEM_PROMPT,
    CHAT_SYSTEM_PROMPT,
    QUICK_DESCRIPTION_SYSTEM_PROMPT,
    audit_prompt,
    description_prompt,
    quick_description_prompt,
)
from backend_charity.config.settings import DEFAULT_MODEL_NAME
from backend_charity.core.exceptions import AssistantError
from backend_charity.logging import get_logger

logger = get_logger(__name__)

# Roles the web client sends -> Gemini content roles
_ROLE_MAP = {"user": "user", "assistant": "model", "model": "model", "bot": "model"}


def to_gemini_history(history: Iterable[Mapping[str, Any]] | None) -> list[dict[str, Any]]:
    """
    Convert [{role, content}] chat history to Gemini contents. System and
    unknown roles are dropped; the persona is set as system instruction.
    """
    out: list[dict[str, Any]] = []
    for entry in history or []:
        role = _ROLE_MAP.get(str(entry.get("role", "")).lower())
        content = entry.get("content")
        if role is None or not content:
            continue
        out.append({"role": role, "parts": [str(content)]})
    return out


def strip_code_fence(text: str) -> str:
    """Remove a ```json ... ``` wrapper some model replies carry."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
    return text.strip()


class AssistantClient:
    """Gemini-backed assistant; one GenerativeModel per persona."""

    def __init__(self, api_key: str, *, model_name: str = DEFAULT_MODEL_NAME) -> None:
        if not api_key:
            raise AssistantError("Gemini API key is required")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self._chat_model = genai.GenerativeModel(
            model_name,
            system_instruction=CHAT_SYSTEM_PROMPT,
            generation_config={"temperature": 0.6, "max_output_tokens": 1024},
        )
        self._description_model = genai.GenerativeModel(
            model_name,
            system_instruction=CHAT_SYSTEM_PROMPT,
            generation_config={"temperature": 0.8, "max_output_tokens": 800},
        )
        self._quick_model = genai.GenerativeModel(
            model_name,
            system_instruction=QUICK_DESCRIPTION_SYSTEM_PROMPT,
        )
        self._audit_model = genai.GenerativeModel(
            model_name,
            system_instruction=AUDIT_SYSTEM_PROMPT,
            generation_config={"response_mime_type": "application/json"},
        )

    async def _generate(self, model: Any, prompt: str, *, op: str) -> str:
        try:
            response = await model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            logger.error("assistant_call_failed", op=op, model=self.model_name, error=str(e))
            raise AssistantError(f"Assistant {op} failed: {e}") from e
        if not text or not text.strip():
            raise AssistantError(f"Assistant {op} returned an empty reply")
        return text.strip()

    async def chat(self, message: str, history: Iterable[Mapping[str, Any]] | None = None) -> str:
        """Reply to message in the guardian persona, continuing history."""
        try:
            session = self._chat_model.start_chat(history=to_gemini_history(history))
            response = await session.send_message_async(message)
            text = response.text
        except Exception as e:
            logger.error("assistant_call_failed", op="chat", model=self.model_name, error=str(e))
            raise AssistantError(f"Assistant chat failed: {e}") from e
        if not text or not text.strip():
            raise AssistantError("Assistant chat returned an empty reply")
        logger.debug("assistant_chat_replied", history_len=len(list(history or [])), reply_len=len(text))
        return text.strip()

    async def describe(self, message: str) -> str:
        """Short description for a chat message tagged generate_description."""
        return await self._generate(self._quick_model, quick_description_prompt(message), op="describe")

    async def generate_description(
        self,
        item_name: str | None = None,
        story: str | None = None,
        cause: str | None = None,
        donor_name: str | None = None,
    ) -> str:
        prompt = description_prompt(item_name, story, cause, donor_name)
        return await self._generate(self._description_model, prompt, op="generate_description")

    async def audit_document(self, charity_name: str, document_text: str) -> dict[str, Any]:
        """
        Ask for a strict JSON verdict {is_valid, score, summary, reason} and
        return it parsed, unmodified.

        Raises:
            AssistantError: call failed or the reply is not a JSON object.
        """
        text = await self._generate(self._audit_model, audit_prompt(charity_name, document_text), op="audit")
        try:
            verdict = json.loads(strip_code_fence(text))
        except json.JSONDecodeError as e:
            logger.warning("assistant_audit_unparseable", charity_name=charity_name, reply=text[:200])
            raise AssistantError("Assistant audit reply is not valid JSON") from e
        if not isinstance(verdict, dict):
            raise AssistantError("Assistant audit reply is not a JSON object")
        return verdict
