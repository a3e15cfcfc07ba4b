"""
Tests for intent extraction and the free-form responder.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from salon_agent.core.enums import Intent, MessageRole
from salon_agent.core.exceptions import ExtractionError
from salon_agent.core.models import ChatMessage
from salon_agent.services.nlu import (
    FALLBACK_REPLY,
    AssistantResponder,
    IntentExtractor,
    parse_extraction,
)


def _fake_client(content=None, error=None):
    """Minimal stand-in for AsyncOpenAI's chat.completions surface."""
    create = AsyncMock()
    if error is not None:
        create.side_effect = error
    else:
        create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
        )
    client = Mock()
    client.chat.completions.create = create
    return client


class TestParseExtraction:
    def test_parses_camel_case_fields(self):
        result = parse_extraction(
            '{"intent": "schedule", "serviceName": "Manicure", "date": "amanhã", "time": "14h"}'
        )
        assert result.intent == Intent.SCHEDULE
        assert result.service_name == "Manicure"
        assert result.date == "amanhã"
        assert result.time == "14h"

    def test_strips_code_fences(self):
        result = parse_extraction('```json\n{"intent": "hours"}\n```')
        assert result.intent == Intent.HOURS

    def test_unknown_intent_becomes_other(self):
        assert parse_extraction('{"intent": "cancel"}').intent == Intent.OTHER
        assert parse_extraction("{}").intent == Intent.OTHER

    def test_blank_strings_become_none(self):
        result = parse_extraction('{"intent": "schedule", "serviceName": "  ", "extra": 1}')
        assert result.service_name is None

    @pytest.mark.parametrize("raw", ["", "not json", "[1, 2]"])
    def test_rejects_non_objects(self, raw):
        with pytest.raises(ExtractionError):
            parse_extraction(raw)


class TestIntentExtractor:
    @pytest.mark.asyncio
    async def test_extract_uses_json_mode(self):
        client = _fake_client('{"intent": "schedule", "serviceName": "Escova"}')
        extractor = IntentExtractor(client=client)

        result = await extractor.extract("quero escova")

        assert result.intent == Intent.SCHEDULE
        assert result.service_name == "Escova"
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][-1] == {"role": "user", "content": "quero escova"}

    @pytest.mark.asyncio
    async def test_non_json_answer_degrades_to_other(self):
        extractor = IntentExtractor(client=_fake_client("Claro! Vou agendar."))

        result = await extractor.extract("quero escova")

        assert result.intent == Intent.OTHER
        assert result.service_name is None

    @pytest.mark.asyncio
    async def test_client_error_degrades_to_other(self):
        extractor = IntentExtractor(client=_fake_client(error=RuntimeError("timeout")))

        assert (await extractor.extract("oi")).intent == Intent.OTHER

    @pytest.mark.asyncio
    async def test_missing_api_key_degrades_to_other(self):
        extractor = IntentExtractor()

        assert extractor.client is None
        assert (await extractor.extract("oi")).intent == Intent.OTHER


class TestAssistantResponder:
    @pytest.mark.asyncio
    async def test_reply_sends_recent_history(self, monkeypatch):
        monkeypatch.setenv("LLM_CONTEXT_MESSAGES", "2")
        client = _fake_client("  Funcionamos de terça a sábado.  ")
        responder = AssistantResponder(client=client)
        history = [
            ChatMessage(role=MessageRole.USER, content="oi"),
            ChatMessage(role=MessageRole.ASSISTANT, content="olá!"),
            ChatMessage(role=MessageRole.USER, content="vocês abrem segunda?"),
        ]

        reply = await responder.reply(history)

        assert reply == "Funcionamos de terça a sábado."
        messages = client.chat.completions.create.await_args.kwargs["messages"]
        assert messages[0]["role"] == "system"
        assert [m["content"] for m in messages[1:]] == ["olá!", "vocês abrem segunda?"]

    @pytest.mark.asyncio
    async def test_reply_falls_back_on_error(self):
        responder = AssistantResponder(client=_fake_client(error=RuntimeError("boom")))

        assert await responder.reply([]) == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_reply_falls_back_on_empty_answer(self):
        responder = AssistantResponder(client=_fake_client(""))

        assert await responder.reply([]) == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_reply_without_client(self):
        assert await AssistantResponder().reply([]) == FALLBACK_REPLY
