"""
Free-form replies for questions outside the booking flow.
"""

from typing import Optional, Sequence

from openai import AsyncOpenAI

from ...config import get_settings
from ...core.models import ChatMessage
from ...utils.logging import get_logger
from ..conversation import recent_context
from .prompts import ASSISTANT_PROMPT

logger = get_logger("salon.responder")

FALLBACK_REPLY = (
    "Posso te ajudar com informações, horários e agendamentos. "
    "Me diga qual serviço deseja, a data e o horário preferidos!"
)


class AssistantResponder:
    """Generates a conversational answer from recent history."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.settings = get_settings()
        self._client = client
        self.system_prompt = ASSISTANT_PROMPT.format(
            assistant_name=self.settings.assistant_name,
            business_name=self.settings.business_name,
            open_hour=self.settings.business_open_hour,
            close_hour=self.settings.business_close_hour,
        )

    @property
    def client(self) -> Optional[AsyncOpenAI]:
        if self._client is None and self.settings.openai_api_key:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.openai_timeout,
            )
        return self._client

    async def reply(self, history: Sequence[ChatMessage]) -> str:
        """Answer the latest user message; falls back to a fixed help text."""
        client = self.client
        if client is None:
            return FALLBACK_REPLY

        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend(recent_context(history, self.settings.llm_context_messages))
        try:
            response = await client.chat.completions.create(
                model=self.settings.openai_model,
                temperature=0.3,
                messages=messages,
            )
            content = (response.choices[0].message.content or "").strip()
        except Exception as e:
            logger.error(f"responder: completion failed: {e}")
            return FALLBACK_REPLY

        return content or FALLBACK_REPLY
