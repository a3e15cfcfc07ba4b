"""
Intent and slot extraction through the OpenAI chat API.
"""

import json
import re
from typing import Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from ...config import get_settings
from ...core.exceptions import ExtractionError
from ...core.models import ExtractionResult
from ...utils.logging import get_logger
from .prompts import EXTRACTION_PROMPT

logger = get_logger("salon.nlu")

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_extraction(raw: Optional[str]) -> ExtractionResult:
    """Parse the model's JSON answer into an ExtractionResult.

    Raises ExtractionError when the answer is not a JSON object.
    """
    if not raw or not raw.strip():
        raise ExtractionError("empty extraction response")

    cleaned = _FENCE_RE.sub("", raw.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"non-JSON extraction response: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError("extraction response is not an object")

    try:
        return ExtractionResult.model_validate(data)
    except ValidationError as e:
        raise ExtractionError(f"invalid extraction payload: {e}") from e


class IntentExtractor:
    """Sends user text to the language model and never raises to the caller."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.settings = get_settings()
        self._client = client
        self.system_prompt = EXTRACTION_PROMPT.format(
            assistant_name=self.settings.assistant_name,
            business_name=self.settings.business_name,
        )

    @property
    def client(self) -> Optional[AsyncOpenAI]:
        if self._client is None and self.settings.openai_api_key:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.openai_timeout,
            )
        return self._client

    async def _complete(self, text: str) -> str:
        client = self.client
        if client is None:
            raise ExtractionError("OpenAI client not configured")

        response = await client.chat.completions.create(
            model=self.settings.openai_model,
            temperature=0,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": text},
            ],
        )
        return response.choices[0].message.content or ""

    async def extract(self, text: str) -> ExtractionResult:
        """Return the structured reading of ``text`` or a neutral ``other`` result."""
        try:
            raw = await self._complete(text)
            return parse_extraction(raw)
        except ExtractionError as e:
            logger.warning(f"extract: degraded to 'other': {e}")
        except Exception as e:
            logger.error(f"extract: NLU call failed: {e}")
        return ExtractionResult.unknown()
