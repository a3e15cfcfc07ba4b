"""
Text processing utilities.
"""

import re
import unicodedata
from typing import List
from dataclasses import dataclass


@dataclass
class TextExtractionResult:
    """Result of text extraction from WhatsApp message."""
    text: str
    had_attachments: bool


class TextProcessor:
    """Text processing utilities."""

    @staticmethod
    def normalize_text(text: str) -> str:
        """Lowercase, strip accents and collapse whitespace for matching."""
        if not isinstance(text, str):
            text = str(text or "")

        decomposed = unicodedata.normalize("NFKD", text.strip())
        stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
        return re.sub(r"\s+", " ", stripped).lower()

    @staticmethod
    def parse_choice(text: str) -> int | None:
        """Return the integer when ``text`` is a bare number like "2" or "2."."""
        match = re.fullmatch(r"\s*(\d{1,2})\s*[.)]?\s*", text or "")
        return int(match.group(1)) if match else None

    @staticmethod
    def split_text_for_whatsapp(text: str, max_length: int = 4096) -> List[str]:
        """Split text into chunks suitable for WhatsApp."""
        if len(text) <= max_length:
            return [text]

        chunks = []
        current_chunk = ""

        for word in text.split(" "):
            if len(current_chunk + " " + word) <= max_length:
                current_chunk += (" " + word) if current_chunk else word
            else:
                if current_chunk:
                    chunks.append(current_chunk)
                current_chunk = word

        if current_chunk:
            chunks.append(current_chunk)

        return chunks


class WhatsAppTextExtractor:
    """Extract text from WhatsApp webhook payload."""

    _ATTACHMENT_KEYS = (
        "documentMessageData",
        "imageMessageData",
        "videoMessageData",
        "audioMessageData",
    )

    @staticmethod
    def extract_text_from_wa(body: dict) -> TextExtractionResult:
        """Extract text from WhatsApp webhook body."""
        text_in = ""
        had_attach = False

        message_data = body.get("messageData")
        if isinstance(message_data, dict):
            text_in = (
                (message_data.get("textMessageData") or {}).get("textMessage")
                or (message_data.get("extendedTextMessageData") or {}).get("text")
                or ""
            )
            had_attach = any(
                key in message_data for key in WhatsAppTextExtractor._ATTACHMENT_KEYS
            )
        elif isinstance(message_data, str):
            text_in = message_data

        return TextExtractionResult(
            text=text_in.strip() if text_in else "",
            had_attachments=had_attach
        )
