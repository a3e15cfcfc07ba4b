"""
WhatsApp webhook handler.
"""

from typing import Dict, Optional
from fastapi import APIRouter, Request, Response, status

from ...core.models import ContactInfo
from ...services.dialog import DialogOrchestrator, build_orchestrator
from ...utils.logging import get_logger
from ...utils.text import TextProcessor, WhatsAppTextExtractor
from ...config import get_settings

logger = get_logger("salon.webhook")

ATTACHMENT_REPLY = (
    "Recebi seu arquivo, mas só consigo ler mensagens de texto. "
    "Pode me escrever o que precisa?"
)


class WhatsAppWebhook:
    """Handler for WhatsApp webhook events.

    The reply is returned in the response body; delivery is left to the gateway.
    """

    def __init__(self, orchestrator: Optional[DialogOrchestrator] = None):
        self.settings = get_settings()
        self.router = APIRouter()
        self.orchestrator = orchestrator or build_orchestrator(self.settings)
        self.text_extractor = WhatsAppTextExtractor()
        self.max_message_length = 4096

        # Simple in-memory deduplication
        self._last_msgid: Dict[str, str] = {}

        self._setup_routes()

    def _setup_routes(self):
        """Setup WhatsApp webhook routes."""

        @self.router.post("/wa")
        async def receive_whatsapp_message(request: Request):
            """Handle incoming WhatsApp messages."""
            try:
                body = await request.json()
            except ValueError:
                return Response(status_code=status.HTTP_400_BAD_REQUEST)
            if not isinstance(body, dict):
                return Response(status_code=status.HTTP_400_BAD_REQUEST)

            extraction_result = self.text_extractor.extract_text_from_wa(body)
            text_in = extraction_result.text

            sender = body.get("senderData") or {}
            msg_id = body.get("idMessage")
            sender_id = sender.get("chatId") or sender.get("sender")
            logger.info(f"incoming message {msg_id} from {sender_id}")

            if sender_id and msg_id:
                if self._is_duplicate_message(sender_id, msg_id):
                    return {"ok": True, "dedupe": True}
                self._last_msgid[sender_id] = msg_id

            if extraction_result.had_attachments and not text_in:
                return {"status": "ok", "messages": [ATTACHMENT_REPLY]}

            if not text_in:
                return {"status": "ignored"}

            contact = ContactInfo(display_name=sender.get("senderName") or sender.get("chatName"))
            reply = await self.orchestrator.handle_turn(text_in, sender_id, contact)
            return {
                "status": "ok",
                "chatId": sender_id,
                "messages": TextProcessor.split_text_for_whatsapp(reply, self.max_message_length),
            }

    def _is_duplicate_message(self, sender_id: str, msg_id: str) -> bool:
        """Check if message is a duplicate."""
        return self._last_msgid.get(sender_id) == msg_id
