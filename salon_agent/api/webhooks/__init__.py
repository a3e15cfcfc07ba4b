"""
Webhook routers.
"""

from .whatsapp import WhatsAppWebhook

__all__ = ["WhatsAppWebhook"]
