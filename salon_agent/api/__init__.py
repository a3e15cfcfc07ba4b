"""
API layer for the salon booking agent.
"""

from .app import create_app
from .webhooks import WhatsAppWebhook

__all__ = [
    "create_app",
    "WhatsAppWebhook",
]
