"""
Phone number parsing and validation utilities.
"""

import re
from typing import Optional


class PhoneNumberParser:
    """Phone number parsing utilities for Brazilian WhatsApp numbers."""

    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, raw: Optional[str]) -> Optional[str]:
        """
        Normalize a transport identifier or typed number to bare digits.

        Args:
            raw: WhatsApp chat id (e.g. "5571988887777@c.us") or free text

        Returns:
            Digits only, or None when nothing numeric remains
        """
        if not raw or not isinstance(raw, str):
            return None

        number = raw.split("@", 1)[0]
        digits = re.sub(r"\D", "", number)
        return digits or None

    @classmethod
    def state_key(cls, raw: Optional[str]) -> str:
        """Key under which a conversation is stored; ``unknown`` without a phone."""
        return cls.normalize(raw) or cls.UNKNOWN

    @classmethod
    def is_valid_brazilian_number(cls, phone: Optional[str]) -> bool:
        """
        Check for a plausible Brazilian number: DDD + 8/9 digits, optional 55 prefix.
        """
        digits = cls.normalize(phone)
        if not digits:
            return False
        if digits.startswith("55") and len(digits) in (12, 13):
            digits = digits[2:]
        return len(digits) in (10, 11) and digits[0] != "0"

    @classmethod
    def parse_customer_phone(cls, raw: Optional[str]) -> Optional[str]:
        """Digits of a number typed by the customer, or None unless it is a valid Brazilian number."""
        digits = cls.normalize(raw)
        if digits is None or not cls.is_valid_brazilian_number(digits):
            return None
        return digits

    @classmethod
    def format_for_display(cls, phone: str) -> str:
        """Format as (DD) 9XXXX-XXXX when possible."""
        digits = cls.normalize(phone)
        if not digits:
            return phone
        if digits.startswith("55") and len(digits) in (12, 13):
            digits = digits[2:]
        if len(digits) == 11:
            return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
        if len(digits) == 10:
            return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
        return digits
