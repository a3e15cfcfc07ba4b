"""
Date and time parsing utilities for Brazilian Portuguese input.
"""

import re
from datetime import datetime, timedelta
from typing import Optional
import pytz
from dateparser import parse as parse_date

from ..config import get_settings
from .text import TextProcessor


_WEEKDAYS = {
    "segunda": 0,
    "terca": 1,
    "quarta": 2,
    "quinta": 3,
    "sexta": 4,
    "sabado": 5,
    "domingo": 6,
}


class DateParser:
    """Resolve Portuguese date expressions to ISO dates (YYYY-MM-DD)."""

    def __init__(self, timezone: Optional[str] = None):
        self.tz = pytz.timezone(timezone or get_settings().timezone)

    def today(self):
        return datetime.now(self.tz).date()

    def parse_natural_date(self, text: str) -> Optional[str]:
        """
        Parse dates like '2025-03-14', '14/03', 'amanhã', 'sexta' or 'daqui a 3 dias'.

        Weekday names resolve to their next occurrence. Explicit dates that are
        already in the past return None, except for day/month input without a
        year, which rolls over to the next year.

        Args:
            text: Date expression typed by the user

        Returns:
            Date in YYYY-MM-DD format or None if parsing fails
        """
        if not text or not text.strip():
            return None

        lowered = TextProcessor.normalize_text(text)
        today = self.today()

        explicit = self._parse_explicit(lowered, today)
        if explicit is not None:
            return explicit or None

        relative = self._parse_relative(lowered, today)
        if relative is not None:
            return relative.strftime("%Y-%m-%d")

        try:
            parsed = parse_date(
                text,
                languages=["pt"],
                settings={"PREFER_DATES_FROM": "future", "DATE_ORDER": "DMY"},
            )
        except Exception:
            return None
        if not parsed:
            return None

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(self.tz)
        result_date = parsed.date()
        if result_date < today:
            return None
        return result_date.strftime("%Y-%m-%d")

    def _parse_explicit(self, lowered: str, today) -> Optional[str]:
        """Numeric dates. Returns "" for a recognised but invalid date."""
        iso = re.search(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b", lowered)
        if iso:
            year, month, day = (int(g) for g in iso.groups())
            return self._build(year, month, day, today, roll_year=False)

        dmy = re.search(r"\b(\d{1,2})[/.](\d{1,2})(?:[/.](\d{2,4}))?\b", lowered)
        if dmy:
            day, month = int(dmy.group(1)), int(dmy.group(2))
            year_text = dmy.group(3)
            if year_text:
                year = int(year_text)
                if year < 100:
                    year += 2000
                return self._build(year, month, day, today, roll_year=False)
            return self._build(today.year, month, day, today, roll_year=True)

        return None

    @staticmethod
    def _build(year: int, month: int, day: int, today, *, roll_year: bool) -> str:
        try:
            result = datetime(year, month, day).date()
        except ValueError:
            return ""
        if result < today:
            if not roll_year:
                return ""
            try:
                result = result.replace(year=result.year + 1)
            except ValueError:
                return ""
        return result.strftime("%Y-%m-%d")

    def _parse_relative(self, lowered: str, today):
        if "depois de amanha" in lowered:
            return today + timedelta(days=2)
        if re.search(r"\bamanha\b", lowered):
            return today + timedelta(days=1)
        if re.search(r"\b(hoje|hj)\b", lowered):
            return today
        if "semana que vem" in lowered or "proxima semana" in lowered:
            return today + timedelta(days=7)

        offset = re.search(r"\b(?:daqui a|daqui|em)\s+(\d{1,3})\s+dias?\b", lowered)
        if offset:
            return today + timedelta(days=int(offset.group(1)))

        for name, idx in _WEEKDAYS.items():
            if re.search(rf"\b{name}\b", lowered):
                days_ahead = (idx - today.weekday() + 7) % 7
                return today + timedelta(days=days_ahead or 7)

        return None


class TimeParser:
    """Resolve Portuguese time expressions to HH:MM."""

    _PERIODS = {
        "de manha": "10:00",
        "manha": "10:00",
        "meio dia": "12:00",
        "meio-dia": "12:00",
        "a tarde": "14:00",
        "de tarde": "14:00",
        "tarde": "14:00",
        "a noite": "18:00",
        "noite": "18:00",
    }

    def parse_natural_time(self, text: str) -> Optional[str]:
        """
        Parse times like '14:00', '14h30', 'às 9', 'às 3 da tarde' or 'de manhã'.

        Args:
            text: Time expression typed by the user

        Returns:
            Time in HH:MM format or None if parsing fails
        """
        if not text or not text.strip():
            return None

        lowered = TextProcessor.normalize_text(text)

        period_match = re.search(r"\b(\d{1,2})\s+(?:da|de)\s+(manha|tarde|noite)\b", lowered)
        if period_match:
            hour = int(period_match.group(1))
            if hour < 12 and period_match.group(2) in ("tarde", "noite"):
                hour += 12
            if 0 <= hour < 24:
                return f"{hour:02d}:00"
            return None

        match = (
            re.search(r"\b(\d{1,2})\s*(?::|h)\s*(\d{2})\b", lowered)
            or re.search(r"\b(\d{1,2})\s*(?:h|hs|horas?)\b", lowered)
            or re.search(r"\bas\s+(\d{1,2})\b", lowered)
            or re.fullmatch(r"\s*(\d{1,2})\s*", lowered)
        )
        if match:
            hour = int(match.group(1))
            minute = int(match.group(2)) if match.lastindex and match.lastindex >= 2 else 0
            if hour < 12 and re.search(r"\bda (tarde|noite)\b", lowered):
                hour += 12
            if 0 <= hour < 24 and 0 <= minute < 60:
                return f"{hour:02d}:{minute:02d}"
            return None

        # A bare period stands in for a default hour only when no hour was typed.
        if re.search(r"\d", lowered):
            return None

        stripped = lowered.strip()
        if stripped in self._PERIODS:
            return self._PERIODS[stripped]
        for phrase, value in self._PERIODS.items():
            if phrase in stripped:
                return value

        return None


def combine_date_time(date_iso: str, time_hhmm: str, tz: pytz.BaseTzInfo) -> Optional[datetime]:
    """Build an aware datetime from normalized date and time strings."""
    try:
        naive = datetime.strptime(f"{date_iso} {time_hhmm}", "%Y-%m-%d %H:%M")
    except (TypeError, ValueError):
        return None
    return tz.localize(naive)
