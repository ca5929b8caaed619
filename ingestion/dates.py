"""
Date normalization: any date representation to a comparable YYYYMMDD integer
"""

import logging
import re
import warnings
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd

logger = logging.getLogger(__name__)

# Sentinel key for "no usable date"; compares below every real date
NO_DATE = 0

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class DateNormalizer:
    """
    Normalize cell values to DateKeys.

    Handles:
    - datetime / pandas.Timestamp values (formatted in the configured zone)
    - date values
    - YYYY-MM-DD strings (dashes stripped, no calendar construction)
    - Any other string pandas can parse as a date/time

    normalize() never raises; anything unusable maps to NO_DATE.
    """

    def __init__(self, time_zone: str = "UTC"):
        self.time_zone = time_zone
        self.zone = ZoneInfo(time_zone)

    def normalize(self, value: Any) -> int:
        if value is None or value is pd.NaT:
            return NO_DATE

        if isinstance(value, datetime):
            return self._from_datetime(value)

        if isinstance(value, date):
            return value.year * 10000 + value.month * 100 + value.day

        text = str(value).strip()
        if not text:
            return NO_DATE

        # Formatting a parsed ISO date back in a zone can shift it by a day
        if _ISO_DATE.match(text):
            return int(text.replace("-", ""))

        return self._from_string(text)

    def _from_datetime(self, value: datetime) -> int:
        if value.tzinfo is not None:
            value = value.astimezone(self.zone)
        return int(value.strftime("%Y%m%d"))

    def _from_string(self, text: str) -> int:
        try:
            with warnings.catch_warnings():
                # pandas warns when it falls back to per-element dateutil parsing
                warnings.simplefilter("ignore", UserWarning)
                parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return NO_DATE

        if parsed is None or pd.isna(parsed):
            return NO_DATE

        if parsed.tzinfo is not None:
            parsed = parsed.tz_convert(self.time_zone)
        return int(parsed.strftime("%Y%m%d"))

    __call__ = normalize
