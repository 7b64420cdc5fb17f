"""Line-format matchers for money-transfer notification templates.

Each provider phrases its notifications differently, so the extraction of the
four required fields lives behind :class:`LineFormat`. A format either turns a
line into a :class:`~sms_ledger.models.Transaction` or reports no match;
it never raises for malformed text.

Formats are looked up by provider name through a small registry so new
templates can be added without touching the extraction pipeline.

Currently registered:

- ``mpesa``: ``"QWE123 Confirmed. Ksh1,200.00 sent to JANE DOE 0712345678 on
  5/3/24 at 2:15 PM."`` and the ``"paid to"`` variant used for merchant
  payments.
"""

from __future__ import annotations

import datetime as dt
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import ValidationError

from .models import Transaction

# ---------------------------------------------------------------------------
# Shared helpers (amount/time normalization)
# ---------------------------------------------------------------------------


def to_amount(raw: str) -> float | None:
    """Convert ``"1,200.00"`` to ``1200.0``; ``None`` when not numeric."""

    s = raw.replace(",", "").strip()
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def to_24_hour(hour: int, meridiem: str) -> int:
    """Map a 12-hour clock hour to 24-hour form.

    ``PM`` adds 12 unless the hour is 12 (noon); ``12 AM`` is midnight (0).
    Any other combination passes through unchanged.
    """

    m = meridiem.upper()
    if m == "PM" and hour != 12:
        return hour + 12
    if m == "AM" and hour == 12:
        return 0
    return hour


# ---------------------------------------------------------------------------
# Abstract matcher
# ---------------------------------------------------------------------------


class LineFormat(ABC):
    """Strategy that extracts a transaction from one line of message text."""

    name: str = ""

    @abstractmethod
    def extract_code(self, line: str) -> str | None: ...

    @abstractmethod
    def extract_amount(self, line: str) -> float | None: ...

    @abstractmethod
    def extract_recipient(self, line: str) -> str | None: ...

    @abstractmethod
    def extract_datetime(self, line: str) -> dt.datetime | None: ...

    def match(self, line: str) -> Transaction | None:
        """Return the transaction encoded in ``line`` or ``None``.

        All four extractions must succeed and the assembled record must pass
        model validation; otherwise the line is not a transaction.
        """

        code = self.extract_code(line)
        if not code:
            return None
        amount = self.extract_amount(line)
        if amount is None:
            return None
        recipient = self.extract_recipient(line)
        if not recipient:
            return None
        when = self.extract_datetime(line)
        if when is None:
            return None
        try:
            return Transaction(code=code, recipient=recipient, amount=amount, datetime=when)
        except ValidationError:
            return None


# ---------------------------------------------------------------------------
# M-Pesa style "sent to" / "paid to" template
# ---------------------------------------------------------------------------


class SentPaidFormat(LineFormat):
    """Template with a leading reference code, a currency-prefixed amount,
    a transfer verb before the counterparty and ``on D/M/YY at H:MM AM|PM``.

    The recipient runs from the transfer verb to the date connector or the
    end of the sentence. Trailing phone/account numbers stay part of it.
    """

    def __init__(
        self,
        *,
        name: str = "mpesa",
        currency_marker: str = "Ksh",
        transfer_verbs: Sequence[str] = ("sent to", "paid to"),
        date_connector: str = "on",
        time_connector: str = "at",
    ) -> None:
        if not transfer_verbs:
            raise ValueError("transfer_verbs must not be empty")
        self.name = name
        self.currency_marker = currency_marker
        self.transfer_verbs = tuple(transfer_verbs)

        verbs = "|".join(re.escape(v).replace(r"\ ", r"\s+") for v in self.transfer_verbs)
        on = re.escape(date_connector)
        at = re.escape(time_connector)

        self._code_re = re.compile(r"^[A-Z0-9]+")
        self._amount_re = re.compile(
            r"(?<![A-Za-z0-9])" + re.escape(currency_marker) + r"\.?\s*(\d[\d,]*(?:\.\d+)?)",
            re.IGNORECASE,
        )
        self._recipient_re = re.compile(
            rf"\b(?:{verbs})\s+(.+?)(?=\s+{on}\s+\d{{1,2}}/|\.(?:\s|$)|$)", re.IGNORECASE
        )
        self._date_re = re.compile(rf"\b{on}\s+(\d{{1,2}})/(\d{{1,2}})/(\d{{2}})\b", re.IGNORECASE)
        self._time_re = re.compile(rf"\b{at}\s+(\d{{1,2}}):(\d{{2}})\s*([AP]M)\b", re.IGNORECASE)

    def extract_code(self, line: str) -> str | None:
        m = self._code_re.match(line)
        return m.group(0) if m else None

    def extract_amount(self, line: str) -> float | None:
        m = self._amount_re.search(line)
        return to_amount(m.group(1)) if m else None

    def extract_recipient(self, line: str) -> str | None:
        m = self._recipient_re.search(line)
        if not m:
            return None
        recipient = " ".join(m.group(1).split())
        return recipient or None

    def extract_datetime(self, line: str) -> dt.datetime | None:
        d = self._date_re.search(line)
        t = self._time_re.search(line)
        if not d or not t:
            return None
        day, month, yy = (int(g) for g in d.groups())
        hour = to_24_hour(int(t.group(1)), t.group(3))
        minute = int(t.group(2))
        try:
            return dt.datetime(2000 + yy, month, day, hour, minute)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Provider registry
# ---------------------------------------------------------------------------

_FORMATS: dict[str, LineFormat] = {}
_ALIASES: dict[str, str] = {}


def _norm_provider(provider: str) -> str:
    return provider.strip().lower().replace(" ", "_").replace("-", "_")


def register_line_format(
    line_format: LineFormat, *, aliases: Sequence[str] = ()
) -> None:
    """Register ``line_format`` under its ``name`` and any extra aliases."""

    key = _norm_provider(line_format.name)
    if not key:
        raise ValueError("line format must have a non-empty name")
    _FORMATS[key] = line_format
    for alias in aliases:
        _ALIASES[_norm_provider(alias)] = key


def get_line_format(provider: str) -> LineFormat:
    """Return the registered format for ``provider`` (case/spacing-insensitive)."""

    key = _norm_provider(provider)
    key = _ALIASES.get(key, key)
    try:
        return _FORMATS[key]
    except KeyError:
        raise ValueError(f"unknown provider: {provider!r}") from None


def available_providers() -> list[str]:
    return sorted(_FORMATS)


register_line_format(SentPaidFormat(), aliases=("m-pesa", "m_pesa", "safaricom"))

DEFAULT_PROVIDER = "mpesa"


__all__ = [
    "DEFAULT_PROVIDER",
    "LineFormat",
    "SentPaidFormat",
    "available_providers",
    "get_line_format",
    "register_line_format",
    "to_24_hour",
    "to_amount",
]
