"""Heuristic extraction of a candidate expense from notification text.

Extraction is regex based and best-effort. Anything that does not look like a
payment (no currency marker, no amount, unknown source app) yields ``None``;
most notifications are irrelevant so this is not an error.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from .banks import resolve_bank
from .logging_setup import get_logger
from .models import Candidate, Notification

_CURRENCY_MARKER_RE = re.compile(r"\$|SGD", re.IGNORECASE)
_AMOUNT_RE = re.compile(r"(?:SGD|\$)\s?(\d+(?:\.\d{1,2})?)", re.IGNORECASE)
# A 4-digit group with no digit anywhere after it (rightmost occurrence).
_MASKED_SUFFIX_RE = re.compile(r"\b(\d{4})\b(?!.*\d)", re.DOTALL)

_logger = get_logger("money_tracker.extraction")


def has_currency_marker(body: str) -> bool:
    return _CURRENCY_MARKER_RE.search(body) is not None


def parse_amount(body: str) -> Decimal | None:
    """Return the first currency-prefixed amount in ``body``."""

    m = _AMOUNT_RE.search(body)
    if m is None:
        return None
    try:
        return Decimal(m.group(1))
    except InvalidOperation:
        return None


def parse_masked_suffix(body: str) -> str:
    """Return the rightmost standalone 4-digit run, or ``""``."""

    m = _MASKED_SUFFIX_RE.search(body)
    return m.group(1) if m else ""


def extract(source_app_id: str, title: str, body: str) -> Candidate | None:
    """Turn one notification's text into a :class:`Candidate` or ``None``.

    Rules
    -----
    - The body must contain ``$`` or ``SGD`` (any case).
    - Amount: first ``(SGD|$)`` followed by an optional space and a number
      with up to two decimals.
    - Bank: :func:`~money_tracker.banks.resolve_bank` over the source app id
      and the masked card suffix. An empty label discards the notification.
    - Item: the title, verbatim.
    """

    title = title or ""
    body = body or ""
    if not has_currency_marker(body):
        return None

    cost = parse_amount(body)
    if cost is None:
        _logger.debug("discarding notification from %s: no amount", source_app_id)
        return None

    suffix = parse_masked_suffix(body)
    bank = resolve_bank(source_app_id, suffix)
    if not bank:
        _logger.debug("discarding notification from %s: unrecognized source", source_app_id)
        return None

    return Candidate(item=title, cost=cost, bank=bank, masked_suffix=suffix)


def extract_notification(notification: Notification) -> Candidate | None:
    return extract(notification.source_app_id, notification.title, notification.body)


__all__ = [
    "extract",
    "extract_notification",
    "has_currency_marker",
    "parse_amount",
    "parse_masked_suffix",
]
