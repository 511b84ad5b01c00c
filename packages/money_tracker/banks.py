"""Map a notification's source app to a normalized bank label.

The table is checked in order and the first substring hit wins. Order matters:
some package ids nest others (``chocolate`` contains ``choco``).
"""

from __future__ import annotations

from collections.abc import Callable

# Package-id marker for the e-wallet app; its label carries the card suffix.
WALLET_APP_MARKER = "google.android.apps.walletnfcrel"

_RULES: tuple[tuple[str, Callable[[str], str]], ...] = (
    ("dbs", lambda _suffix: "DBS"),
    ("ocbc", lambda _suffix: "OCBC"),
    ("uob", lambda _suffix: "UOB"),
    ("posb", lambda _suffix: "POSB"),
    ("gxs", lambda _suffix: "GXS"),
    (WALLET_APP_MARKER, lambda suffix: f"GP {suffix}"),
    # Two arms with different casing; kept distinct on purpose.
    ("chocolate", lambda _suffix: "choco"),
    ("choco", lambda _suffix: "Choco"),
)


def resolve_bank(source_app_id: str, masked_suffix: str = "") -> str:
    """Return the bank label for ``source_app_id`` or ``""`` when unrecognized.

    ``""`` means the notification came from an app we do not track and the
    caller should discard it.
    """

    pkg = (source_app_id or "").lower()
    for marker, label in _RULES:
        if marker in pkg:
            return label(masked_suffix)
    return ""


__all__ = ["WALLET_APP_MARKER", "resolve_bank"]
