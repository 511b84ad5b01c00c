from __future__ import annotations

import pytest

from money_tracker.banks import WALLET_APP_MARKER, resolve_bank


@pytest.mark.parametrize(
    ("package", "expected"),
    [
        ("com.dbs.sg.digibank", "DBS"),
        ("com.ocbc.mobile", "OCBC"),
        ("com.uob.mighty.app", "UOB"),
        ("com.posb.paylah", "POSB"),
        ("sg.com.gxs.app", "GXS"),
        ("com.CHOCOLATE.finance", "choco"),
        ("com.choco.app", "Choco"),
        ("com.example.notes", ""),
        ("", ""),
    ],
)
def test_resolve_bank_table(package: str, expected: str) -> None:
    assert resolve_bank(package, "4321") == expected


def test_wallet_label_includes_suffix() -> None:
    assert resolve_bank(f"com.{WALLET_APP_MARKER}", "0042") == "GP 0042"
    assert resolve_bank(WALLET_APP_MARKER) == "GP "


def test_first_matching_rule_wins() -> None:
    # Contains both "dbs" and "posb"; dbs is checked first.
    assert resolve_bank("com.dbs.posb.combined") == "DBS"
