# ruff: noqa: E402, I001
from __future__ import annotations

from decimal import Decimal

import pytest

from money_tracker.extraction import (
    extract,
    extract_notification,
    has_currency_marker,
    parse_amount,
    parse_masked_suffix,
)
from money_tracker.models import Notification

DBS_APP = "com.dbs.sg.digibank"
WALLET_APP = "com.google.android.apps.walletnfcrel"


def test_dbs_card_notification_becomes_candidate() -> None:
    c = extract(DBS_APP, "Card Transaction Alert", "You paid SGD 12.50 at GRAB*FOOD with card 1234.")

    assert c is not None
    assert c.item == "Card Transaction Alert"
    assert c.cost == Decimal("12.50")
    assert c.bank == "DBS"
    assert c.masked_suffix == "1234"


def test_wallet_label_carries_rightmost_masked_suffix() -> None:
    c = extract(WALLET_APP, "Kopitiam", "$4.20 with Visa ending 9876")

    assert c is not None
    assert c.cost == Decimal("4.20")
    assert c.bank == "GP 9876"


def test_wallet_without_suffix_keeps_trailing_space() -> None:
    c = extract(WALLET_APP, "Kopitiam", "$4.20 paid")

    assert c is not None
    assert c.bank == "GP "


def test_title_is_item_verbatim() -> None:
    title = "  NTUC FairPrice  "
    c = extract(DBS_APP, title, "SGD5 spent")

    assert c is not None
    assert c.item == title
    assert c.cost == Decimal("5")


@pytest.mark.parametrize(
    "body",
    [
        "Your OTP is 123456",
        "Transfer of 20.00 received",
        "",
    ],
)
def test_no_currency_marker_yields_none(body: str) -> None:
    assert extract(DBS_APP, "Alert", body) is None


def test_currency_marker_without_amount_yields_none() -> None:
    assert extract(DBS_APP, "Promo", "Earn $$$ cashback this weekend!") is None


def test_unknown_source_app_yields_none() -> None:
    assert extract("com.whatsapp", "Friend", "Owe you $10") is None


def test_currency_marker_is_case_insensitive() -> None:
    assert has_currency_marker("paid sgd 3.00")
    assert parse_amount("paid sgd 3.00") == Decimal("3.00")


def test_first_amount_wins() -> None:
    assert parse_amount("$7.10 spent, balance $1,200.00") == Decimal("7.10")


def test_amount_keeps_at_most_two_decimals() -> None:
    assert parse_amount("SGD 3.456") == Decimal("3.45")


def test_masked_suffix_prefers_rightmost_four_digit_group() -> None:
    assert parse_masked_suffix("card 1111 then 2222 done") == "2222"
    assert parse_masked_suffix("card 1111 ref 99") == ""
    assert parse_masked_suffix("no digits here") == ""
    assert parse_masked_suffix("ref 123456") == ""


def test_extract_notification_uses_event_fields() -> None:
    n = Notification(source_app_id="com.uob.mighty.app", title="Shopee", body="SGD 19.90 charged")
    c = extract_notification(n)

    assert c is not None
    assert (c.item, c.cost, c.bank) == ("Shopee", Decimal("19.90"), "UOB")
