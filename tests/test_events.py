"""
Explorer row parsing and outbound event serialisation.
"""

from __future__ import annotations

from decimal import Decimal

from feed.events import (
    EventType,
    ExchangeEvent,
    MoneyAmount,
    RawTransfer,
    TokenTransfer,
    plain,
    to_units,
)

from conftest import make_row


def test_row_parsing_lowercases_addresses():
    row = RawTransfer.from_dict(make_row(frm="0xAbC", to="0xDeF", contract="0xFFF", gas_used=21000, gas_price=5))
    assert (row.from_address, row.to_address, row.contract_address) == ("0xabc", "0xdef", "0xfff")
    assert row.gas_cost == 105000
    assert row.txreceipt_status == "1"


def test_malformed_numbers_parse_as_zero():
    raw = make_row()
    raw.update(value="", gasUsed=None, timeStamp="n/a")
    row = RawTransfer.from_dict(raw)
    assert (row.value, row.gas_used, row.timestamp) == (0, 0, 0)


def test_unit_conversion_and_rendering():
    assert to_units(10**18) == Decimal(1)
    assert plain(to_units(1500 * 10**15)) == "1.5"
    assert plain(to_units(10**20)) == "100"
    assert plain(-to_units(0)) == "0"


def test_exchange_as_dict():
    event = ExchangeEvent(
        timestamp=1, block=2, in_symbol="cUSD", in_value=Decimal("1.50"),
        out_symbol="cGLD", out_value=Decimal("0.1"), hash="0x01",
    )
    assert event.as_dict() == {
        "timestamp": 1,
        "block": 2,
        "inSymbol": "cUSD",
        "inValue": "1.5",
        "outSymbol": "cGLD",
        "outValue": "0.1",
        "hash": "0x01",
        "type": "EXCHANGE",
    }


def test_nested_amount_as_dict():
    event = TokenTransfer(
        type=EventType.SENT, timestamp=1000, block=2,
        amount=MoneyAmount(value="-1", currency_code="cUSD", timestamp=1000),
        address="0xbbb", comment="", hash="0x01",
    )
    assert event.as_dict()["amount"] == {"value": "-1", "currencyCode": "cUSD", "timestamp": 1000}
