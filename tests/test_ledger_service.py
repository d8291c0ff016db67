import pytest

from core.models.invoice import InvoiceItem
from core.services.ledger_service import ItemLedger


def _item(desc: str, qty: float = 1, price: float = 10, unit: str = "") -> dict:
    return {"description": desc, "quantity": qty, "price": price, "unit": unit}


def test_valid_adds_keep_insertion_order() -> None:
    ledger = ItemLedger()
    for n, desc in enumerate(["a", "b", "c"], start=1):
        res = ledger.add_item(_item(desc))
        assert res.accepted is True
        assert res.reason is None
        assert len(ledger) == n

    assert [it.description for it in ledger] == ["a", "b", "c"]


def test_add_accepts_model_instance() -> None:
    ledger = ItemLedger()
    res = ledger.add_item(InvoiceItem(description="Design", quantity=2, price=0, unit="mockups"))

    assert res.accepted is True
    assert ledger.items[0].unit == "mockups"


@pytest.mark.parametrize(
    "candidate, field",
    [
        (_item(""), "description"),
        (_item("   "), "description"),
        (_item("x", qty=0), "quantity"),
        (_item("x", qty=-1), "quantity"),
        (_item("x", price=-0.01), "price"),
    ],
)
def test_invalid_item_is_rejected_with_reason(candidate: dict, field: str) -> None:
    ledger = ItemLedger()
    ledger.add_item(_item("kept"))

    res = ledger.add_item(candidate)

    assert res.accepted is False
    assert res.item is None
    assert field in res.reason
    assert [it.description for it in ledger] == ["kept"]


def test_remove_shifts_following_items_left() -> None:
    ledger = ItemLedger()
    for desc in ["a", "b", "c", "d"]:
        ledger.add_item(_item(desc))

    removed = ledger.remove_item(1)

    assert removed.description == "b"
    assert len(ledger) == 3
    assert [it.description for it in ledger] == ["a", "c", "d"]


@pytest.mark.parametrize("index", [-1, 2, 99])
def test_remove_out_of_range_raises(index: int) -> None:
    ledger = ItemLedger()
    ledger.add_item(_item("a"))
    ledger.add_item(_item("b"))

    with pytest.raises(IndexError):
        ledger.remove_item(index)
    assert len(ledger) == 2


def test_items_snapshot_is_immutable() -> None:
    ledger = ItemLedger()
    ledger.add_item(_item("a"))
    snap = ledger.items
    ledger.clear()

    assert len(snap) == 1
    assert len(ledger) == 0
