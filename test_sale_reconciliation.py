"""Sale Reconciliation: validation order, aggregation, atomicity."""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from medshop.core.exceptions import (
    EmptyBill,
    InsufficientStock,
    InvalidQuantity,
    MissingCustomer,
    UnknownMedicine,
)
from medshop.schemas.medicine import Category, Medicine
from medshop.schemas.sale import SaleItem, SaleRequest
from medshop.schemas.stock import FlatUnitStock, TabletStock
from medshop.services.sale_service import SaleDraft, create_sale
from medshop.services.stock_service import available_units


def paracetamol():
    return Medicine(
        id="med-para", name="Paracetamol 500mg", location="Rack A-1",
        category=Category.TABLET, price=Decimal("25.00"),
        stock=TabletStock(strips=10, loose_tablets=0, tablets_per_strip=10),
    )


def syrup(quantity=5):
    return Medicine(
        id="med-syr", name="Cough Syrup", location="Rack C-3",
        category=Category.SYRUP, price=Decimal("12.00"),
        stock=FlatUnitStock(quantity=quantity),
    )


def line(medicine, quantity, price=None):
    return SaleItem(
        medicine_id=medicine.id, name=medicine.name, quantity=quantity,
        price=Decimal(price) if price else Decimal("1.00"),
    )


def sell(catalog, *items, customer="Rahul"):
    return create_sale(catalog, SaleRequest(customer_name=customer, items=list(items)))


def test_tablet_sale_of_95_updates_catalog():
    med = paracetamol()
    record, catalog = sell([med], line(med, 95, "2.50"))
    assert catalog[0].stock.strips == 0
    assert catalog[0].stock.loose_tablets == 5
    assert record.total_amount == Decimal("237.50")


def test_selling_out_then_one_more_is_rejected():
    med = paracetamol()
    _, catalog = sell([med], line(med, 100))
    assert (catalog[0].stock.strips, catalog[0].stock.loose_tablets) == (0, 0)

    with pytest.raises(InsufficientStock) as exc:
        sell(catalog, line(med, 1))
    shortage = exc.value.shortages[0]
    assert shortage.medicine_id == "med-para"
    assert shortage.requested == 1
    assert shortage.available == 0
    assert shortage.shortfall == 1


def test_flat_oversell_rejected_and_quantity_unchanged():
    med = syrup(5)
    catalog = [med]
    with pytest.raises(InsufficientStock):
        sell(catalog, line(med, 6))
    assert catalog[0].stock.quantity == 5


def test_duplicate_lines_are_aggregated_before_checking():
    med = syrup(3)
    catalog = [med]
    with pytest.raises(InsufficientStock) as exc:
        sell(catalog, line(med, 2), line(med, 2))
    assert exc.value.shortages[0].requested == 4
    assert exc.value.shortages[0].shortfall == 1
    assert catalog[0].stock.quantity == 3


def test_duplicate_lines_exactly_matching_stock_succeed():
    med = syrup(4)
    record, catalog = sell([med], line(med, 2), line(med, 2))
    assert catalog[0].stock.quantity == 0
    assert len(record.items) == 2


def test_whitespace_customer_is_rejected():
    med = syrup()
    with pytest.raises(MissingCustomer):
        sell([med], line(med, 1), customer=" ")


def test_empty_bill_is_checked_first():
    with pytest.raises(EmptyBill):
        create_sale([syrup()], SaleRequest(customer_name=" ", items=[]))


@pytest.mark.parametrize("quantity", [0, -3])
def test_non_positive_quantity_is_rejected(quantity):
    med = syrup()
    with pytest.raises(InvalidQuantity):
        sell([med], line(med, quantity))


def test_unknown_medicine_is_rejected_not_skipped():
    med = syrup()
    ghost = SaleItem(medicine_id="med-gone", name="Old Stock", quantity=1, price=Decimal("1"))
    with pytest.raises(UnknownMedicine) as exc:
        sell([med], line(med, 1), ghost)
    assert exc.value.medicine_id == "med-gone"


def test_rejection_never_mutates_no_matter_how_often_retried():
    para, syr = paracetamol(), syrup(3)
    catalog = [para, syr]
    snapshot = [m.model_dump() for m in catalog]
    bad = SaleRequest(customer_name="Rahul", items=[line(para, 10), line(syr, 2), line(syr, 2)])
    for _ in range(5):
        with pytest.raises(InsufficientStock):
            create_sale(catalog, bad)
    assert [m.model_dump() for m in catalog] == snapshot


def test_total_is_sum_of_lines_and_record_is_frozen():
    para, syr = paracetamol(), syrup(5)
    record, _ = sell([para, syr], line(para, 12, "2.50"), line(syr, 2, "12.00"))
    assert record.total_amount == sum(i.quantity * i.price for i in record.items)
    assert record.total_amount == Decimal("54.00")
    with pytest.raises(Exception):
        record.customer_name = "Someone else"


def test_record_metadata():
    when = datetime(2026, 10, 19, 10, 30, tzinfo=timezone.utc)
    med = syrup()
    record, _ = create_sale([med], SaleRequest(customer_name="  Priya ", items=[line(med, 1)]), now=when)
    assert record.id.startswith("sale-")
    assert record.customer_name == "Priya"
    assert record.sale_date == when


def test_untouched_medicines_and_order_are_kept():
    para, syr = paracetamol(), syrup(5)
    _, catalog = sell([para, syr], line(syr, 1))
    assert [m.id for m in catalog] == ["med-para", "med-syr"]
    assert catalog[0] is para


def test_stock_never_negative_over_a_run_of_sales():
    para = paracetamol()
    catalog = [para]
    for quantity in [7, 13, 1, 29, 50, 3, 5]:
        try:
            _, catalog = sell(catalog, line(para, quantity))
        except InsufficientStock:
            pass
        assert available_units(catalog[0]) >= 0
        assert 0 <= catalog[0].stock.loose_tablets < catalog[0].stock.tablets_per_strip
    assert available_units(catalog[0]) == 0


def test_draft_merges_lines_and_snapshots_unit_price():
    para = paracetamol()
    draft = SaleDraft("Rahul")
    draft.add_item(para, 4)
    draft.add_item(para, 6)
    assert len(draft.items) == 1
    assert draft.items[0].quantity == 10
    assert draft.items[0].price == Decimal("2.50")
    assert draft.total_amount == Decimal("25.00")

    draft.remove_item("med-para")
    assert draft.to_request().items == []


@pytest.mark.parametrize("quantity", [0, -1, "2", 1.5, True])
def test_draft_rejects_invalid_quantities(quantity):
    with pytest.raises(InvalidQuantity):
        SaleDraft().add_item(syrup(), quantity)
