"""
Unit tests for the purchase order model and its derived totals.
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from models.approval import ApprovalResult
from models.purchase_order import PurchaseOrder, PurchaseOrderItem, round_money


def _item(code: str, line_total, quantity: int = 1, unit_price=None) -> PurchaseOrderItem:
    return PurchaseOrderItem(
        item_code=code,
        quantity=quantity,
        unit_price=unit_price if unit_price is not None else line_total,
        line_total=line_total,
    )


@pytest.mark.unit
class TestPurchaseOrderTotals:
    """Tests for computed subtotal, tax and grand total."""

    def test_empty_order_totals_are_zero(self):
        order = PurchaseOrder()
        assert order.sub_total == 0
        assert order.tax_amount == 0
        assert order.grand_total == 0

    def test_subtotal_sums_line_totals(self):
        order = PurchaseOrder(items=[_item("A", "120.50"), _item("B", "79.50"), _item("C", 300)])
        assert order.sub_total == Decimal("500.00")

    def test_line_total_is_trusted_over_quantity_and_price(self):
        item = PurchaseOrderItem(item_code="X", quantity=3, unit_price=10, line_total=25)
        order = PurchaseOrder(items=[item])
        assert order.sub_total == Decimal("25")
        assert item.expected_line_total == Decimal("30.00")

    def test_tax_and_grand_total(self, sample_order_data):
        order = PurchaseOrder.model_validate(sample_order_data)
        assert order.sub_total == Decimal("100.00")
        assert order.tax_amount == Decimal("8.75")
        assert order.grand_total == Decimal("108.75")

    def test_tax_rounds_half_up(self):
        # 0.10 * 0.05 = 0.005 -> 0.01 under half-up (banker's rounding would give 0.00)
        order = PurchaseOrder(items=[_item("A", "0.10")], tax_rate="0.05")
        assert order.tax_amount == Decimal("0.01")
        assert order.grand_total == Decimal("0.11")

    def test_tax_rate_outside_unit_interval_is_accepted(self):
        order = PurchaseOrder(items=[_item("A", 100)], tax_rate=1.5)
        assert order.tax_amount == Decimal("150.00")
        assert order.grand_total == Decimal("250.00")

    def test_totals_are_idempotent(self, sample_order_data):
        order = PurchaseOrder.model_validate(sample_order_data)
        first = (order.compute_sub_total(), order.compute_tax_amount(), order.compute_grand_total())
        second = (order.compute_sub_total(), order.compute_tax_amount(), order.compute_grand_total())
        assert first == second
        assert str(first[2]) == str(second[2])

    def test_amount_is_alias_for_grand_total(self, sample_order_data):
        order = PurchaseOrder.model_validate(sample_order_data)
        assert order.amount == order.grand_total

    def test_round_money(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("2.344")) == Decimal("2.34")
        assert round_money(Decimal("-2.345")) == Decimal("-2.35")


@pytest.mark.unit
class TestPurchaseOrderImmutability:
    """Derived fields are read-only and the order is frozen after construction."""

    @pytest.mark.parametrize("field", ["sub_total", "tax_amount", "grand_total", "amount"])
    def test_derived_fields_cannot_be_assigned(self, field):
        order = PurchaseOrder(items=[_item("A", 10)])
        with pytest.raises((AttributeError, ValidationError)):
            setattr(order, field, Decimal("999"))
        assert order.grand_total == Decimal("10.00")

    def test_items_cannot_be_reassigned(self):
        order = PurchaseOrder(items=[_item("A", 10)])
        with pytest.raises(ValidationError):
            order.items = ()

    def test_with_decision_returns_updated_copy(self):
        order = PurchaseOrder(po_number="AW-PO-1", items=[_item("A", 10)])
        decided = order.with_decision(
            ApprovalResult(po_number="AW-PO-1", is_approved=True, approval_reason="ok")
        )
        assert decided.is_approved is True
        assert decided.approval_reason == "ok"
        assert order.is_approved is False
        assert order.approval_reason is None
        assert decided.grand_total == order.grand_total

    def test_decision_is_written_once(self):
        order = PurchaseOrder(po_number="AW-PO-1").with_decision(
            ApprovalResult(is_approved=False, approval_reason="no")
        )
        with pytest.raises(ValueError):
            order.with_decision(ApprovalResult(is_approved=True, approval_reason="yes"))

    def test_incoming_approval_without_reason_counts_as_decided(self):
        order = PurchaseOrder.model_validate({"poNumber": "AW-PO-1", "isApproved": True})
        assert order.approval_reason is None
        with pytest.raises(ValueError):
            order.with_decision(ApprovalResult(is_approved=False, approval_reason="Too expensive"))


@pytest.mark.unit
class TestPurchaseOrderItemValidation:
    """Field constraints on line items."""

    def test_item_code_required(self):
        with pytest.raises(ValidationError):
            PurchaseOrderItem(item_code="", line_total=1)

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            PurchaseOrderItem(item_code="A", quantity=-1)

    def test_negative_unit_price_rejected(self):
        with pytest.raises(ValidationError):
            PurchaseOrderItem(item_code="A", unit_price="-0.01")

    def test_null_numbers_default_to_zero(self):
        item = PurchaseOrderItem.model_validate(
            {"itemCode": "A", "quantity": None, "unitPrice": None, "lineTotal": None}
        )
        assert item.quantity == 0
        assert item.unit_price == 0
        assert item.line_total == 0

    def test_null_items_treated_as_empty(self):
        order = PurchaseOrder.model_validate({"items": None})
        assert order.items == ()
        assert order.sub_total == 0


@pytest.mark.unit
class TestPurchaseOrderSummaryProjection:
    """to_summary() maps the full order onto the flat contract."""

    def test_to_summary_uses_computed_totals(self, sample_order_data):
        order = PurchaseOrder.model_validate(sample_order_data)
        summary = order.to_summary()
        assert summary.po_number == "AW-PO-2002"
        assert summary.sub_total == Decimal("100.00")
        assert summary.tax == Decimal("8.75")
        assert summary.grand_total == Decimal("108.75")
        assert summary.supplier_name == "Office Supplies Co"
        assert summary.buyer_department == "HR"
        assert summary.notes == "Quarterly restock"
