"""
Advisory purchase order checks.

These never change the approval decision; they flag things a reviewer
should look at before the order goes out.

Checks:
  PO number:  missing, not in PREFIX-PO-NUMBER form
  Arithmetic: tax vs department rate, grand total vs subtotal + tax,
              line total vs quantity x unit price, negative amounts
  Supplier:   not on the approved supplier list
"""
import logging
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from models.contract import PurchaseOrderSummary
from models.purchase_order import PurchaseOrder, round_money
from models.result import Discrepancy

logger = logging.getLogger(__name__)

# Tax rates by buyer department (upper-cased); anything else uses DEFAULT_TAX_RATE
DEPARTMENT_TAX_RATES: dict[str, Decimal] = {
    "HR":        Decimal("0.065"),
    "IT":        Decimal("0.070"),
    "MARKETING": Decimal("0.072"),
    "MKT":       Decimal("0.072"),
}
DEFAULT_TAX_RATE = Decimal("0.07")
AMOUNT_TOLERANCE = Decimal("0.01")
PO_NUMBER_MARKER = "-PO-"


class PurchaseOrderChecker:
    """
    Produces a list of Discrepancy objects for a purchase order.

    Accepts either the flat summary (stated totals) or a full order
    (computed totals plus line items).

    Usage:
        checker = PurchaseOrderChecker(approved_suppliers=["Swag Depot"])
        discrepancies = checker.check(summary)
    """

    def __init__(
        self,
        approved_suppliers: Iterable[str] = (),
        department_tax_rates: Optional[Mapping[str, Decimal]] = None,
        default_tax_rate: Decimal = DEFAULT_TAX_RATE,
    ):
        self.approved_suppliers = {s.strip().casefold() for s in approved_suppliers if s.strip()}
        rates = department_tax_rates if department_tax_rates is not None else DEPARTMENT_TAX_RATES
        self.department_tax_rates = {k.upper(): Decimal(str(v)) for k, v in rates.items()}
        self.default_tax_rate = Decimal(str(default_tax_rate))

    def check(self, order: Union[PurchaseOrder, PurchaseOrderSummary]) -> list[Discrepancy]:
        """Run all checks and return combined discrepancies list."""
        issues: list[Discrepancy] = []
        issues.extend(self._check_po_number(order.po_number))
        issues.extend(self._check_amounts(order))
        issues.extend(self._check_supplier(order.supplier_name))
        if isinstance(order, PurchaseOrder):
            issues.extend(self._check_line_items(order))
        return issues

    def tax_rate_for(self, department: Optional[str]) -> Decimal:
        key = (department or "").strip().upper()
        return self.department_tax_rates.get(key, self.default_tax_rate)

    # ------------------------------------------------------------------
    # PO number
    # ------------------------------------------------------------------

    def _check_po_number(self, po_number: Optional[str]) -> list[Discrepancy]:
        if not po_number or not po_number.strip():
            return [Discrepancy(
                type="po_number_missing",
                severity="warning",
                description="No PO number found on the purchase order",
                field="po_number",
            )]
        if PO_NUMBER_MARKER not in po_number:
            return [Discrepancy(
                type="po_number_format",
                severity="info",
                description=(
                    f"PO number {po_number} does not follow the standard format "
                    f"(expected: PREFIX-PO-NUMBER)"
                ),
                field="po_number",
                actual_value=po_number,
                expected_value=f"PREFIX{PO_NUMBER_MARKER}NUMBER",
            )]
        return []

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def _check_amounts(self, order: Union[PurchaseOrder, PurchaseOrderSummary]) -> list[Discrepancy]:
        issues = []
        if isinstance(order, PurchaseOrder):
            sub_total, tax, grand_total = order.sub_total, order.tax_amount, order.grand_total
        else:
            sub_total, tax, grand_total = order.sub_total, order.tax, order.grand_total

        for field, value in (("sub_total", sub_total), ("tax", tax), ("grand_total", grand_total)):
            if value < 0:
                issues.append(Discrepancy(
                    type="negative_amount",
                    severity="error",
                    description=f"{_label(field)} is negative: {value:.2f}",
                    field=field,
                    actual_value=f"{value:.2f}",
                ))

        rate = self.tax_rate_for(order.buyer_department)
        expected_tax = round_money(sub_total * rate)
        if abs(tax - expected_tax) >= AMOUNT_TOLERANCE:
            issues.append(Discrepancy(
                type="tax_rate_mismatch",
                severity="warning",
                description=(
                    f"Tax ({tax:.2f}) does not match the {rate * 100:.1f}% rate for "
                    f"department {order.buyer_department or '(none)'} ({expected_tax:.2f})"
                ),
                field="tax",
                actual_value=f"{tax:.2f}",
                expected_value=f"{expected_tax:.2f}",
            ))

        expected_total = round_money(sub_total + tax)
        if abs(grand_total - expected_total) >= AMOUNT_TOLERANCE:
            issues.append(Discrepancy(
                type="grand_total_mismatch",
                severity="error",
                description=(
                    f"Grand total ({grand_total:.2f}) does not match "
                    f"subtotal + tax ({expected_total:.2f})"
                ),
                field="grand_total",
                actual_value=f"{grand_total:.2f}",
                expected_value=f"{expected_total:.2f}",
            ))

        return issues

    # ------------------------------------------------------------------
    # Supplier
    # ------------------------------------------------------------------

    def _check_supplier(self, supplier_name: Optional[str]) -> list[Discrepancy]:
        if not self.approved_suppliers or not supplier_name or not supplier_name.strip():
            return []
        if supplier_name.strip().casefold() in self.approved_suppliers:
            return []
        return [Discrepancy(
            type="supplier_not_approved",
            severity="warning",
            description=f"Supplier '{supplier_name}' is not in the approved supplier list",
            field="supplier_name",
            actual_value=supplier_name,
        )]

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    def _check_line_items(self, order: PurchaseOrder) -> list[Discrepancy]:
        issues = []
        for i, item in enumerate(order.items, 1):
            if item.line_total < 0:
                issues.append(Discrepancy(
                    type="negative_amount",
                    severity="error",
                    description=f"Line {i} ({item.item_code}) has a negative total: {item.line_total:.2f}",
                    field=f"items[{i - 1}].line_total",
                    actual_value=f"{item.line_total:.2f}",
                    line_number=i,
                ))
                continue
            expected = item.expected_line_total
            if abs(item.line_total - expected) >= AMOUNT_TOLERANCE:
                # line_total stays authoritative; this is informational only
                issues.append(Discrepancy(
                    type="line_total_mismatch",
                    severity="info",
                    description=(
                        f"Line {i} ({item.item_code}) total {item.line_total:.2f} differs from "
                        f"{item.quantity} x {item.unit_price:.2f} = {expected:.2f}"
                    ),
                    field=f"items[{i - 1}].line_total",
                    actual_value=f"{item.line_total:.2f}",
                    expected_value=f"{expected:.2f}",
                    line_number=i,
                ))
        if issues:
            logger.debug("%d line item finding(s) on PO %s", len(issues), order.po_number)
        return issues


def _label(field: str) -> str:
    return {"sub_total": "Subtotal", "tax": "Tax", "grand_total": "Grand total"}[field]
