"""
Purchase order approval rules.

Rules, in precedence order:
  1. Supplier name must not be empty (always applied)
  2. Grand total must be strictly below RuleConfig.max_grand_total
  3. Buyer department must be one of RuleConfig.allowed_departments

Every rule is evaluated; the reason string names the first one that failed.
Evaluation is pure: no I/O and no logging. Configuration problems come back
on the result for the caller to report.
"""
from decimal import Decimal
from typing import Optional, Union

from models.approval import ApprovalResult, RuleConfig, RuleFailure
from models.contract import PurchaseOrderSummary
from models.purchase_order import PurchaseOrder
from models.wire import parse_decimal

OrderLike = Union[PurchaseOrder, PurchaseOrderSummary]

SUPPLIER_NAME_EMPTY = "Supplier Name must not be empty."


class ApprovalEvaluator:
    """
    Decides whether a purchase order can be approved automatically.

    Usage:
        evaluator = ApprovalEvaluator(RuleConfig(max_grand_total=1000,
                                                 allowed_departments={"IT", "HR"}))
        result = evaluator.evaluate(order)
    """

    def __init__(self, rules: RuleConfig):
        self.rules = rules

    def evaluate(self, order: OrderLike) -> ApprovalResult:
        supplier = _text(getattr(order, "supplier_name", None))
        department = _text(getattr(order, "buyer_department", None))
        grand_total = parse_decimal(getattr(order, "grand_total", None))

        failures = [
            f for f in (
                self._check_supplier(supplier),
                self._check_grand_total(grand_total),
                self._check_department(department),
            )
            if f is not None
        ]

        if failures:
            reason = failures[0].description
        else:
            reason = (
                f"Approved: supplier '{supplier}' is present, grand total "
                f"{grand_total:.2f} is below the limit of {self.rules.max_grand_total:.2f}, "
                f"and buyer department '{department}' is allowed."
            )

        return ApprovalResult(
            po_number=getattr(order, "po_number", None),
            is_approved=not failures,
            approval_reason=reason,
            failures=failures,
            configuration_issues=self.rules.configuration_issues(),
        )

    def approve(self, order: PurchaseOrder) -> PurchaseOrder:
        """Evaluate and return a copy of the order with the decision recorded."""
        return order.with_decision(self.evaluate(order))

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _check_supplier(self, supplier: Optional[str]) -> Optional[RuleFailure]:
        if supplier:
            return None
        return RuleFailure(
            rule="supplier_name_required",
            description=SUPPLIER_NAME_EMPTY,
            actual=supplier,
            expected="non-empty supplier name",
        )

    def _check_grand_total(self, grand_total: Decimal) -> Optional[RuleFailure]:
        limit = self.rules.max_grand_total
        if grand_total < limit:
            return None
        return RuleFailure(
            rule="grand_total_limit",
            description=(
                f"Grand Total {grand_total:.2f} must be less than {limit:.2f}."
            ),
            actual=f"{grand_total:.2f}",
            expected=f"< {limit:.2f}",
        )

    def _check_department(self, department: Optional[str]) -> Optional[RuleFailure]:
        if department and self._department_allowed(department):
            return None
        allowed = ", ".join(self.rules.sorted_departments()) or "(none configured)"
        shown = f"'{department}'" if department else "(empty)"
        return RuleFailure(
            rule="buyer_department_allowed",
            description=(
                f"Buyer Department {shown} is not one of the allowed departments: {allowed}."
            ),
            actual=department,
            expected=allowed,
        )

    def _department_allowed(self, department: str) -> bool:
        if self.rules.case_insensitive_departments:
            wanted = department.casefold()
            return any(d.casefold() == wanted for d in self.rules.allowed_departments)
        return department in self.rules.allowed_departments


def _text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
