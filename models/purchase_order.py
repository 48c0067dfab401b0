from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Optional, Tuple

from pydantic import ConfigDict, Field, computed_field, field_validator

from .contract import PurchaseOrderSummary
from .wire import Count, Money, WireModel

if TYPE_CHECKING:
    from .approval import ApprovalResult


_CENT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero (0.005 -> 0.01)."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


class PurchaseOrderItem(WireModel):
    """A single line on a Purchase Order."""
    model_config = ConfigDict(frozen=True)

    item_code: str = Field(min_length=1)
    description: Optional[str] = None
    quantity: Count = Field(default=0, ge=0)
    unit_price: Money = Field(default=Decimal("0"), ge=0)
    line_total: Money = Decimal("0")    # authoritative; not recomputed from qty * price

    @property
    def expected_line_total(self) -> Decimal:
        """quantity * unit_price, for callers that want to cross-check line_total."""
        return round_money(self.unit_price * self.quantity)


class PurchaseOrder(WireModel):
    """
    A Purchase Order as it moves between the intake and processing stages.

    Totals are derived from the line items on every access and are never
    stored, so they cannot drift from the items they summarise. The order is
    frozen once built; the approval fields are filled in by the evaluator via
    with_decision(), which returns a new instance.
    """
    model_config = ConfigDict(frozen=True)

    # Supplier
    supplier_name: Optional[str] = None
    supplier_address_line1: Optional[str] = None
    supplier_address_line2: Optional[str] = None
    supplier_city: Optional[str] = None
    supplier_state: Optional[str] = None
    supplier_postal_code: Optional[str] = None
    supplier_country: Optional[str] = None

    items: Tuple[PurchaseOrderItem, ...] = ()

    # Metadata
    po_number: Optional[str] = None
    created_by: Optional[str] = None
    buyer_department: Optional[str] = None
    notes: Optional[str] = None

    tax_rate: Money = Decimal("0")      # fraction, e.g. 0.0875 for 8.75%

    # Approval
    is_approved: bool = False
    approval_reason: Optional[str] = None

    @field_validator("items", mode="before")
    @classmethod
    def _null_items(cls, value):
        return () if value is None else value

    # --- Derived totals --------------------------------------------------

    def compute_sub_total(self) -> Decimal:
        return sum((item.line_total for item in self.items or ()), Decimal("0"))

    def compute_tax_amount(self) -> Decimal:
        return round_money(self.compute_sub_total() * self.tax_rate)

    def compute_grand_total(self) -> Decimal:
        return round_money(self.compute_sub_total() + self.compute_tax_amount())

    @computed_field(alias="subTotal")
    @property
    def sub_total(self) -> Money:
        return self.compute_sub_total()

    @computed_field(alias="taxAmount")
    @property
    def tax_amount(self) -> Money:
        return self.compute_tax_amount()

    @computed_field(alias="grandTotal")
    @property
    def grand_total(self) -> Money:
        return self.compute_grand_total()

    @property
    def amount(self) -> Decimal:
        """Older name for grand_total, read-only."""
        return self.grand_total

    # --- Conversions -----------------------------------------------------

    def with_decision(self, result: "ApprovalResult") -> "PurchaseOrder":
        """Return a copy carrying the evaluator's decision."""
        if self.is_approved or self.approval_reason is not None:
            raise ValueError(
                f"Purchase order {self.po_number or '(no number)'} already has a decision"
            )
        return self.model_copy(update={
            "is_approved": result.is_approved,
            "approval_reason": result.approval_reason,
        })

    def to_summary(self) -> PurchaseOrderSummary:
        """Project onto the flat summary contract exchanged between agents."""
        return PurchaseOrderSummary(
            po_number=self.po_number,
            sub_total=self.sub_total,
            tax=self.tax_amount,
            grand_total=self.grand_total,
            supplier_name=self.supplier_name,
            buyer_department=self.buyer_department,
            notes=self.notes,
        )
