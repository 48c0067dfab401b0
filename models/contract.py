from decimal import Decimal
from typing import Optional

from .wire import Money, WireModel


class PurchaseOrderSummary(WireModel):
    """
    The flat purchase order document the intake agent hands to the
    processing agent:

        {"poNumber", "subTotal", "tax", "grandTotal",
         "supplierName", "buyerDepartment", "notes"}

    Totals are taken as stated on the document. Missing or null numbers
    read as 0.
    """
    po_number: Optional[str] = None
    sub_total: Money = Decimal("0")
    tax: Money = Decimal("0")
    grand_total: Money = Decimal("0")
    supplier_name: Optional[str] = None
    buyer_department: Optional[str] = None
    notes: Optional[str] = None
