from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .approval import ApprovalResult
from .contract import PurchaseOrderSummary


DiscrepancyType = Literal[
    # PO number
    "po_number_missing",
    "po_number_format",
    # Arithmetic / totals
    "tax_rate_mismatch",
    "grand_total_mismatch",
    "line_total_mismatch",
    "negative_amount",
    # Supplier
    "supplier_not_approved",
]

SeverityLevel = Literal["error", "warning", "info"]


class Discrepancy(BaseModel):
    """A single advisory finding on a purchase order."""
    type: str                               # One of DiscrepancyType values
    severity: SeverityLevel                 # error / warning / info
    description: str                        # Human-readable explanation
    field: Optional[str] = None             # Which field is affected
    actual_value: Optional[str] = None      # What the order shows
    expected_value: Optional[str] = None    # What was expected
    line_number: Optional[int] = None       # 1-based, for line item findings


class ProcessingResult(BaseModel):
    """
    The complete output of running one purchase order through the pipeline.
    Written as JSON to the output directory when one is configured.
    """
    # --- Metadata ---
    source_file: str
    processed_at: str                       # ISO 8601 datetime
    processing_time_seconds: float
    llm_model_used: Optional[str] = None    # None when the summary was supplied directly

    # --- Extracted data ---
    purchase_order: PurchaseOrderSummary

    # --- Decision ---
    approval: ApprovalResult

    # --- Advisory checks ---
    discrepancies: List[Discrepancy] = Field(default_factory=list)

    # --- Summary ---
    requires_review: bool = False
    error_count: int = 0
    warning_count: int = 0

    def compute_summary(self) -> None:
        """Populate summary fields from the discrepancies list."""
        self.error_count = sum(1 for d in self.discrepancies if d.severity == "error")
        self.warning_count = sum(1 for d in self.discrepancies if d.severity == "warning")
        self.requires_review = (
            self.error_count > 0
            or self.warning_count > 0
            or bool(self.approval.configuration_issues)
        )
