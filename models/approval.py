from decimal import Decimal
from typing import FrozenSet, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .wire import Money, WireModel


RuleName = Literal[
    "supplier_name_required",
    "grand_total_limit",
    "buyer_department_allowed",
]


class RuleConfig(BaseModel):
    """
    Thresholds the approval evaluator checks against.

    The supplier-name rule is unconditional and has no setting here.
    """
    model_config = ConfigDict(frozen=True)

    max_grand_total: Money
    allowed_departments: FrozenSet[str] = frozenset()
    case_insensitive_departments: bool = True

    @field_validator("allowed_departments", mode="before")
    @classmethod
    def _split_departments(cls, value):
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = value.split(",")
        return frozenset(d.strip() for d in value if d and d.strip())

    def configuration_issues(self) -> List[str]:
        """Settings under which every order would be rejected."""
        issues = []
        if self.max_grand_total <= 0:
            issues.append(
                f"max_grand_total is {self.max_grand_total}; no order can be below it"
            )
        if not self.allowed_departments:
            issues.append("allowed_departments is empty; no buyer department can pass")
        return issues

    def sorted_departments(self) -> List[str]:
        return sorted(self.allowed_departments, key=str.casefold)


class RuleFailure(BaseModel):
    """One approval rule an order did not satisfy."""
    rule: RuleName
    description: str
    actual: Optional[str] = None
    expected: Optional[str] = None


class ApprovalResult(WireModel):
    """
    Outcome of evaluating one order.

    Only po_number, is_approved and approval_reason are part of the
    exchanged document (see to_wire); failures and configuration_issues
    are kept for the caller.
    """
    po_number: Optional[str] = None
    is_approved: bool = False
    approval_reason: str = ""
    failures: List[RuleFailure] = Field(default_factory=list)
    configuration_issues: List[str] = Field(default_factory=list)

    @field_validator("approval_reason", mode="before")
    @classmethod
    def _null_reason(cls, value):
        return "" if value is None else value

    def to_wire(self) -> dict:
        return self.model_dump(
            mode="json",
            by_alias=True,
            include={"po_number", "is_approved", "approval_reason"},
        )

    @property
    def failed_rules(self) -> List[str]:
        return [f.rule for f in self.failures]
