"""
Unit tests for the approval evaluator.
"""
from decimal import Decimal

import pytest

from models.approval import ApprovalResult, RuleConfig
from models.contract import PurchaseOrderSummary
from models.purchase_order import PurchaseOrder, PurchaseOrderItem
from pipeline.approval import SUPPLIER_NAME_EMPTY, ApprovalEvaluator


@pytest.fixture
def rules() -> RuleConfig:
    return RuleConfig(
        max_grand_total=1000,
        allowed_departments=["Travel", "Marketing", "IT", "HR"],
    )


@pytest.fixture
def evaluator(rules) -> ApprovalEvaluator:
    return ApprovalEvaluator(rules)


def _summary(**overrides) -> PurchaseOrderSummary:
    data = {
        "po_number": "AW-PO-1",
        "sub_total": 500,
        "tax": 35,
        "grand_total": 535,
        "supplier_name": "Swag Depot",
        "buyer_department": "IT",
    }
    data.update(overrides)
    return PurchaseOrderSummary(**data)


@pytest.mark.unit
class TestApprovalScenarios:
    """One order per rule outcome."""

    def test_all_rules_pass(self, evaluator):
        result = evaluator.evaluate(_summary())
        assert result.is_approved is True
        assert result.failures == []
        assert "Swag Depot" in result.approval_reason
        assert "535.00" in result.approval_reason
        assert "1000.00" in result.approval_reason
        assert "IT" in result.approval_reason

    def test_empty_supplier_rejected(self, evaluator):
        result = evaluator.evaluate(_summary(supplier_name=""))
        assert result.is_approved is False
        assert result.approval_reason == SUPPLIER_NAME_EMPTY
        assert result.failed_rules == ["supplier_name_required"]

    def test_whitespace_supplier_rejected(self, evaluator):
        result = evaluator.evaluate(_summary(supplier_name="   "))
        assert result.is_approved is False
        assert result.approval_reason == SUPPLIER_NAME_EMPTY

    def test_grand_total_over_limit_rejected(self, evaluator):
        result = evaluator.evaluate(_summary(sub_total=1400, tax=100, grand_total=1500))
        assert result.is_approved is False
        assert result.failed_rules == ["grand_total_limit"]
        assert "1500.00" in result.approval_reason
        assert "1000.00" in result.approval_reason

    def test_grand_total_equal_to_limit_rejected(self, evaluator):
        result = evaluator.evaluate(_summary(grand_total=1000))
        assert result.is_approved is False
        assert result.failed_rules == ["grand_total_limit"]

    def test_grand_total_just_below_limit_approved(self, evaluator):
        assert evaluator.evaluate(_summary(grand_total="999.99")).is_approved is True

    def test_department_not_allowed_rejected(self, evaluator):
        result = evaluator.evaluate(_summary(buyer_department="Facilities"))
        assert result.is_approved is False
        assert result.failed_rules == ["buyer_department_allowed"]
        assert "'Facilities'" in result.approval_reason
        assert "HR, IT, Marketing, Travel" in result.approval_reason

    def test_missing_department_rejected(self, evaluator):
        result = evaluator.evaluate(_summary(buyer_department=None))
        assert result.is_approved is False
        assert "(empty)" in result.approval_reason


@pytest.mark.unit
class TestApprovalRuleOrdering:
    """Every rule is evaluated; the reason names the first failure."""

    def test_all_failures_collected(self, evaluator):
        result = evaluator.evaluate(
            _summary(supplier_name=None, grand_total=5000, buyer_department="Legal")
        )
        assert result.failed_rules == [
            "supplier_name_required",
            "grand_total_limit",
            "buyer_department_allowed",
        ]
        assert result.approval_reason == SUPPLIER_NAME_EMPTY

    def test_grand_total_reported_before_department(self, evaluator):
        result = evaluator.evaluate(_summary(grand_total=5000, buyer_department="Legal"))
        assert result.approval_reason.startswith("Grand Total 5000.00")

    def test_default_valued_summary_is_rejected(self, evaluator):
        result = evaluator.evaluate(PurchaseOrderSummary())
        assert result.is_approved is False
        assert result.approval_reason == SUPPLIER_NAME_EMPTY
        assert result.po_number is None

    def test_evaluation_is_deterministic(self, evaluator):
        order = _summary(buyer_department="Legal")
        first = evaluator.evaluate(order)
        second = evaluator.evaluate(order)
        assert first == second
        assert first.to_wire() == second.to_wire()

    def test_po_number_carried_through(self, evaluator):
        assert evaluator.evaluate(_summary(po_number="AW-PO-42")).po_number == "AW-PO-42"


@pytest.mark.unit
class TestDepartmentMatching:
    """Case handling for the allowed-department rule."""

    @pytest.mark.parametrize("department", ["it", "IT", " It ", "marketing", "HR"])
    def test_case_insensitive_by_default(self, evaluator, department):
        assert evaluator.evaluate(_summary(buyer_department=department)).is_approved is True

    def test_case_sensitive_when_configured(self):
        evaluator = ApprovalEvaluator(RuleConfig(
            max_grand_total=1000,
            allowed_departments=["IT"],
            case_insensitive_departments=False,
        ))
        assert evaluator.evaluate(_summary(buyer_department="IT")).is_approved is True
        assert evaluator.evaluate(_summary(buyer_department="it")).is_approved is False

    def test_departments_from_comma_string(self):
        rules = RuleConfig(max_grand_total=1000, allowed_departments=" IT , HR,,")
        assert rules.allowed_departments == frozenset({"IT", "HR"})


@pytest.mark.unit
class TestRuleConfiguration:
    """Settings under which nothing can pass are reported, not raised."""

    def test_sane_configuration_has_no_issues(self, evaluator):
        assert evaluator.evaluate(_summary()).configuration_issues == []

    def test_zero_limit_reported(self):
        evaluator = ApprovalEvaluator(RuleConfig(max_grand_total=0, allowed_departments=["IT"]))
        result = evaluator.evaluate(_summary())
        assert result.is_approved is False
        assert any("max_grand_total" in issue for issue in result.configuration_issues)

    def test_empty_departments_reported(self):
        evaluator = ApprovalEvaluator(RuleConfig(max_grand_total=1000))
        result = evaluator.evaluate(_summary())
        assert result.is_approved is False
        assert "(none configured)" in result.approval_reason
        assert any("allowed_departments" in issue for issue in result.configuration_issues)

    def test_configuration_issues_not_on_the_wire(self):
        evaluator = ApprovalEvaluator(RuleConfig(max_grand_total=0))
        wire = evaluator.evaluate(_summary()).to_wire()
        assert set(wire) == {"poNumber", "isApproved", "approvalReason"}


@pytest.mark.unit
class TestApproveFullOrder:
    """approve() records the decision on a copy of a full order."""

    def test_full_order_uses_computed_grand_total(self, evaluator, sample_order_data):
        order = PurchaseOrder.model_validate(sample_order_data)
        decided = evaluator.approve(order)
        assert decided.is_approved is True
        assert "108.75" in decided.approval_reason
        assert order.approval_reason is None

    def test_full_order_over_limit(self, evaluator):
        order = PurchaseOrder(
            po_number="AW-PO-9",
            supplier_name="Swag Depot",
            buyer_department="Marketing",
            tax_rate=Decimal("0.1"),
            items=[PurchaseOrderItem(item_code="TENT", quantity=1, unit_price=950, line_total=950)],
        )
        # 950 + 95 tax = 1045.00
        decided = evaluator.approve(order)
        assert decided.is_approved is False
        assert "1045.00" in decided.approval_reason

    def test_approve_twice_raises(self, evaluator, sample_order_data):
        decided = evaluator.approve(PurchaseOrder.model_validate(sample_order_data))
        with pytest.raises(ValueError):
            evaluator.approve(decided)

    def test_result_type(self, evaluator):
        assert isinstance(evaluator.evaluate(_summary()), ApprovalResult)
