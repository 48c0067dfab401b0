from .contract import ContractError, parse_approval, parse_purchase_order, parse_summary
from .approval import ApprovalEvaluator
from .checks import PurchaseOrderChecker
from .intake import IntakeParser
from .processor import PurchaseOrderProcessor

__all__ = [
    "ContractError", "parse_approval", "parse_purchase_order", "parse_summary",
    "ApprovalEvaluator", "PurchaseOrderChecker", "IntakeParser",
    "PurchaseOrderProcessor",
]
