from .wire import WireModel, Money, parse_decimal
from .contract import PurchaseOrderSummary
from .purchase_order import PurchaseOrder, PurchaseOrderItem, round_money
from .approval import ApprovalResult, RuleConfig, RuleFailure
from .result import Discrepancy, ProcessingResult
from .agent import (
    AgentCapabilities, AgentCard, AgentSkill, FileContent, FilePart,
    JsonRpcRequest, Message, MessageSendParams, TextPart,
)

__all__ = [
    "WireModel", "Money", "parse_decimal",
    "PurchaseOrderSummary",
    "PurchaseOrder", "PurchaseOrderItem", "round_money",
    "ApprovalResult", "RuleConfig", "RuleFailure",
    "Discrepancy", "ProcessingResult",
    "AgentCapabilities", "AgentCard", "AgentSkill", "FileContent", "FilePart",
    "JsonRpcRequest", "Message", "MessageSendParams", "TextPart",
]
