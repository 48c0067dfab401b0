import json
import logging

from models.agent import AgentCapabilities, AgentCard, AgentSkill, Message, TextPart
from pipeline.contract import ContractError, parse_summary
from pipeline.processor import PurchaseOrderProcessor

logger = logging.getLogger(__name__)


class ProcessingAgent:
    """
    Receives purchase order JSON and replies with the approval decision.

    The first reply part is the decision document
    ({"poNumber", "isApproved", "approvalReason"}); a second part lists
    advisory discrepancies when there are any.
    """

    def __init__(self, processor: PurchaseOrderProcessor):
        self.processor = processor

    def card(self, url: str) -> AgentCard:
        return AgentCard(
            name="Purchase Order Processing Agent",
            description="An agent that checks purchase order details against the approval rules.",
            url=url,
            default_input_modes=["text", "application/json"],
            default_output_modes=["text"],
            capabilities=AgentCapabilities(streaming=False, push_notifications=False),
            skills=[AgentSkill(
                id="purchase-order-processing-agent",
                name="PurchaseOrderProcessingAgent",
                description=(
                    "Processes purchase order details and uses rules to determine "
                    "whether the PO can be approved."
                ),
                tags=["purchase-order", "data-processing", "rules-engine"],
                examples=[
                    "Review this Purchase Order, and verify the details.",
                    "Does this purchase order meet all the requirements?",
                    "Can we approve this purchase order?",
                ],
            )],
        )

    def handle_message(self, message: Message) -> Message:
        part = message.first_text()
        if part is None:
            return Message.agent_reply(message, "Please send the purchase order JSON as a text part.")

        try:
            summary = parse_summary(part.text)
        except ContractError as e:
            logger.warning("Could not read purchase order from message: %s", e)
            return Message.agent_reply(message, f"Error: could not read purchase order JSON ({e}).")

        try:
            result = self.processor.process_summary(summary)
        except Exception:
            logger.exception("Error processing message")
            return Message.agent_reply(
                message, "Sorry, I encountered an error processing your request."
            )
        reply = Message.agent_reply(message, json.dumps(result.approval.to_wire()))
        if result.discrepancies:
            reply.parts.append(TextPart(
                text=json.dumps({
                    "discrepancies": [d.model_dump(mode="json") for d in result.discrepancies],
                }),
                metadata={"contentType": "application/json", "kind": "discrepancies"},
            ))
        return reply
