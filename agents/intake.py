import base64
import binascii
import json
import logging

from models.agent import AgentCapabilities, AgentCard, AgentSkill, Message
from pipeline.intake import IntakeParser

logger = logging.getLogger(__name__)


class IntakeAgent:
    """Receives a purchase order image and replies with the extracted summary JSON."""

    def __init__(self, parser: IntakeParser):
        self.parser = parser

    def card(self, url: str) -> AgentCard:
        return AgentCard(
            name="Purchase Order Intake Agent",
            description="An agent that reads purchase order images and extracts key details.",
            url=url,
            default_input_modes=["image/png", "image/jpeg"],
            default_output_modes=["text"],
            capabilities=AgentCapabilities(streaming=False, push_notifications=False),
            skills=[AgentSkill(
                id="purchase-order-intake-agent",
                name="PurchaseOrderIntakeAgent",
                description="Processes purchase order images and extracts key details as JSON.",
                tags=["purchase-order", "image-processing", "data-extraction"],
                examples=[
                    "Extract key details from this purchase order image.",
                    "Analyze the attached PO image and return the data as JSON.",
                    "Scan the provided PO image and return the PO number, totals, "
                    "supplier name and buyer department.",
                ],
            )],
        )

    def handle_message(self, message: Message) -> Message:
        part = message.first_file()
        if part is None:
            return Message.agent_reply(message, "Please attach a purchase order image as a file part.")
        if not part.file.data:
            logger.warning("File part does not contain inline bytes")
            return Message.agent_reply(message, "Error: the attached file has no image data.")

        try:
            image = base64.b64decode(part.file.data, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error("Failed to decode base64 image data: %s", e)
            return Message.agent_reply(message, "Error: could not decode the attached image.")

        mime_type = part.content_type()
        logger.info("Received image: %d bytes, MIME: %s", len(image), mime_type)
        try:
            summary = self.parser.extract_bytes(image, mime_type)
        except Exception:
            logger.exception("Error processing message")
            return Message.agent_reply(
                message, "Sorry, I encountered an error processing your request."
            )
        return Message.agent_reply(message, json.dumps(summary.to_wire()))
