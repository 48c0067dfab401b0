from typing import Optional

from fastapi import FastAPI

from config import Config
from pipeline.intake import IntakeParser
from pipeline.processor import PurchaseOrderProcessor
from .app import create_app
from .intake import IntakeAgent
from .processing import ProcessingAgent

AGENT_NAMES = ("intake", "processing")


def build_app(name: str, config: Optional[Config] = None) -> FastAPI:
    """Build the FastAPI app for the named agent ("intake" or "processing")."""
    config = config or Config()
    if name == "intake":
        parser = IntakeParser(config.llm_settings(), max_attempts=config.llm_max_attempts)
        return create_app(IntakeAgent(parser), title="Purchase Order Intake Agent")
    if name == "processing":
        return create_app(
            ProcessingAgent(PurchaseOrderProcessor(config)),
            title="Purchase Order Processing Agent",
        )
    raise ValueError(f"Unknown agent: {name!r} (expected one of {', '.join(AGENT_NAMES)})")


__all__ = ["AGENT_NAMES", "build_app", "create_app", "IntakeAgent", "ProcessingAgent"]
