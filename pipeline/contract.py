"""
Turn model output into purchase order objects.

Vision models wrap JSON in code fences, add a sentence before or after it,
and occasionally leave trailing commas. This module recovers the outermost
JSON object and validates it. Unusable text fields fall back to their
defaults; unusable amounts reject the whole document.
"""
import json
import logging
import re
from typing import Type, TypeVar

from pydantic import ValidationError

from models.approval import ApprovalResult
from models.contract import PurchaseOrderSummary
from models.purchase_order import PurchaseOrder
from models.wire import WireModel

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=WireModel)

# Fields the totals are derived from
AMOUNT_FIELDS = frozenset({"sub_total", "tax", "grand_total", "tax_rate", "items"})


class ContractError(ValueError):
    """Raised when a document cannot be read as the expected JSON object."""


def extract_json_object(raw: str) -> dict:
    """
    Return the outermost JSON object found in *raw*.

    Handles markdown code fences and trailing commas before } or ].
    """
    if raw is None:
        raise ContractError("Empty response")
    text = re.sub(r"^```(?:json)?\s*", "", raw.strip(), flags=re.IGNORECASE)
    text = re.sub(r"\s*```$", "", text).strip()

    start = text.find("{")
    end = text.rfind("}") + 1
    if start == -1 or end == 0:
        raise ContractError("No JSON object found in response")

    json_str = text[start:end]
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.warning("JSON decode error: %s", e)
        json_str = re.sub(r",\s*([}\]])", r"\1", json_str)
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e2:
            raise ContractError(f"Could not repair JSON: {e2}") from e2

    if not isinstance(data, dict):
        raise ContractError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def load_model(model: Type[M], data: dict) -> M:
    """
    Validate *data* as *model*, dropping fields that fail validation.

    Fields that feed the order's totals (AMOUNT_FIELDS) are never dropped: a
    bad amount, tax rate or line item raises ContractError, because a default
    of 0 would make the order look cheaper than it is.
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        bad = {_field_key(model, str(err["loc"][0])) for err in e.errors() if err["loc"]}
        unreadable = sorted(bad & AMOUNT_FIELDS)
        if unreadable:
            raise ContractError(
                f"Invalid {model.__name__}: unreadable {', '.join(unreadable)}: {e}"
            ) from e
        logger.warning("Dropping invalid field(s) %s from %s", sorted(bad), model.__name__)
        kept = {k: v for k, v in data.items() if _field_key(model, k) not in bad}
        try:
            return model.model_validate(kept)
        except ValidationError as e2:
            raise ContractError(f"Invalid {model.__name__}: {e2}") from e2


def parse_summary(raw: str) -> PurchaseOrderSummary:
    return load_model(PurchaseOrderSummary, extract_json_object(raw))


def parse_purchase_order(raw: str) -> PurchaseOrder:
    return load_model(PurchaseOrder, extract_json_object(raw))


def parse_approval(raw: str) -> ApprovalResult:
    return load_model(ApprovalResult, extract_json_object(raw))


def _field_key(model: Type[WireModel], key: str) -> str:
    """Map a document key onto the model field name it would populate."""
    wanted = key.lower()
    for name, info in model.model_fields.items():
        if wanted in (name.lower(), name.replace("_", "").lower(), (info.alias or "").lower()):
            return name
    return key
