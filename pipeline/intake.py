"""
Purchase order image intake.

Sends a PO image to an OpenAI-compatible vision model and parses the JSON
summary it returns.

Works with any OpenAI-compatible backend:
  - OpenAI:        ENDPOINT unset                                    API_KEY=sk-...
  - Ollama:        ENDPOINT=http://localhost:11434/v1                API_KEY=ollama
  - Azure OpenAI:  ENDPOINT=https://<resource>.openai.azure.com/     API_KEY=<key>  API_VERSION=...

The model only reads the document. Totals are taken as printed; the
processing stage decides what to do with them.
"""
import base64
import logging
from pathlib import Path
from typing import Optional

from config import LLMSettings
from models.contract import PurchaseOrderSummary
from .contract import ContractError, parse_summary

logger = logging.getLogger(__name__)


_INSTRUCTIONS = """You are a document processor that reads images of purchase orders (POs).
Extract these details from the purchase order: PO Number, Subtotal, Tax, Grand Total, Supplier Name, Buyer Department and Notes.

IMPORTANT RULES:
- Return ONLY the JSON object -- no markdown, no explanation, no code fences
- All monetary amounts must be plain numbers (no currency symbols, no commas)
- Use null for any field not found on the purchase order

Return a JSON object with exactly this structure:
{
  "poNumber": "string or null",
  "subTotal": number or null,
  "tax": number or null,
  "grandTotal": number or null,
  "supplierName": "string or null",
  "buyerDepartment": "string or null",
  "notes": "string or null"
}"""

_USER_PROMPT = "Please extract the purchase order information from this image."

_MIME_TYPES = {
    ".png":  "image/png",
    ".jpg":  "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif":  "image/gif",
    ".bmp":  "image/bmp",
}
DEFAULT_MIME_TYPE = "image/png"
IMAGE_SUFFIXES = frozenset(_MIME_TYPES)


def mime_type_for(path: str | Path) -> str:
    """MIME type from the file extension; unknown extensions are sent as PNG."""
    return _MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


class IntakeParser:
    """
    Extracts a PurchaseOrderSummary from a purchase order image.

    The OpenAI client is created lazily from LLMSettings, or can be passed in
    directly (anything with chat.completions.create and models.list).
    """

    def __init__(self, settings: LLMSettings, client=None, max_attempts: int = 3):
        self.settings = settings
        self.max_attempts = max_attempts
        self._client = client

    @property
    def model(self) -> str:
        return self.settings.deployment_name

    def _get_client(self):
        """Lazily initialise the OpenAI (or Azure OpenAI) client."""
        if self._client is None:
            try:
                if self.settings.api_version:
                    from openai import AzureOpenAI
                    self._client = AzureOpenAI(
                        azure_endpoint=self.settings.endpoint,
                        api_key=self.settings.api_key,
                        api_version=self.settings.api_version,
                    )
                else:
                    from openai import OpenAI
                    self._client = OpenAI(
                        base_url=self.settings.endpoint or None,
                        api_key=self.settings.api_key,
                    )
            except ImportError:
                raise RuntimeError(
                    "openai package not installed. Run: pip install openai"
                )
        return self._client

    def extract(self, image_path: str | Path) -> PurchaseOrderSummary:
        """
        Read the image at *image_path* and return the extracted summary.

        Raises FileNotFoundError if the image does not exist and ValueError if
        the model returns unusable JSON on every attempt.
        """
        image_path = Path(image_path)
        if not image_path.is_file():
            raise FileNotFoundError(f"Purchase order file not found: {image_path}")
        logger.info("Reading purchase order image %s", image_path.name)
        return self.extract_bytes(image_path.read_bytes(), mime_type_for(image_path))

    def extract_bytes(self, data: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> PurchaseOrderSummary:
        if not data:
            raise ValueError("Purchase order image is empty")

        image_url = f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
        messages = [
            {"role": "system", "content": _INSTRUCTIONS},
            {"role": "user", "content": [
                {"type": "text", "text": _USER_PROMPT},
                {"type": "image_url", "image_url": {"url": image_url}},
            ]},
        ]

        client = self._get_client()
        summary: Optional[PurchaseOrderSummary] = None

        for attempt in range(1, self.max_attempts + 1):
            logger.debug("Intake attempt %d (model=%s, %d bytes, %s)",
                         attempt, self.model, len(data), mime_type)
            try:
                response = client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=0.0,   # deterministic output
                )
                raw = (response.choices[0].message.content or "").strip()
                summary = parse_summary(raw)
                logger.info("Intake succeeded on attempt %d (PO %s)", attempt, summary.po_number)
                break
            except ContractError as e:
                logger.warning("Intake attempt %d returned unusable JSON: %s", attempt, e)
            except Exception as e:
                logger.warning("Intake attempt %d failed: %s", attempt, e)
                if attempt == self.max_attempts:
                    raise

        if summary is None:
            raise ValueError(
                f"Model failed to return valid purchase order JSON after {self.max_attempts} attempts"
            )
        return summary

    def check_connection(self) -> dict:
        """
        Verify the endpoint is reachable and the configured model is listed.
        """
        try:
            client = self._get_client()
            models_response = client.models.list()
            available = [m.id for m in models_response.data]
            model_available = any(self.model in m for m in available)
            return {
                "ok": True,
                "endpoint": self.settings.endpoint,
                "model_available": model_available,
                "available_models": available,
            }
        except Exception as e:
            return {
                "ok": False,
                "endpoint": self.settings.endpoint,
                "error": str(e),
                "model_available": False,
            }
