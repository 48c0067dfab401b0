"""
Pytest configuration and shared fixtures for the purchase order agents test suite.
"""
import json
import os
import shutil
import tempfile
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
os.chdir(PROJECT_ROOT)


class StubCompletions:
    """Stands in for client.chat.completions; replays canned replies in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))]
        )


class StubLLMClient:
    """Minimal OpenAI client double: chat.completions.create and models.list."""

    def __init__(self, replies, models=("gpt-4o-mini",)):
        self.completions = StubCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)
        self.models = SimpleNamespace(
            list=lambda: SimpleNamespace(data=[SimpleNamespace(id=m) for m in models])
        )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    tmp_path = tempfile.mkdtemp(prefix="po_agents_test_")
    yield Path(tmp_path)
    shutil.rmtree(tmp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path, monkeypatch) -> "Config":
    """Provide a configuration isolated from the environment and settings file."""
    monkeypatch.setenv("CONFIG_DIR", str(temp_dir / "config"))
    from config import Config

    config = Config()
    config.deployment_name = "gpt-4o-mini"
    config.endpoint = None
    config.api_key = "test-key"
    config.api_version = None
    config.max_grand_total = Decimal("1000")
    config.allowed_departments = ["Travel", "Marketing", "IT", "HR"]
    config.case_insensitive_departments = True
    config.approved_suppliers = []
    config.output_dir = temp_dir / "output"
    return config


@pytest.fixture
def sample_summary() -> dict:
    """An intake document that passes every rule under test_config."""
    return {
        "poNumber": "AW-PO-1001",
        "subTotal": 500.00,
        "tax": 35.00,
        "grandTotal": 535.00,
        "supplierName": "Swag Depot",
        "buyerDepartment": "IT",
        "notes": "Deliver to loading dock B",
    }


@pytest.fixture
def sample_order_data() -> dict:
    """A full purchase order document with line items."""
    return {
        "poNumber": "AW-PO-2002",
        "supplierName": "Office Supplies Co",
        "supplierAddressLine1": "1 Market St",
        "supplierCity": "Seattle",
        "supplierState": "WA",
        "supplierPostalCode": "98101",
        "supplierCountry": "USA",
        "createdBy": "Jordan Lee",
        "buyerDepartment": "HR",
        "notes": "Quarterly restock",
        "taxRate": 0.0875,
        "items": [
            {"itemCode": "PEN-01", "description": "Gel pens (box)", "quantity": 10,
             "unitPrice": 4.50, "lineTotal": 45.00},
            {"itemCode": "PAD-02", "description": "Legal pads", "quantity": 20,
             "unitPrice": 2.75, "lineTotal": 55.00},
        ],
    }


@pytest.fixture
def stub_llm_client():
    """Factory for a stub OpenAI client returning the given replies."""
    def _make(*replies, models=("gpt-4o-mini",)):
        return StubLLMClient(replies, models=models)
    return _make


@pytest.fixture
def sample_image(temp_dir: Path) -> Path:
    """A small file with a PNG signature; the stub model never looks inside."""
    path = temp_dir / "AdventureWorksPO_HROrder.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 32)
    return path


@pytest.fixture
def summary_reply(sample_summary) -> str:
    """A model reply wrapped in a code fence, as vision models tend to answer."""
    return "```json\n" + json.dumps(sample_summary, indent=2) + "\n```"


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "api: API tests")
