"""
Central configuration for the purchase order agents.

All thresholds, model settings and server options are defined here.
Override via environment variables or by passing a Config instance directly.

Settings priority (highest wins):
  1. config/pipeline_settings.json  (admin-editable, persisted)
  2. Environment variables
  3. Hardcoded defaults in this file

Model credentials are collected into an LLMSettings value and handed to the
intake parser explicitly; nothing below the CLI reads the environment.
"""
import json
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Optional

from models.approval import RuleConfig

logger = logging.getLogger(__name__)

# Project root (directory containing this file)
PROJECT_ROOT = Path(__file__).parent

DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "output"

DEFAULT_ALLOWED_DEPARTMENTS = "Travel,Marketing,IT,HR"


def _env_list(name: str, default: str = "") -> list[str]:
    return _as_list(os.getenv(name, default))


def _as_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in ("false", "0", "no", "off", "")


def _as_decimal(value) -> Decimal:
    return Decimal(str(value))


@dataclass(frozen=True)
class LLMSettings:
    """
    Connection settings for the OpenAI-compatible vision model.

    deployment_name is the model (or Azure deployment) name. api_version is
    only set for Azure OpenAI endpoints.
    """
    deployment_name: str
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    api_version: Optional[str] = None

    def missing(self) -> list[str]:
        """Names of settings the intake parser cannot run without."""
        absent = []
        if not self.deployment_name:
            absent.append("DEPLOYMENT_NAME")
        if not self.api_key:
            absent.append("API_KEY")
        if self.api_version and not self.endpoint:
            absent.append("ENDPOINT")
        return absent


@dataclass
class Config:
    # --- Vision model (OpenAI-compatible API) ---
    # OpenAI:        ENDPOINT unset (or https://api.openai.com/v1)     API_KEY=sk-...
    # Ollama:        ENDPOINT=http://localhost:11434/v1                API_KEY=ollama
    # Azure OpenAI:  ENDPOINT=https://<resource>.openai.azure.com/     API_KEY=<key>  API_VERSION=2024-10-21
    deployment_name: str = field(
        default_factory=lambda: os.getenv("DEPLOYMENT_NAME", "gpt-4o-mini")
    )
    endpoint: Optional[str] = field(default_factory=lambda: os.getenv("ENDPOINT"))
    api_key: Optional[str] = field(default_factory=lambda: os.getenv("API_KEY"))
    api_version: Optional[str] = field(default_factory=lambda: os.getenv("API_VERSION"))
    llm_max_attempts: int = 3

    # --- Approval rules ---
    max_grand_total: Decimal = field(
        default_factory=lambda: _as_decimal(os.getenv("MAX_GRAND_TOTAL", "1000"))
    )
    allowed_departments: list[str] = field(
        default_factory=lambda: _env_list("ALLOWED_DEPARTMENTS", DEFAULT_ALLOWED_DEPARTMENTS)
    )
    case_insensitive_departments: bool = field(
        default_factory=lambda: _as_bool(os.getenv("CASE_INSENSITIVE_DEPARTMENTS", "true"))
    )

    # --- Advisory checks ---
    approved_suppliers: list[str] = field(
        default_factory=lambda: _env_list("APPROVED_SUPPLIERS")
    )
    department_tax_rates: Optional[dict[str, Decimal]] = None   # None -> built-in table
    default_tax_rate: Decimal = Decimal("0.07")

    # --- Output settings ---
    output_dir: Optional[Path] = field(
        default_factory=lambda: Path(os.environ["OUTPUT_DIR"]) if os.getenv("OUTPUT_DIR") else None
    )
    pretty_json: bool = True       # Indent JSON output for human readability

    # --- Agent server ---
    agent_host: str = field(default_factory=lambda: os.getenv("AGENT_HOST", "127.0.0.1"))
    agent_port: int = field(default_factory=lambda: int(os.getenv("AGENT_PORT", "5000")))

    def __post_init__(self) -> None:
        """Overlay runtime-tunable settings from pipeline_settings.json if present."""
        config_dir = Path(os.getenv("CONFIG_DIR", str(PROJECT_ROOT / "config")))
        settings_file = config_dir / "pipeline_settings.json"
        if not settings_file.exists():
            return
        _type_map = {
            "deployment_name":              str,
            "endpoint":                     str,
            "api_version":                  str,
            "llm_max_attempts":             int,
            "max_grand_total":              _as_decimal,
            "allowed_departments":          _as_list,
            "case_insensitive_departments": _as_bool,
            "approved_suppliers":           _as_list,
            "department_tax_rates":         lambda v: {str(k): _as_decimal(r) for k, r in v.items()},
            "default_tax_rate":             _as_decimal,
            "pretty_json":                  _as_bool,
        }
        try:
            with open(settings_file, encoding="utf-8") as f:
                overrides = {k: v for k, v in json.load(f).items() if not k.startswith("_")}
            for key, val in overrides.items():
                if key in _type_map and hasattr(self, key):
                    setattr(self, key, _type_map[key](val))
        except Exception as exc:
            logger.warning("Failed to load pipeline_settings.json: %s", exc)

    def llm_settings(self) -> LLMSettings:
        return LLMSettings(
            deployment_name=self.deployment_name,
            endpoint=self.endpoint,
            api_key=self.api_key,
            api_version=self.api_version,
        )

    def rule_config(self) -> RuleConfig:
        return RuleConfig(
            max_grand_total=self.max_grand_total,
            allowed_departments=self.allowed_departments,
            case_insensitive_departments=self.case_insensitive_departments,
        )

    def ensure_output_dir(self) -> None:
        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)
