"""
Main pipeline orchestrator.

PurchaseOrderProcessor ties together image intake, advisory checks and the
approval rules into a single process() call:

  1. IntakeParser          -- image -> PurchaseOrderSummary (vision model)
  2. PurchaseOrderChecker  -- flag discrepancies for review
  3. ApprovalEvaluator     -- approve or reject against the rule set
  4. Write <stem>.json to the output directory (when one is configured)

process_summary() runs steps 2 and 3 only, for documents that were
extracted elsewhere; process_batch() runs process() over every image in a
directory.
"""
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from config import Config
from models.contract import PurchaseOrderSummary
from models.result import ProcessingResult
from .approval import ApprovalEvaluator
from .checks import PurchaseOrderChecker
from .intake import IMAGE_SUFFIXES, IntakeParser

logger = logging.getLogger(__name__)


class PurchaseOrderProcessor:
    """Orchestrates the purchase order pipeline."""

    def __init__(self, config: Optional[Config] = None, intake: Optional[IntakeParser] = None):
        self.config = config or Config()
        self.config.ensure_output_dir()

        self.intake = intake or IntakeParser(
            self.config.llm_settings(),
            max_attempts=self.config.llm_max_attempts,
        )
        self.rules = self.config.rule_config()
        self.evaluator = ApprovalEvaluator(self.rules)
        self.checker = PurchaseOrderChecker(
            approved_suppliers=self.config.approved_suppliers,
            department_tax_rates=self.config.department_tax_rates,
            default_tax_rate=self.config.default_tax_rate,
        )

        for issue in self.rules.configuration_issues():
            logger.warning("Approval rules look misconfigured: %s", issue)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, image_path: str | Path) -> ProcessingResult:
        """Process a single purchase order image end-to-end."""
        image_path = Path(image_path)
        logger.info("=== Processing: %s ===", image_path.name)
        start = time.monotonic()

        logger.info("Step 1/3: Extracting purchase order (model=%s)", self.intake.model)
        summary = self.intake.extract(image_path)

        result = self._evaluate(summary, str(image_path), start, llm_model=self.intake.model)
        self._save_result(result, image_path.stem)
        return result

    def process_summary(
        self,
        summary: PurchaseOrderSummary,
        source_file: str = "<inline>",
    ) -> ProcessingResult:
        """Check and evaluate a summary that has already been extracted. Nothing is written."""
        return self._evaluate(summary, source_file, time.monotonic())

    def process_batch(self, directory: str | Path) -> list[ProcessingResult]:
        """
        Process every image in *directory*.

        Files that fail are logged and skipped; the rest of the batch continues.
        """
        directory = Path(directory)
        images = sorted(p for p in directory.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)
        if not images:
            logger.warning("No purchase order images found in %s", directory)
            return []

        logger.info("Batch processing %d purchase orders from %s", len(images), directory)
        results = []
        for i, image in enumerate(images, 1):
            logger.info("[%d/%d] %s", i, len(images), image.name)
            try:
                results.append(self.process(image))
            except Exception as e:
                logger.error("Failed to process %s: %s", image.name, e, exc_info=True)

        logger.info(
            "Batch complete: %d processed, %d failed",
            len(results),
            len(images) - len(results),
        )
        self._save_batch_summary(results, len(images))
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _evaluate(
        self,
        summary: PurchaseOrderSummary,
        source_file: str,
        start: float,
        llm_model: Optional[str] = None,
    ) -> ProcessingResult:
        logger.info("Step 2/3: Running advisory checks")
        discrepancies = self.checker.check(summary)

        logger.info("Step 3/3: Evaluating approval rules")
        approval = self.evaluator.evaluate(summary)
        for issue in approval.configuration_issues:
            logger.warning("PO %s evaluated under suspect rules: %s", summary.po_number, issue)

        result = ProcessingResult(
            source_file=source_file,
            processed_at=datetime.now(timezone.utc).isoformat(),
            processing_time_seconds=round(time.monotonic() - start, 3),
            llm_model_used=llm_model,
            purchase_order=summary,
            approval=approval,
            discrepancies=discrepancies,
        )
        result.compute_summary()

        logger.info(
            "PO %s %s | grand_total=%.2f | errors=%d warnings=%d",
            summary.po_number or "(no number)",
            "APPROVED" if approval.is_approved else "REJECTED",
            summary.grand_total,
            result.error_count,
            result.warning_count,
        )
        return result

    def _dump(self, payload: dict) -> str:
        return json.dumps(payload, indent=2 if self.config.pretty_json else None)

    def _save_result(self, result: ProcessingResult, stem: str) -> None:
        if self.config.output_dir is None:
            return
        out_file = self.config.output_dir / f"{stem}.json"
        out_file.write_text(
            self._dump(result.model_dump(mode="json", by_alias=True)),
            encoding="utf-8",
        )
        logger.debug("Result written to %s", out_file)

    def _save_batch_summary(self, results: list[ProcessingResult], total: int) -> None:
        if self.config.output_dir is None:
            return
        summary = {
            "processed_at": datetime.now(timezone.utc).isoformat(),
            "total": total,
            "processed": len(results),
            "failed": total - len(results),
            "approved": sum(1 for r in results if r.approval.is_approved),
            "requires_review": sum(1 for r in results if r.requires_review),
            "results": [
                {
                    "source_file": r.source_file,
                    **r.approval.to_wire(),
                    "error_count": r.error_count,
                    "warning_count": r.warning_count,
                }
                for r in results
            ],
        }
        out_file = self.config.output_dir / "batch_summary.json"
        out_file.write_text(self._dump(summary), encoding="utf-8")
