"""On-disk record of pipeline runs.

Output structure::

    {output_dir}/{run_id}/
    ├── summary.json          PipelineRunResult.model_dump_json()
    └── steps/
        ├── build-api.log
        ├── build-frontend.log
        └── ...

``summary.json`` is the source for ``GET /api/pipeline/runs`` and for the
CI artifact upload.

Tags:
    ledger, artifacts, pipeline, json
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from tutorial_stack.deploy.results import PipelineRunResult

logger = logging.getLogger(__name__)

SUMMARY_FILE = "summary.json"


class PipelineLedger:
    """Writes and reads run summaries under *output_dir*."""

    def __init__(self, output_dir: Path | str) -> None:
        self.output_dir = Path(output_dir)

    def run_dir(self, run_id: str) -> Path:
        return self.output_dir / run_id

    def write(self, result: PipelineRunResult) -> Path:
        """Persist *result* and its step output. Returns the summary path."""
        run_dir = self.run_dir(result.run_id)
        steps_dir = run_dir / "steps"
        steps_dir.mkdir(parents=True, exist_ok=True)

        for step in result.steps:
            if not (step.command or step.stdout or step.stderr or step.error):
                continue
            lines = []
            if step.command:
                lines.append(f"$ {step.command}")
            if step.stdout:
                lines.append(step.stdout.rstrip())
            if step.stderr:
                lines += ["--- stderr ---", step.stderr.rstrip()]
            if step.error:
                lines += ["--- error ---", step.error]
            (steps_dir / f"{step.name}.log").write_text("\n".join(lines) + "\n", encoding="utf-8")

        summary = run_dir / SUMMARY_FILE
        summary.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        logger.info("ledger.written", extra={"run_id": result.run_id, "path": str(summary)})
        return summary

    def get(self, run_id: str) -> PipelineRunResult | None:
        path = self.run_dir(run_id) / SUMMARY_FILE
        if not path.is_file():
            return None
        return PipelineRunResult.model_validate_json(path.read_text(encoding="utf-8"))

    def list_runs(self, limit: int = 20) -> list[PipelineRunResult]:
        """Most recent runs first. Unreadable summaries are skipped with a warning."""
        if not self.output_dir.is_dir():
            return []
        results: list[PipelineRunResult] = []
        for path in self.output_dir.glob(f"*/{SUMMARY_FILE}"):
            try:
                results.append(PipelineRunResult.model_validate_json(path.read_text(encoding="utf-8")))
            except (OSError, PydanticValidationError) as exc:
                logger.warning("ledger.unreadable", extra={"path": str(path), "error": str(exc)})
        results.sort(key=lambda r: r.started_at, reverse=True)
        return results[:limit]


__all__ = ["PipelineLedger", "SUMMARY_FILE"]
