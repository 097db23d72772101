"""Deployment tooling for the tutorial stack.

Everything needed to go from a push on the deploy branch to new
containers running on the host:

Key Concepts:
    PipelineConfig / PipelineSecrets: Pydantic models, ``from_env()``
        factories, secrets held as ``SecretStr``.
    ServiceSpec: Frozen dataclass for each of the four stack services.
    generate_stack_compose / check_compose_contract: the compose file the
        host runs, and the rules it must satisfy.
    PipelineRunner: build -> publish -> deploy, fail-fast.
    PipelineCoordinator: single-flight runs with a coalescing backlog.
    PipelineLedger: ``{output_dir}/{run_id}/summary.json`` per run.
    render_ci_workflow: GitHub Actions workflow that runs the pipeline.

Architecture Decisions:
    - subprocess-only: ``docker`` and ``ssh`` CLIs, no SDKs.
    - Pydantic v2 for config and results: ``from_env()``,
      ``model_dump_json()`` and type-safe validation.
    - Frozen dataclasses for service specs: an immutable registry.

Related Modules:
    - :mod:`tutorial_stack.cli.deploy` - CLI commands (``tutorial-stack deploy``)
    - :mod:`tutorial_stack.api.routers.pipeline` - push webhook
"""

from tutorial_stack.deploy.ci import render_ci_workflow
from tutorial_stack.deploy.compose import (
    check_compose_contract,
    generate_stack_compose,
    startup_order,
    write_compose_file,
)
from tutorial_stack.deploy.config import PipelineConfig, PipelineSecrets
from tutorial_stack.deploy.ledger import PipelineLedger
from tutorial_stack.deploy.pipeline import PipelineRunner, pipeline_for_events
from tutorial_stack.deploy.results import PipelineRunResult, PipelineState, StepResult, StepStatus
from tutorial_stack.deploy.services import SERVICES, ServiceSpec
from tutorial_stack.deploy.trigger import PipelineCoordinator, PushEvent, TriggerDecision

__all__ = [
    "PipelineConfig",
    "PipelineSecrets",
    "ServiceSpec",
    "SERVICES",
    "generate_stack_compose",
    "startup_order",
    "check_compose_contract",
    "write_compose_file",
    "PipelineRunner",
    "pipeline_for_events",
    "PipelineRunResult",
    "PipelineState",
    "StepResult",
    "StepStatus",
    "PipelineLedger",
    "PipelineCoordinator",
    "PushEvent",
    "TriggerDecision",
    "render_ci_workflow",
]
