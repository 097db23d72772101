"""GitHub Actions workflow that runs the pipeline on push.

:func:`render_ci_workflow` produces ``.github/workflows/deploy.yml``:

* triggered by pushes to the deploy branch only;
* one concurrency group per branch with ``cancel-in-progress: false``,
  so GitHub queues later pushes behind the running job instead of
  cancelling it (and keeps only the newest queued one);
* installs this package and runs ``tutorial-stack deploy run`` with the
  registry and SSH secrets mapped onto the ``TUTORIALS_*`` variables
  :class:`~tutorial_stack.deploy.config.PipelineSecrets` reads;
* uploads the run ledger as an artifact, pass or fail.
"""

from __future__ import annotations

from typing import Any

import yaml

from tutorial_stack.deploy.config import PipelineConfig

_SECRET_ENV = (
    "TUTORIALS_REGISTRY_USERNAME",
    "TUTORIALS_REGISTRY_TOKEN",
    "TUTORIALS_DEPLOY_HOST",
    "TUTORIALS_DEPLOY_USER",
    "TUTORIALS_DEPLOY_SSH_KEY",
)


def build_ci_workflow(
    config: PipelineConfig | None = None,
    *,
    python_version: str = "3.12",
    workflow_name: str = "deploy",
) -> dict[str, Any]:
    """The workflow document as a plain dict."""
    config = config or PipelineConfig()

    env = {name: f"${{{{ secrets.{name} }}}}" for name in _SECRET_ENV}
    env.update(
        {
            "TUTORIALS_PIPELINE_BRANCH": config.branch,
            "TUTORIALS_PIPELINE_REGISTRY": config.registry,
            "TUTORIALS_PIPELINE_NAMESPACE": config.namespace,
            "TUTORIALS_PIPELINE_TAG": config.tag,
            "TUTORIALS_PIPELINE_REMOTE_DIR": config.remote_dir,
            "TUTORIALS_PIPELINE_OUTPUT_DIR": str(config.output_dir),
        }
    )

    return {
        "name": workflow_name,
        "on": {"push": {"branches": [config.branch]}},
        "concurrency": {
            "group": f"{workflow_name}-{config.branch}",
            "cancel-in-progress": False,
        },
        "jobs": {
            "deploy": {
                "runs-on": "ubuntu-latest",
                "timeout-minutes": 60,
                "steps": [
                    {"uses": "actions/checkout@v4"},
                    {"uses": "actions/setup-python@v5", "with": {"python-version": python_version}},
                    {"name": "Install tutorial-stack", "run": "pip install ."},
                    {
                        "name": "Build, publish and deploy",
                        "run": 'tutorial-stack deploy run --ref "$GITHUB_REF" --commit "$GITHUB_SHA"',
                        "env": env,
                    },
                    {
                        "name": "Upload pipeline ledger",
                        "if": "always()",
                        "uses": "actions/upload-artifact@v4",
                        "with": {"name": "pipeline-runs", "path": str(config.output_dir)},
                    },
                ],
            }
        },
    }


def render_ci_workflow(
    config: PipelineConfig | None = None,
    *,
    python_version: str = "3.12",
    workflow_name: str = "deploy",
) -> str:
    """Workflow YAML, ready for ``.github/workflows/<name>.yml``."""
    document = build_ci_workflow(config, python_version=python_version, workflow_name=workflow_name)
    header = "# Generated by `tutorial-stack deploy workflow`\n\n"
    return header + yaml.safe_dump(document, default_flow_style=False, sort_keys=False, width=120)


__all__ = ["build_ci_workflow", "render_ci_workflow"]
