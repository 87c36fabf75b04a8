"""
laneci controller - run a pipeline from a repository checkout.
"""

import asyncio
import logging
import os
import sys
from typing import Optional

import click

from controller.src.config import get_settings
from controller.src.k8s.client import init_k8s_client, ensure_namespace
from controller.src.k8s.runner import KubernetesJobRunner
from controller.src.models.run import PipelineRun, RunStatus
from controller.src.services.executor import PipelineExecutor
from controller.src.services.pipeline_parser import (
    PipelineConfigError,
    load_pipeline_config,
    parse_pipeline_config,
)
from controller.src.services.scheduler import SchedulingError

logger = logging.getLogger(__name__)

def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

async def run_pipeline(executor: PipelineExecutor, definition, workspace: str) -> PipelineRun:
    run_id = await executor.execute_pipeline(
        definition,
        workspace,
        trigger={"type": "cli", "payload": {"workspace": workspace}},
    )
    return await executor.wait_for_run(run_id)

def print_summary(run: PipelineRun):
    click.echo(f"Pipeline '{run.pipeline_name}' ({run.id}): {run.status.value}")
    for step in run.steps:
        line = f"  {step.name}: {step.status.value}"
        if step.error:
            line += f" - {step.error}"
        click.echo(line)

@click.command()
@click.argument("workspace", type=click.Path(exists=True, file_okay=False))
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Pipeline file to use instead of the one found in WORKSPACE.")
@click.option("--log-level", default=None, help="Logging level (default from settings).")
def main(workspace: str, config_path: Optional[str], log_level: Optional[str]):
    """Run the pipeline defined in WORKSPACE."""
    settings = get_settings()
    configure_logging(log_level or settings.log_level)
    workspace = os.path.abspath(workspace)

    try:
        if config_path:
            with open(config_path, "r") as f:
                definition = parse_pipeline_config(f.read())
        else:
            definition = load_pipeline_config(workspace)
    except PipelineConfigError as e:
        raise click.ClickException(f"Invalid pipeline configuration: {e}")

    if definition is None:
        raise click.ClickException(f"No pipeline configuration found in {workspace}")

    logger.info("Starting laneci controller")
    logger.info(f"Kubernetes namespace: {settings.k8s_namespace}")

    if not init_k8s_client():
        raise click.ClickException("Failed to initialize Kubernetes client")

    try:
        ensure_namespace()
    except Exception as e:
        raise click.ClickException(f"Failed to ensure namespace: {e}")

    executor = PipelineExecutor(KubernetesJobRunner())
    try:
        run = asyncio.run(run_pipeline(executor, definition, workspace))
    except SchedulingError as e:
        raise click.ClickException(str(e))

    print_summary(run)
    if run.status != RunStatus.COMPLETED:
        sys.exit(1)

if __name__ == "__main__":
    main()
