"""kube-allocations CLI - resource allocations of a cluster as a tree."""

from __future__ import annotations

import logging
import sys

import click
from rich.console import Console

from kube_allocations import __version__
from kube_allocations.aggregation import GroupBy
from kube_allocations.collectors import (
    CollectionError,
    Kubectl,
    KubectlError,
    collect_resources,
)
from kube_allocations.config import (
    ConfigLoadError,
    ConfigValidationError,
    get_config,
)
from kube_allocations.renderers import CSVRenderer, OutputFormat, TableRenderer
from kube_allocations.report import build_report

console = Console()
err_console = Console(stderr=True)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
GROUP_BY_CHOICES = [g.value for g in GroupBy] + ["pod"]


def configure_logging(level: str) -> None:
    """Send logs to stderr so stdout stays clean for CSV."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


@click.command()
@click.option("--context", help="The name of the kubeconfig context to use")
@click.option("--namespace", "-n", help="Show only pods from this namespace")
@click.option(
    "--utilization", "-u", is_flag=True,
    help="Force to retrieve utilization (for cpu and memory), requires metrics-server",
)
@click.option(
    "--show-zero", "-z", is_flag=True,
    help="Show lines with zero requested and zero limit and zero allocatable",
)
@click.option(
    "--resource-name", "-r", "resource_names", multiple=True,
    help="Filter resources shown by name(s), by default all resources are listed",
)
@click.option(
    "--group-by", "-g", multiple=True,
    type=click.Choice(GROUP_BY_CHOICES, case_sensitive=False),
    help="Group information hierarchically (default: -g resource -g node -g workload)",
)
@click.option(
    "--output", "-o",
    type=click.Choice([o.value for o in OutputFormat], case_sensitive=False),
    default=None,
    help="Output format: table (default) or csv",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    help="Logging level (default: WARNING)",
)
@click.version_option(__version__, prog_name="kube-allocations")
def main(
    context: str | None,
    namespace: str | None,
    utilization: bool,
    show_zero: bool,
    resource_names: tuple[str, ...],
    group_by: tuple[str, ...],
    output: str | None,
    log_level: str,
) -> None:
    """List allocations (cpu, memory, gpu, ...) x (utilization, requested, limit, allocatable, free)."""
    configure_logging(log_level)

    try:
        config = get_config(
            context=context,
            namespace=namespace,
            utilization=utilization,
            show_zero=show_zero,
            resource_names=resource_names,
            group_by=group_by,
            output=output.lower() if output else None,
        )
    except (ConfigLoadError, ConfigValidationError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    kubectl = Kubectl(binary=config.kubectl, context=config.context, timeout=config.timeout)
    try:
        collected = collect_resources(
            kubectl, config.namespace, utilization=config.utilization
        )
    except (KubectlError, CollectionError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    rows = build_report(
        collected.resources,
        config.group_by,
        config.resource_names,
        show_zero=config.show_zero,
    )

    if config.output == OutputFormat.CSV:
        click.echo(
            CSVRenderer().render(
                rows,
                group_by=config.group_by,
                show_utilization=collected.show_utilization,
            ),
            nl=False,
        )
    elif console.is_terminal:
        TableRenderer().print_table(
            console, rows, show_utilization=collected.show_utilization
        )
    else:
        # Piped output is never squeezed to the terminal width
        click.echo(
            TableRenderer().render(rows, show_utilization=collected.show_utilization),
            nl=False,
        )


if __name__ == "__main__":
    main()
