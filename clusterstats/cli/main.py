#!/usr/bin/env python3
"""
Main CLI Entry Point for clusterstats.

Loads a cluster snapshot, populates its balance statistics and prints them
as a rich table, JSON or the fixed-width text rendering.
"""

import sys
from pathlib import Path

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from ..core.cluster_model_stats import (
    LEADER_REPLICAS,
    POTENTIAL_NW_OUT,
    REPLICAS,
    TOPIC_REPLICAS,
    ClusterModelStats,
)
from ..core.config import StatsSettings, load_settings
from ..core.logging import configure_logging
from ..core.model import ClusterStatsError
from ..core.serialization import load_cluster_model
from ..datastructures.resource import Resource, Statistic
from ..timer import Timer

console = Console()


def setup_logging(settings: StatsSettings, verbose: bool = False) -> None:
    """Setup logging configuration."""
    configure_logging(
        "DEBUG" if verbose else settings.log_level,
        debug_scopes=settings.log_debug_scopes,
        colorize=settings.log_colorize,
    )


def _parse_resource_overrides(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> dict[Resource, float]:
    overrides: dict[Resource, float] = {}
    for item in values:
        name, sep, number = item.partition("=")
        if not sep:
            raise click.BadParameter(f"expected RESOURCE=VALUE, got {item!r}")
        try:
            overrides[Resource.from_name(name)] = float(number)
        except ValueError as e:
            raise click.BadParameter(str(e)) from e
    return overrides


def display_stats_table(stats: ClusterModelStats) -> None:
    """Display populated statistics in rich tables."""
    console.print(
        f"[bold]{stats.to_string_counts()}[/bold] "
        f"{stats.num_alive_brokers} alive, "
        f"{stats.num_partitions_with_offline_replicas} partitions with offline "
        f"replicas, {stats.monitored_partitions_percentage:.1f}% partitions "
        f"monitored over {stats.num_snapshot_windows} windows",
        highlight=False,
    )

    table = Table(title="Cluster Balance Statistics")
    table.add_column("Metric", style="cyan", no_wrap=True)
    for stat in Statistic:
        table.add_column(stat.stat, justify="right")

    for resource in Resource:
        table.add_row(
            resource.resource,
            *(
                f"{stats.resource_utilization_stats[stat][resource]:.3f}"
                for stat in Statistic
            ),
        )
    table.add_row(
        POTENTIAL_NW_OUT,
        *(
            f"{stats.potential_nw_out_utilization_stats[stat]:.3f}"
            for stat in Statistic
        ),
    )
    for name, values in (
        (REPLICAS, stats.replica_stats),
        (LEADER_REPLICAS, stats.leader_replica_stats),
        (TOPIC_REPLICAS, stats.topic_replica_stats),
    ):
        table.add_row(name, *(_format_count(values[stat]) for stat in Statistic))
    console.print(table)

    balance = Table(title="Balanced Brokers")
    balance.add_column("Resource", style="cyan", no_wrap=True)
    balance.add_column("Balanced", justify="right")
    for resource, count in stats.num_balanced_brokers_by_resource.items():
        balance.add_row(
            resource.resource, _format_ratio(count, stats.num_alive_brokers)
        )
    balance.add_row(
        f"{POTENTIAL_NW_OUT} under threshold",
        _format_ratio(
            stats.num_brokers_under_potential_nw_out, stats.num_alive_brokers
        ),
    )
    console.print(balance)


def _format_count(value: int | float) -> str:
    return str(value) if isinstance(value, int) else f"{value:.3f}"


def _format_ratio(count: int, total: int) -> str:
    style = "green" if count == total else "yellow"
    return f"[{style}]{count}/{total}[/{style}]"


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Settings file (.toml or .json)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: Path | None):
    """
    clusterstats CLI.

    Measure how evenly resource load, replicas and leadership are spread
    across the brokers of a cluster snapshot.
    """
    try:
        settings = load_settings(config) if config else StatsSettings()
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Invalid settings file {config}: {e}") from e
    setup_logging(settings, verbose)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument(
    "snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["table", "json", "text"]),
    default="table",
    help="Output format",
)
@click.option(
    "--balance-percentage",
    "-b",
    multiple=True,
    metavar="RESOURCE=VALUE",
    callback=_parse_resource_overrides,
    help="Override a resource balance percentage (e.g. cpu=1.2)",
)
@click.option(
    "--capacity-threshold",
    "-t",
    multiple=True,
    metavar="RESOURCE=VALUE",
    callback=_parse_resource_overrides,
    help="Override a resource capacity threshold (e.g. nw_out=0.7)",
)
@click.pass_context
def stats(
    ctx: click.Context,
    snapshot: Path,
    output: str,
    balance_percentage: dict[Resource, float],
    capacity_threshold: dict[Resource, float],
):
    """Compute balance statistics of a cluster snapshot."""
    settings: StatsSettings = ctx.obj["settings"]
    try:
        constraint = settings.balancing_constraint.with_overrides(
            balance_percentages=balance_percentage,
            capacity_thresholds=capacity_threshold,
        )
    except ValueError as e:
        raise click.ClickException(f"Invalid balancing constraint: {e}") from e

    try:
        cluster_model = load_cluster_model(snapshot)
        with Timer("populate"):
            cluster_stats = ClusterModelStats().populate(cluster_model, constraint)
    except ClusterStatsError as e:
        raise click.ClickException(str(e)) from e
    except (KeyError, ValueError) as e:
        logger.debug("Rejected snapshot {}: {!r}", snapshot, e)
        raise click.ClickException(f"Invalid cluster snapshot {snapshot}: {e}") from e

    if output == "table":
        display_stats_table(cluster_stats)
    elif output == "json":
        click.echo(cluster_stats.to_json())
    elif output == "text":
        click.echo(str(cluster_stats))


def main():
    """Main CLI entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
