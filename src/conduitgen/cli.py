"""
Command-line interface for conduitgen.

Commands:
- route: Build every route in a project file and print a run summary
- validate: Check a project file for problems before routing
- deduct: Look up bend deduct data
- offset: Offset spacing, shrink and layout marks

Usage:
    conduitgen route project.yaml --csv schedule.csv
    conduitgen validate project.yaml
    conduitgen deduct 3/4 45
    conduitgen offset 6 30 --distance 40
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
import yaml

from . import __version__
from .config import ProjectConfig
from .routing.auto_route import AutoRouteService
from .routing.smart_bend import SmartBendService
from .schedule.run_schedule import RunScheduleService
from .schedule.spool import SpoolManager


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool):
    """conduitgen - electrical conduit routing and bending."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_project(project_file: Path) -> ProjectConfig:
    try:
        return ProjectConfig.from_yaml(project_file)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        click.echo(f"Error loading project: {e}", err=True)
        raise SystemExit(1) from None


@cli.command()
@click.argument("project_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--csv", "csv_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the run schedule to this CSV file.",
)
@click.option(
    "--spool", "spool_name",
    default=None,
    help="Group all routed runs into a spool with this name and print its sheet.",
)
def route(project_file: Path, csv_path: Path | None, spool_name: str | None):
    """
    Build every route in a project file.

    Example:
        conduitgen route project.yaml --csv schedule.csv
    """
    config = _load_project(project_file)
    store = config.build_store()
    try:
        bends = config.build_bend_service()
        runs = config.route_all(store, bends)
    except (OSError, ValueError) as e:
        click.echo(f"Routing failed: {e}", err=True)
        raise SystemExit(1) from None

    click.echo(f"\nProject: {config.name or project_file.stem}")
    click.echo("-" * 50)
    if not runs:
        click.echo("No routes defined.")

    rise_drops = AutoRouteService(store, bends)
    for run in runs:
        length = run.compute_total_length(store)
        vertical = rise_drops.detect_rise_drops(run)
        click.echo(
            f"{run.run_id}  {run.metadata.get('route', '')}: "
            f"{len(run.segment_ids)} segments, {len(run.fitting_ids)} fittings, "
            f"{length:.2f} ft, {run.trade_size}\" {run.material.value}"
        )
        for info in vertical:
            kind = "rise" if info.is_rise else "drop"
            click.echo(f"    {kind} {info.vertical_distance:.2f} ft at {_format_point(info.location)}")

    schedule = RunScheduleService(store, bends)
    if csv_path:
        schedule.write_schedule_csv(csv_path)
        click.echo(f"\nSchedule saved to: {csv_path}")

    if spool_name:
        spools = SpoolManager(store)
        spool = spools.create_spool([run.id for run in runs], spool_name)
        click.echo()
        click.echo(spools.export_spool_sheet_csv(spool), nl=False)


@cli.command()
@click.argument("project_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(project_file: Path):
    """
    Validate a project file.

    Checks route waypoints, conduit type references, trade sizes, the bend
    table path, and reports overlapping fitting rules.

    Example:
        conduitgen validate project.yaml
    """
    click.echo(f"\nValidating: {project_file}")
    click.echo("-" * 50)

    config = _load_project(project_file)
    errors = []
    warnings = []

    types = {t.id: t for t in config.conduit_types}
    for conduit_type in config.conduit_types:
        for i, j in conduit_type.overlapping_rules():
            warnings.append(f"[{conduit_type.id}] Routing rules {i} and {j} overlap; rule {i} wins")

    if config.bend_table and not config.resolve_path(config.bend_table).exists():
        errors.append(f"Bend table not found: {config.bend_table}")

    for route_config in config.routes:
        if len(route_config.waypoints) < 2:
            errors.append(f"[{route_config.name}] Needs at least two waypoints")
        conduit_type = types.get(route_config.conduit_type)
        if route_config.conduit_type and conduit_type is None:
            warnings.append(
                f"[{route_config.name}] Unknown conduit type '{route_config.conduit_type}', default will be used"
            )
        if conduit_type and conduit_type.size_settings.get_size(route_config.trade_size) is None:
            warnings.append(
                f"[{route_config.name}] Trade size {route_config.trade_size} not in type "
                f"'{conduit_type.id}', first size will be used"
            )
        if route_config.voxel_size <= 0:
            errors.append(f"[{route_config.name}] voxel_size must be positive")

    if errors:
        click.echo("\nErrors:")
        for e in errors:
            click.echo(f"  - {e}")

    if warnings:
        click.echo("\nWarnings:")
        for w in warnings:
            click.echo(f"  - {w}")

    if not errors and not warnings:
        click.echo("Project is valid.")
        click.echo(f"  Conduit types: {len(config.conduit_types)}")
        click.echo(f"  Routes: {len(config.routes)}")

    if errors:
        raise SystemExit(1)


@cli.command()
@click.argument("trade_size")
@click.argument("angle", type=float)
@click.option(
    "--table",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Bend table CSV (default: built-in EMT table).",
)
def deduct(trade_size: str, angle: float, table: Path | None):
    """
    Look up bend data for a trade size and angle.

    Example:
        conduitgen deduct 1/2 67.5
    """
    bends = SmartBendService()
    if table:
        bends.load_from_file(table)

    entry = bends.lookup_deduct(trade_size, angle)
    if entry is None:
        click.echo(f"No bend data for trade size {trade_size}", err=True)
        raise SystemExit(1)

    click.echo(f"Trade size:  {entry.trade_size}")
    click.echo(f"Angle:       {entry.angle_degrees:.1f}°")
    click.echo(f"Bend radius: {entry.bend_radius:.3f} in")
    click.echo(f"Deduct:      {entry.deduct_inches:.3f} in")
    click.echo(f"Tangent:     {entry.tangent_length_inches:.3f} in")
    click.echo(f"Gain:        {entry.gain_inches:.3f} in")


@cli.command()
@click.argument("depth", type=float)
@click.argument("angle", type=float)
@click.option(
    "--distance",
    type=float,
    default=None,
    help="Distance to the obstruction (in) to lay out bend marks.",
)
def offset(depth: float, angle: float, distance: float | None):
    """
    Offset spacing and shrink for DEPTH inches at ANGLE degrees.

    Example:
        conduitgen offset 6 30 --distance 40
    """
    bends = SmartBendService()
    try:
        spacing = bends.calculate_offset_spacing(depth, angle)
        shrink = bends.calculate_offset_shrink(depth, angle)
        marks = None
        if distance is not None:
            marks = bends.calculate_offset_marks_toward_obstruction(distance, depth, angle)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None

    click.echo(f"Spacing: {spacing:.3f} in")
    click.echo(f"Shrink:  {shrink:.3f} in")
    if marks is not None:
        click.echo(f"First mark:  {marks.first_mark:.3f} in")
        click.echo(f"Second mark: {marks.second_mark:.3f} in")


def _format_point(p) -> str:
    """Format a point for display."""
    return f"({p.x:.2f}, {p.y:.2f}, {p.z:.2f})"


if __name__ == "__main__":
    cli()
