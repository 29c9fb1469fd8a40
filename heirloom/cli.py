"""
Command-Line Interface for Heirloom.

Purpose
-------
Runs household wealth projections from a profile file without writing
Python code.

Commands
--------
- project: Full projection (extinction year, inheritance, scenarios)
- validate: Check a profile file and report the first invalid field
- life-expectancy: Actuarial life expectancy for one person

Example Usage
-------------
    # Project a household with 2,000 Monte Carlo runs
    $ heirloom project household.json --paths 2000 --seed 42

    # Save the full result bundle as JSON
    $ heirloom project household.json -o results/bundle.json

    # Validate a profile
    $ heirloom validate household.json

    # Show version
    $ heirloom --version
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click

from .constants import EDUCATION_ADJUSTMENTS, HEALTH_ADJUSTMENTS, INCOME_ADJUSTMENTS
from .exceptions import HeirloomError, ProfileValidationError


# Lazy imports for performance
def _import_rich():
    """Lazy import Rich for better startup time."""
    try:
        from rich.console import Console
        from rich.table import Table
        from rich.panel import Panel
        return Console(), Table, Panel
    except ImportError:
        return None, None, None


def _get_console():
    """Get Rich console or fallback to basic printing."""
    console, *_ = _import_rich()
    return console


# Version
__version__ = "0.1.0"


def _format_year(year: Optional[int]) -> str:
    return "beyond horizon" if year is None else str(year)


@click.group()
@click.version_option(version=__version__, prog_name="heirloom")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def main(ctx: click.Context, quiet: bool) -> None:
    """
    Heirloom - Household Wealth Extinction Projection.

    Projects when a household's wealth runs out, what passes to children
    and grandchildren, and which factors erode it the most.

    Use 'heirloom COMMAND --help' for command-specific help.
    """
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["console"] = _get_console()


@main.command()
@click.argument("profile", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--horizon", "-T",
    type=int,
    default=None,
    help="Projection horizon in years (default: 75)"
)
@click.option(
    "--paths", "-n",
    type=int,
    default=None,
    help="Number of Monte Carlo runs (default: HEIRLOOM_DEFAULT_PATHS or 1000)"
)
@click.option(
    "--seed", "-s",
    type=int,
    default=None,
    help="Random seed for reproducibility"
)
@click.option(
    "--deterministic",
    is_flag=True,
    help="Disable return noise and random life events"
)
@click.option(
    "--no-outlooks",
    is_flag=True,
    help="Skip market, inflation and healthcare outlooks"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the result bundle to this JSON file"
)
@click.pass_context
def project(
    ctx: click.Context,
    profile: Path,
    horizon: Optional[int],
    paths: Optional[int],
    seed: Optional[int],
    deterministic: bool,
    no_outlooks: bool,
    output: Optional[Path],
) -> None:
    """
    Run a comprehensive projection for a household profile.

    Example:
        heirloom project household.json -n 2000 --seed 42
    """
    console = ctx.obj.get("console")
    quiet = ctx.obj.get("quiet", False)

    # Import here to avoid slow startup
    import pydantic

    from .config import AppSettings, RunConfig
    from .constants import DEFAULT_HORIZON_YEARS
    from .integrator import ComprehensiveProjection
    from .logging_utils import configure_logging
    from .serialization import load_profile_json, save_bundle

    settings = AppSettings()
    configure_logging("WARNING" if quiet else settings.effective_log_level)

    try:
        household = load_profile_json(profile)
    except ProfileValidationError as e:
        click.echo(f"Invalid profile: {e}", err=True)
        sys.exit(1)
    except (OSError, json.JSONDecodeError) as e:
        click.echo(f"Error loading profile: {e}", err=True)
        sys.exit(1)

    try:
        config = RunConfig(
            horizon_years=horizon if horizon is not None else DEFAULT_HORIZON_YEARS,
            n_paths=paths if paths is not None else settings.default_paths,
            seed=seed if seed is not None else settings.default_seed,
            stochastic=not deterministic,
            include_outlooks=not no_outlooks,
        )
    except pydantic.ValidationError as e:
        click.echo(f"Invalid run options: {e}", err=True)
        sys.exit(1)

    if not quiet and console:
        console.print(
            f"[bold]Projecting {config.n_paths:,} runs over {config.horizon_years} years...[/bold]"
        )

    try:
        bundle = ComprehensiveProjection(config).run(household)
    except HeirloomError as e:
        click.echo(f"Error during projection: {e}", err=True)
        sys.exit(1)

    stats = bundle.scenarios.statistics
    rows = [
        ("Current Wealth", f"{bundle.current_wealth:,.0f}"),
        ("Extinction Year", _format_year(bundle.extinction_year)),
        ("Years Remaining", "-" if bundle.years_remaining is None else str(bundle.years_remaining)),
        ("Best Case", str(bundle.scenarios.best_case.extinction_year)),
        ("Most Likely", str(bundle.scenarios.most_likely.extinction_year)),
        ("Worst Case", str(bundle.scenarios.worst_case.extinction_year)),
        ("95% Interval", f"{stats.interval_95[0]:.0f} - {stats.interval_95[1]:.0f}"),
        ("Per-Child Inheritance", f"{bundle.per_child_inheritance:,.0f}"),
        ("Grandchildren Inheritance", f"{bundle.grandchildren_inheritance:,.0f}"),
        ("Protected Extinction Year", _format_year(bundle.protected.extinction_year)),
        ("Complexity Score", f"{bundle.complexity.score:.1f}"),
        ("Tail Risk", f"{bundle.tail_risk.assessment} (VaR 99% {bundle.tail_risk.var_99:.1%})"),
        ("Life Expectancy", f"{bundle.longevity.life_expectancy:.1f}"),
        ("Seed", str(bundle.seed)),
    ]

    if console and not quiet:
        from rich.table import Table

        table = Table(title="Wealth Projection", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        for label, value in rows:
            table.add_row(label, value)
        console.print(table)

        if bundle.wealth_destroyers:
            destroyers = Table(title="Top Wealth Destroyers", show_header=True)
            destroyers.add_column("Factor", style="cyan")
            destroyers.add_column("Impact", style="red", justify="right")
            destroyers.add_column("Share", justify="right")
            for d in bundle.wealth_destroyers:
                destroyers.add_row(d.factor, f"{d.impact:,.0f}", f"{d.relative_impact:.0%}")
            console.print(destroyers)

        actions = Table(title="Immediate Actions", show_header=True)
        actions.add_column("Priority", style="cyan")
        actions.add_column("Action")
        actions.add_column("Deadline", justify="right")
        for a in bundle.recommendations.immediate:
            actions.add_row(a.priority, a.action, f"{a.deadline_days} days")
        console.print(actions)
    else:
        for label, value in rows:
            click.echo(f"{label}: {value}")

    if output:
        save_bundle(bundle, output)
        if not quiet:
            click.echo(f"Results saved to {output}")


@main.command()
@click.argument("profile", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def validate(ctx: click.Context, profile: Path) -> None:
    """
    Validate a household profile file.

    Example:
        heirloom validate household.json
    """
    console = ctx.obj.get("console")
    quiet = ctx.obj.get("quiet", False)

    from .serialization import load_profile_json

    try:
        household = load_profile_json(profile)
    except ProfileValidationError as e:
        if console:
            console.print(f"[red]Invalid profile[/red] ({e.field}): {e.message}")
        else:
            click.echo(f"Invalid profile ({e.field}): {e.message}", err=True)
        sys.exit(1)
    except (OSError, json.JSONDecodeError) as e:
        click.echo(f"Error loading profile: {e}", err=True)
        sys.exit(1)

    if quiet:
        return

    summary = [
        f"Age: {household.age}",
        f"Net worth: {household.net_worth:,.0f}",
        f"Annual income: {household.annual_income:,.0f}",
        f"Children: {len(household.children)}",
        f"Parents: {len(household.family_care.parents)}",
        f"Siblings: {len(household.family_care.siblings)}",
    ]
    if console:
        from rich.panel import Panel
        console.print(Panel("\n".join(summary), title="[green]Profile is valid[/green]"))
    else:
        click.echo("Profile is valid")
        for line in summary:
            click.echo(line)


@main.command("life-expectancy")
@click.option("--age", type=click.IntRange(18, 100), required=True, help="Current age")
@click.option(
    "--gender",
    type=click.Choice(["male", "female"]),
    default="male",
    help="Gender for the base life table"
)
@click.option(
    "--health",
    type=click.Choice(list(HEALTH_ADJUSTMENTS)),
    default="good",
)
@click.option(
    "--income",
    type=click.Choice(list(INCOME_ADJUSTMENTS)),
    default="middle",
)
@click.option(
    "--education",
    type=click.Choice(list(EDUCATION_ADJUSTMENTS)),
    default="bachelors",
)
@click.pass_context
def life_expectancy(
    ctx: click.Context,
    age: int,
    gender: str,
    health: str,
    income: str,
    education: str,
) -> None:
    """
    Estimate adjusted life expectancy.

    Example:
        heirloom life-expectancy --age 35 --gender female --health excellent
    """
    from .actuarial import ActuarialModel

    model = ActuarialModel()
    try:
        expectancy = model.life_expectancy(age, gender, health, income, education)
    except HeirloomError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Life expectancy: {expectancy:.1f} years")
    if not ctx.obj.get("quiet", False):
        click.echo(f"Expected remaining years: {expectancy - age:.1f}")


if __name__ == "__main__":
    main()
