"""CLI for the healthagg daily health engine."""

import asyncio
import json
import logging
from datetime import date

import click


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _parse_end_date(value: str | None) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}", param_hint="--end-date")


def _load_settings(path: str | None):
    from healthagg.config import EngineSettings, load_settings

    if path is None:
        return EngineSettings()
    try:
        return load_settings(path)
    except (ValueError, TypeError) as e:
        raise click.ClickException(str(e))


def _load_variant(name: str | None, variants_file: str | None, settings):
    from healthagg.engine.variants import get_variant, load_variants
    from healthagg.errors import InvalidVariantConfiguration

    try:
        registry = load_variants(variants_file) if variants_file else None
        return get_variant(name or settings.default_variant, registry)
    except InvalidVariantConfiguration as e:
        raise click.ClickException(str(e))
    except KeyError as e:
        raise click.ClickException(e.args[0])


def _refresh(end_date: str | None, length: int | None, nutrition: str | None,
             activity: str | None, labs: str | None, settings):
    from healthagg.engine.window import Stores, build_window
    from healthagg.sources.jsonfile import (
        JsonActivityStore,
        JsonLabPanelStore,
        JsonNutritionStore,
    )

    stores = Stores(
        nutrition=JsonNutritionStore(nutrition) if nutrition else None,
        activity=JsonActivityStore(activity) if activity else None,
        labs=JsonLabPanelStore(labs) if labs else None,
    )
    return asyncio.run(build_window(_parse_end_date(end_date), length, stores, settings))


def _echo_warnings(window) -> None:
    for w in window.warnings:
        click.echo(f"  warning: {w.source}: {w.message}", err=True)


def source_options(f):
    """Options shared by every command that refreshes a window."""
    f = click.option("--verbose", "-v", is_flag=True, help="Debug logging.")(f)
    f = click.option("--settings", "settings_file", default=None,
                     type=click.Path(exists=True), help="Engine settings JSON.")(f)
    f = click.option("--days", "-n", default=None, type=click.IntRange(min=1),
                     help="Window length in days (default from settings: 7).")(f)
    f = click.option("--end-date", "-e", default=None, help="Last day of the window (default today).")(f)
    f = click.option("--labs", "-l", default=None, help="Lab panels JSON file.")(f)
    f = click.option("--activity", "-a", default=None, help="Activity events JSON file.")(f)
    f = click.option("--nutrition", "-N", default=None, help="Nutrition logs JSON file.")(f)
    return f


@click.group()
def main() -> None:
    """healthagg: daily health aggregation and scoring."""


@main.command("window")
@source_options
def window_cmd(nutrition: str | None, activity: str | None, labs: str | None,
               end_date: str | None, days: int | None, settings_file: str | None,
               verbose: bool) -> None:
    """Build the daily window and print it as JSON."""
    _setup_logging(verbose)
    settings = _load_settings(settings_file)
    window = _refresh(end_date, days, nutrition, activity, labs, settings)
    _echo_warnings(window)
    click.echo(window.to_json())


@main.command("score")
@source_options
@click.option("--variant", "-s", default=None, help="Scoring variant name.")
@click.option("--variants-file", default=None, type=click.Path(exists=True),
              help="JSON file of scoring variants.")
def score_cmd(nutrition: str | None, activity: str | None, labs: str | None,
              end_date: str | None, days: int | None, settings_file: str | None,
              verbose: bool, variant: str | None, variants_file: str | None) -> None:
    """Score every day of the window."""
    from healthagg.engine.scoring import score_window

    _setup_logging(verbose)
    settings = _load_settings(settings_file)
    chosen = _load_variant(variant, variants_file, settings)
    window = _refresh(end_date, days, nutrition, activity, labs, settings)
    _echo_warnings(window)

    click.echo(f"\n{'=' * 60}")
    click.echo(f"  Scores ({chosen.name}): {window.start_date} .. {window.end_date}")
    click.echo(f"{'=' * 60}")
    for result in score_window(window, chosen):
        parts = ", ".join(f"{k} {v:.0f}" for k, v in result.components.items())
        click.echo(f"  {result.date.isoformat()}  {result.total:3d}/100  ({parts})")
    click.echo(f"{'=' * 60}")


@main.command("averages")
@source_options
def averages_cmd(nutrition: str | None, activity: str | None, labs: str | None,
                 end_date: str | None, days: int | None, settings_file: str | None,
                 verbose: bool) -> None:
    """Rolling averages over the window (zero days excluded)."""
    from healthagg.engine.averager import activity_summary, nutrition_summary

    _setup_logging(verbose)
    settings = _load_settings(settings_file)
    window = _refresh(end_date, days, nutrition, activity, labs, settings)
    _echo_warnings(window)

    nut = nutrition_summary(window)
    act = activity_summary(window)
    click.echo(f"  Calories in:   {nut['avg_calories']} kcal/day")
    click.echo(f"  Protein:       {nut['avg_protein']} g/day")
    click.echo(f"  Carbs:         {nut['avg_carbs']} g/day")
    click.echo(f"  Fat:           {nut['avg_fat']} g/day")
    click.echo(f"  Fiber:         {nut['avg_fiber']} g/day")
    click.echo(f"  Active days:   {act['active_days']}/{len(window)}")
    click.echo(f"  Heart rate:    {act['avg_heart_rate']} bpm")
    click.echo(f"  Calories out:  {act['avg_calories_burned']} kcal/day")
    click.echo(f"  Workout time:  {act['avg_workout_minutes']} min/day")


@main.command("context")
@source_options
@click.option("--variant", "-s", default=None, help="Scoring variant name.")
@click.option("--variants-file", default=None, type=click.Path(exists=True),
              help="JSON file of scoring variants.")
@click.option("--output", "-o", default=None, help="Write the payload to a file.")
def context_cmd(nutrition: str | None, activity: str | None, labs: str | None,
                end_date: str | None, days: int | None, settings_file: str | None,
                verbose: bool, variant: str | None, variants_file: str | None,
                output: str | None) -> None:
    """Print the assistant context payload as JSON."""
    from healthagg.engine.context import build_context, context_json

    _setup_logging(verbose)
    settings = _load_settings(settings_file)
    chosen = _load_variant(variant, variants_file, settings)
    window = _refresh(end_date, days, nutrition, activity, labs, settings)
    _echo_warnings(window)

    text = context_json(build_context(window, chosen))
    if output:
        with open(output, "w") as f:
            f.write(text)
        click.echo(f"Context written to {output}")
    else:
        click.echo(text)


@main.command("variants")
@click.option("--variants-file", default=None, type=click.Path(exists=True),
              help="Validate and list variants from this file instead.")
def variants_cmd(variants_file: str | None) -> None:
    """List scoring variants."""
    from healthagg.engine.variants import BUILTIN_VARIANTS, load_variants
    from healthagg.errors import InvalidVariantConfiguration

    try:
        registry = load_variants(variants_file) if variants_file else BUILTIN_VARIANTS
    except InvalidVariantConfiguration as e:
        raise click.ClickException(str(e))

    for name, v in registry.items():
        click.echo(f"{name}: {v.description}" if v.description else name)
        click.echo(json.dumps(v.to_dict()["components"], indent=2))


if __name__ == "__main__":
    main()
