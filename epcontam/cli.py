"""CLI for epcontam."""

import sys
from pathlib import Path

import click

from epcontam.constants import assumed_constants
from epcontam.elements import derive_airflow_element
from epcontam.settings import KNOWN_LEAKAGE_DESCRIPTORS, contam_settings


@click.group()
def cli():
    """CLI for epcontam."""
    pass


@cli.command(help="Translate an EnergyPlus IDF into a CONTAM project file.")
@click.argument(
    "idf_path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.argument("output_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--leakage",
    type=click.Choice(KNOWN_LEAKAGE_DESCRIPTORS, case_sensitive=False),
    default=None,
    help="Envelope tightness grade used to pick the template airflow elements.",
)
@click.option(
    "--leakage-rate",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Leakage rate [m3/h at 75 Pa] to derive custom airflow elements from.",
)
@click.option(
    "--no-hvac", is_flag=True, default=False, help="Skip translating air loops."
)
@click.option(
    "--sql",
    "sql_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="EnergyPlus SQLite results used for system flows.",
)
@click.option("--wind-speed", type=float, default=None, help="Steady wind speed [m/s].")
@click.option(
    "--wind-direction", type=float, default=0.0, help="Steady wind direction [deg]."
)
@click.option("--progress", is_flag=True, default=False, help="Show progress bars.")
def translate(
    idf_path: Path,
    output_path: Path,
    leakage: str | None,
    leakage_rate: float | None,
    no_hvac: bool,
    sql_path: Path | None,
    wind_speed: float | None,
    wind_direction: float,
    progress: bool,
):
    """Translate an IDF into a CONTAM project file."""
    from archetypal.idfclass import IDF

    from epcontam.idf_source import SqlResults, building_model_from_idf
    from epcontam.progress import TqdmProgress
    from epcontam.translator import NetworkAssembler

    if leakage is not None and leakage_rate is not None:
        click.echo("Error: --leakage and --leakage-rate are exclusive", err=True)
        sys.exit(1)

    idf = IDF(idf_path.as_posix(), prep_outputs=False)
    results = SqlResults(sql_path) if sql_path is not None else None
    model = building_model_from_idf(idf, results=results)

    assembler = NetworkAssembler()
    if wind_speed is not None:
        assembler.set_steady_weather(wind_speed, wind_direction)
    observer = TqdmProgress() if progress else None
    kwargs = {}
    if leakage_rate is not None:
        kwargs["leakage_rate"] = leakage_rate
    elif leakage is not None:
        kwargs["leakage_descriptor"] = leakage.capitalize()
    ok = assembler.translate(
        model,
        include_hvac=contam_settings.include_hvac and not no_hvac,
        progress=observer,
        **kwargs,
    )
    if observer is not None:
        observer.close()

    for message in assembler.warnings():
        click.echo(str(message), err=True)
    for message in assembler.errors():
        click.echo(str(message), err=True)
    if not ok:
        click.echo("Error: translation failed", err=True)
        sys.exit(1)
    if not assembler.to_prj(output_path):
        click.echo(str(assembler.errors()[-1]), err=True)
        sys.exit(1)
    click.echo(f"Wrote {output_path}")


@cli.command(help="Derive a power-law airflow element from a leakage rate.")
@click.option(
    "--flow",
    type=click.FloatRange(min=0, min_open=True),
    default=assumed_constants.DefaultLeakageRate_m3_per_h,
    show_default=True,
    help="Leakage rate at the test pressure [m3/h].",
)
@click.option(
    "--exponent",
    type=float,
    default=assumed_constants.DefaultFlowExponent,
    show_default=True,
    help="Flow exponent.",
)
@click.option(
    "--delta-p",
    type=float,
    default=assumed_constants.DefaultReferencePressureDrop_Pa,
    show_default=True,
    help="Test pressure drop [Pa].",
)
def element(flow: float, exponent: float, delta_p: float):
    """Print the coefficients of the derived element."""
    el = derive_airflow_element(1, "Custom", flow, exponent, delta_p)
    click.echo(f"laminar: {el.laminar:g}")
    click.echo(f"turbulent: {el.turbulent:g}")
    click.echo(f"reference flow: {el.reference_flow:g} kg/s")
