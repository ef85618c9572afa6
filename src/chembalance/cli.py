"""Command-line entrypoints for chembalance."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Dict, List

import typer

from chembalance.balancer import BalancerConfiguration, balance_equation
from chembalance.constants import MAX_DENOMINATOR
from chembalance.errors import BalanceError, FormulaParseError
from chembalance.models import Substance, percent_yield
from chembalance.parsing import parse_formula
from chembalance.persistence import sqlite_store

app = typer.Typer(add_completion=False)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log solver stages.")] = False,
) -> None:
    """Balance chemical equations."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: Exception) -> None:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _parse_configuration(data: Dict[str, Any]) -> BalancerConfiguration:
    return BalancerConfiguration(
        max_denominator=int(data.get("max_denominator", MAX_DENOMINATOR)),
        strict_signs=bool(data.get("strict_signs", True)),
    )


@app.command("balance")
def balance_command(
    equation: Annotated[str, typer.Argument(help='Equation such as "Al + Cl2 = AlCl3".')],
    as_json: Annotated[bool, typer.Option("--json", help="Print a JSON payload.")] = False,
    max_denominator: Annotated[
        int, typer.Option(min=1, help="Largest denominator accepted from the solver.")
    ] = MAX_DENOMINATOR,
    project_file: Annotated[
        Path | None,
        typer.Option(help="Optional .cbproj file to persist the balanced reaction."),
    ] = None,
) -> None:
    """Balance a single equation."""
    configuration = BalancerConfiguration(max_denominator=max_denominator)
    try:
        reaction = balance_equation(equation, configuration)
    except (BalanceError, FormulaParseError) as exc:
        _fail(exc)

    if project_file is not None:
        connection = sqlite_store.connect(project_file)
        sqlite_store.ensure_schema(connection)
        project_id = sqlite_store.create_project(
            connection,
            name=equation,
            notes="Saved from the chembalance CLI.",
        )
        sqlite_store.save_reaction(connection, project_id, reaction)
        connection.close()

    if as_json:
        typer.echo(json.dumps(reaction.to_dict(), indent=2))
    else:
        typer.echo(str(reaction))


@app.command()
def run(
    config_file: Annotated[
        Path, typer.Argument(help="Path to JSON file listing reactions.")
    ],
    output: Annotated[
        Path | None, typer.Option(help="Path to save output JSON.")
    ] = None,
) -> None:
    """Balance every reaction listed in a config file."""
    with open(config_file, "r") as f:
        config = json.load(f)

    configuration = _parse_configuration(config)
    results: List[Dict[str, Any]] = []
    for equation in config.get("reactions", []):
        try:
            reaction = balance_equation(equation, configuration)
        except (BalanceError, FormulaParseError) as exc:
            results.append({"equation": equation, "error": str(exc)})
        else:
            results.append({"equation": equation, "balanced": reaction.to_dict()})

    json_output = json.dumps(results, indent=2)
    typer.echo(json_output)

    if output:
        with open(output, "w") as f:
            f.write(json_output)


@app.command()
def weight(
    formula: Annotated[str, typer.Argument(help="Formula such as Ca(OH)2.")],
) -> None:
    """Print the molecular weight of a formula in g/mol."""
    try:
        compound = parse_formula(formula)
    except FormulaParseError as exc:
        _fail(exc)
    typer.echo(f"{compound.molecular_weight:.3f}")


@app.command("yield")
def yield_command(
    equation: Annotated[str, typer.Argument(help="Unbalanced equation.")],
    reagent: Annotated[str, typer.Option(help="Formula of the limiting reagent.")],
    reagent_mass: Annotated[float, typer.Option(help="Reagent sample mass (g).")],
    product: Annotated[str, typer.Option(help="Formula of the recovered product.")],
    product_mass: Annotated[float, typer.Option(help="Recovered product mass (g).")],
) -> None:
    """Report the percent yield of a product from a reagent sample."""
    try:
        reaction = balance_equation(equation)
        report = percent_yield(
            reaction,
            Substance(parse_formula(reagent), reagent_mass),
            Substance(parse_formula(product), product_mass),
        )
    except (BalanceError, FormulaParseError, KeyError, ValueError) as exc:
        _fail(exc)

    payload = {
        "equation": str(reaction),
        "theoretical_moles": report.theoretical_moles,
        "theoretical_mass": report.theoretical_mass,
        "actual_mass": report.actual_mass,
        "percent_yield": report.percent_yield,
    }
    typer.echo(json.dumps(payload, indent=2))
