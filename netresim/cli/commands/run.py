"""Run command: simulate a YAML model file."""

import json
import logging
import time
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.logging import RichHandler

from ..app import app, console, get_json_mode
from ..utils import ExitCode, Output, format_elapsed


def setup_logging(verbose: bool = False, debug: bool = False, default: str = "WARNING"):
    """Configure logging for a run."""
    level = getattr(logging, default, logging.WARNING)
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )
    logging.getLogger("netresim").setLevel(level)


@app.command("run")
def run_command(
    model: Path = typer.Argument(..., help="Model YAML file"),
    nsims: int | None = typer.Option(None, "--nsims", "-n", help="Override number of replicates"),
    nsteps: int | None = typer.Option(None, "--nsteps", "-t", help="Override number of steps"),
    seed: int | None = typer.Option(None, "--seed", help="Base random seed"),
    ncores: int | None = typer.Option(None, "--ncores", "-j", help="Worker processes"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write per-replicate epi series to this JSON file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show progress logs"),
    debug: bool = typer.Option(False, "--debug", help="Show debug logs"),
):
    """Run a network model and summarize the final networks.

    Example:
        netresim run model.yaml --nsims 4 --seed 42 -v
    """
    from ...config import get_config
    from ...core.errors import ConfigurationError, FormulaError, NetresimError
    from ...core.models import ModelSpec, RunControl
    from ...simulation import BirthDeathModule, run_netsim

    config = get_config()
    setup_logging(verbose=verbose, debug=debug, default=config.log_level)

    out = Output(console=console, json_mode=get_json_mode())
    start_time = time.time()

    if not model.exists():
        out.error(f"Model file not found: {model}", exit_code=ExitCode.FILE_NOT_FOUND)
        raise typer.Exit(out.finish())

    try:
        spec = ModelSpec.from_yaml(model)
    except (ValidationError, ValueError, yaml.YAMLError) as e:
        out.error(f"Invalid model file: {e}", exit_code=ExitCode.VALIDATION_ERROR)
        raise typer.Exit(out.finish())

    # CLI options > model file > tool config
    overrides: dict = {}
    if nsims is not None:
        overrides["nsims"] = nsims
    if nsteps is not None:
        overrides["nsteps"] = nsteps
    if seed is not None:
        overrides["seed"] = seed
    elif "seed" not in spec.control.model_fields_set and config.run.seed is not None:
        overrides["seed"] = config.run.seed
    if ncores is not None:
        overrides["ncores"] = ncores
    elif "ncores" not in spec.control.model_fields_set:
        overrides["ncores"] = config.run.ncores

    try:
        control = RunControl.model_validate({**spec.control.model_dump(), **overrides})
    except ValidationError as e:
        out.error(f"Invalid run options: {e}", exit_code=ExitCode.VALIDATION_ERROR)
        raise typer.Exit(out.finish())

    modules = []
    demography = spec.demography
    if demography.departure_rate > 0 or demography.arrival_rate > 0:
        modules.append(
            BirthDeathModule(demography.departure_rate, demography.arrival_rate)
        )

    out.success(
        f"Loaded {model} ({len(spec.networks)} network(s), "
        f"{spec.population.size} nodes)",
        model=str(model),
        networks=len(spec.networks),
        population=spec.population.size,
    )

    try:
        result = run_netsim(
            spec.networks,
            control,
            num_nodes=spec.population.size,
            group_sizes=spec.population.group_sizes,
            modules=modules,
        )
    except (ConfigurationError, FormulaError) as e:
        out.error(str(e), exit_code=ExitCode.VALIDATION_ERROR)
        raise typer.Exit(out.finish())
    except NetresimError as e:
        out.error(f"Simulation failed: {e}", exit_code=ExitCode.SIMULATION_ERROR)
        raise typer.Exit(out.finish())

    elapsed = time.time() - start_time

    columns = ["Sim", "Active"] + [f"Edges net{n}" for n in range(1, result.num_networks + 1)]
    columns.append("Mean degree")
    rows = []
    for run in result.runs:
        active = int(run.epi["num"][-1] + (run.epi["num_g2"][-1] if "num_g2" in run.epi else 0))
        edges = [int(run.epi[f"edges_net{n}"][-1]) for n in range(1, result.num_networks + 1)]
        mean_degree = 2 * sum(edges) / active if active else 0.0
        rows.append([str(run.sim), str(active)] + [str(e) for e in edges] + [f"{mean_degree:.3f}"])
        if not active:
            out.warning(
                f"Replicate {run.sim} ended with no active nodes",
                suggestion="Lower demography.departure_rate or raise demography.arrival_rate",
            )

    out.table("Final networks", columns, rows, data_key="replicates")
    out.set_data("nsims", control.nsims)
    out.set_data("nsteps", control.nsteps)
    out.set_data("elapsed_seconds", round(elapsed, 3))

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            json.dump(
                {str(run.sim): run.epi for run in result.runs}, f, indent=2, default=str
            )
        out.set_data("output", str(output))
        out.text(f"Epi series saved to: [bold]{output}[/bold]")

    out.success(
        f"Ran {control.nsims} replicate(s) of {control.nsteps} steps "
        f"in {format_elapsed(elapsed)}"
    )
    raise typer.Exit(out.finish())
