#!/usr/bin/env python
import logging
import sys
import warnings
from math import ceil
from pathlib import Path

import click
from jsonschema.exceptions import ValidationError

from ghesim.constants import DAYS_IN_YEAR, HRS_IN_DAY, VERSION
from ghesim.enums import DeviceType
from ghesim.ground_heat_exchangers import GHEBase, SlinkyGHE, VerticalGHE
from ghesim.media import Fluid
from ghesim.output import OutputManager
from ghesim.simulation import TimeStepContext
from ghesim.utilities import load_input_file
from ghesim.validate import validate_input_file

logging.basicConfig(level=logging.WARN, format="%(message)s", datefmt="[%X]")
logger = logging.getLogger(__name__)


def build_ghe(ghe_dict: dict, fluid: Fluid) -> GHEBase:
    name = ghe_dict["name"]
    match DeviceType[ghe_dict["type"]]:
        case DeviceType.VERTICAL:
            return VerticalGHE.init_from_dict(name, ghe_dict, fluid)
        case DeviceType.SLINKY:
            return SlinkyGHE.init_from_dict(name, ghe_dict, fluid)
        case _:
            raise ValueError(f"Ground heat exchanger type {ghe_dict['type']} not recognized.")


def boundary_value(value: float | list[float], hour_index: int) -> float:
    # lists are hourly values, repeated when the run is longer than the list
    if isinstance(value, list):
        return value[hour_index % len(value)]
    return value


def run_days(
    ghe: GHEBase,
    num_days: int,
    timesteps_per_hour: int,
    boundary_conditions: dict,
    warmup: bool,
    results: OutputManager | None = None,
) -> None:
    dt = 1.0 / timesteps_per_hour
    for day in range(1, num_days + 1):
        for hour in range(1, HRS_IN_DAY + 1):
            hour_index = (day - 1) * HRS_IN_DAY + hour - 1
            inlet_temp = boundary_value(boundary_conditions["inlet_temperature"], hour_index)
            m_dot = boundary_value(boundary_conditions["mass_flow_rate"], hour_index)
            for time_step in range(1, timesteps_per_hour + 1):
                context = TimeStepContext(
                    day_of_sim=day,
                    hour_of_day=hour,
                    time_step=time_step,
                    time_step_zone=dt,
                    warmup=warmup,
                    day_of_year=(day - 1) % DAYS_IN_YEAR + 1,
                )
                result = ghe.simulate_time_step(context, inlet_temp, m_dot)
                if results is not None:
                    results.add_result(context.elapsed_hours(), result)


def run(input_file_path: Path, output_directory: Path) -> int:
    """
    Worker function to run simulation.

    :param input_file_path: path to input file. Input file must exist.
    :param output_directory: path to write output files. Output directory must be a valid path.
    """

    # validate inputs against the schema before doing anything
    try:
        validate_input_file(input_file_path)
    except ValidationError:
        return 1

    inputs = load_input_file(input_file_path)
    sim_control = inputs["simulation_control"]
    ghe_dict = inputs["ground_heat_exchanger"]

    num_days = sim_control["num_days"]
    run_years = ceil(num_days / DAYS_IN_YEAR)
    max_sim_years = ghe_dict.get("max_simulation_years", 1)
    if run_years > max_sim_years:
        warnings.warn(
            f"Maximum simulation years ({max_sim_years}) is less than the run period ({run_years} years); "
            f"it has been increased to {run_years}"
        )
        ghe_dict["max_simulation_years"] = run_years

    fluid = Fluid.init_from_dict(inputs["fluid"])
    ghe = build_ghe(ghe_dict, fluid)
    ghe.setup()
    ghe.begin_environment()

    timesteps_per_hour = sim_control["timesteps_per_hour"]
    boundary_conditions = inputs["boundary_conditions"]
    warmup_days = sim_control.get("warmup_days", 0)
    if warmup_days > 0:
        run_days(ghe, warmup_days, timesteps_per_hour, boundary_conditions, warmup=True)

    results = OutputManager(inputs.get("project_name", "GHESim Run from CLI"), ghe)
    run_days(ghe, num_days, timesteps_per_hour, boundary_conditions, warmup=False, results=results)
    results.write_all_output_files(output_directory)
    return 0


@click.command(name="GHESimCommandLine")
@click.argument("input-path", type=click.Path(exists=True), required=True)
@click.argument("output-directory", type=click.Path(exists=False), required=False)
@click.version_option(VERSION)
@click.option("--validate-only", default=False, is_flag=True, show_default=False, help="Validate input file and exit.")
def run_manager_from_cli(input_path, output_directory, validate_only):
    # Note that since this is wrapped in click, it should use the exit(code) instead of return.
    # Click will absorb the return code and not return it.
    input_path = Path(input_path).resolve()

    if validate_only:
        try:
            validate_input_file(input_path)
            logger.info("Valid input file.")
            sys.exit(0)
        except ValidationError as ve:
            logger.error(ve.message)
            sys.exit(1)

    if output_directory is None:
        print("Output directory path must be passed as an argument, aborting", file=sys.stderr)
        sys.exit(1)

    output_path = Path(output_directory).resolve()

    return_code = run(input_path, output_path)
    sys.exit(return_code)


if __name__ == "__main__":
    exit_code = run_manager_from_cli()
    sys.exit(exit_code)
