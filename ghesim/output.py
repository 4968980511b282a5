from pathlib import Path

from ghesim.constants import VERSION
from ghesim.ground_heat_exchangers import GHEBase
from ghesim.solver import StepResult
from ghesim.utilities import write_flat_dict_to_csv, write_json


class OutputManager:
    """
    Collects timestep results of one device and writes them out:
      - timestep results CSV
      - g-function CSV
      - JSON summary
    """

    def __init__(self, project_name: str, ghe: GHEBase) -> None:
        self.project_name = project_name
        self.ghe = ghe
        self.elapsed_hours: list[float] = []
        self.results: list[StepResult] = []

    def add_result(self, elapsed_hours: float, result: StepResult) -> None:
        self.elapsed_hours.append(elapsed_hours)
        self.results.append(result)

    def timestep_columns(self) -> dict[str, list]:
        return {
            "Elapsed Time [hr]": self.elapsed_hours,
            "Solver State": [r.state.name for r in self.results],
            "Mass Flow Rate [kg/s]": [r.mass_flow_rate for r in self.results],
            "Inlet Temperature [C]": [r.inlet_temperature for r in self.results],
            "Outlet Temperature [C]": [r.outlet_temperature for r in self.results],
            "Average Fluid Temperature [C]": [r.average_fluid_temperature for r in self.results],
            "Wall Temperature [C]": [r.wall_temperature for r in self.results],
            "Heat Transfer Rate [W]": [r.heat_transfer_rate for r in self.results],
        }

    def summary(self) -> dict:
        output = {
            "project_name": self.project_name,
            "version": VERSION,
            "ground_heat_exchanger": self.ghe.as_dict(),
            "number_of_timesteps": len(self.results),
            "temperature_excursions": self.ghe.num_excursions,
        }
        if self.results:
            outlet = [r.outlet_temperature for r in self.results]
            heat = [r.heat_transfer_rate for r in self.results]
            output["maximum_outlet_temperature"] = {"value": max(outlet), "units": "C"}
            output["minimum_outlet_temperature"] = {"value": min(outlet), "units": "C"}
            output["maximum_heat_transfer_rate"] = {"value": max(heat), "units": "W"}
            output["minimum_heat_transfer_rate"] = {"value": min(heat), "units": "W"}
        return output

    def write_all_output_files(self, output_directory: Path) -> None:
        output_directory.mkdir(parents=True, exist_ok=True)
        write_flat_dict_to_csv(output_directory / "SimulationResults.csv", self.timestep_columns())
        if self.ghe.g_function is not None:
            g_function = self.ghe.g_function
            write_flat_dict_to_csv(
                output_directory / "GFunction.csv",
                {"ln(t/ts)": g_function.log_time.tolist(), "g": g_function.g_values.tolist()},
            )
        write_json(output_directory / "SimulationSummary.json", self.summary())
