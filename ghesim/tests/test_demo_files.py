from json import loads
from pathlib import Path

import pytest

from ghesim.main import run


def get_demo_files() -> list[Path]:
    demos_path = Path(__file__).parent.parent.parent / "demos"
    return sorted(demos_path.glob("*.json"))


@pytest.mark.parametrize("demo_file_path", get_demo_files(), ids=lambda f: "Demo: " + f.stem)
def test_demo_files(demo_file_path: Path, time_str: str):
    out_dir = Path(__file__).parent.parent.parent / "demo_outputs" / time_str / demo_file_path.stem
    out_dir.mkdir(parents=True, exist_ok=True)
    print(f"Running: {demo_file_path}")
    assert run(demo_file_path, out_dir) == 0

    inputs = loads(demo_file_path.read_text())
    summary = loads((out_dir / "SimulationSummary.json").read_text())
    sim_control = inputs["simulation_control"]
    assert summary["number_of_timesteps"] == sim_control["num_days"] * 24 * sim_control["timesteps_per_hour"]
    assert summary["temperature_excursions"] == 0
