import csv
from json import dumps, loads
from pathlib import Path


# Time functions
# --------------
def eskilson_log_times() -> list[float]:
    # Return a list of Eskilson's original 27 dimensionless points in time
    return [-8.5, -7.8, -7.2, -6.5, -5.9, -5.2, -4.5, -3.963, -3.27, -2.864, -2.577, -2.171, -1.884, -1.191,
            -0.497, -0.274, -0.051, 0.196, 0.419, 0.642, 0.873, 1.112, 1.335, 1.679, 2.028, 2.275, 3.003]


# Argument checks
# ---------------
def check_arg_bounds(lower: float, upper: float, lower_name: str, upper_name: str) -> None:
    if lower >= upper:
        raise ValueError(f"{lower_name} ({lower}) must be less than {upper_name} ({upper})")


def check_positive(value: float, name: str) -> None:
    if value <= 0.0:
        raise ValueError(f"{name} must be greater than zero, got {value}")


# File functions
# --------------
def load_input_file(input_file_path: Path) -> dict:
    return loads(Path(input_file_path).read_text())


def write_json(write_path: Path, input_dict: dict, indent: int = 2) -> None:
    write_path.write_text(dumps(input_dict, sort_keys=True, indent=indent))


def write_flat_dict_to_csv(write_path: Path, columns: dict[str, list]) -> None:
    """
    Writes a dict of equal length columns to a csv file with one header row.

    :param write_path: path of the csv file
    :param columns: column name mapped to the column values
    """
    header = list(columns.keys())
    num_rows = len(next(iter(columns.values()))) if columns else 0
    with write_path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for i in range(num_rows):
            writer.writerow([columns[name][i] for name in header])
