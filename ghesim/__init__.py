from . import (
    constants,
    enums,
    gfunction,
    ground_heat_exchangers,
    ground_temperature,
    load_aggregation,
    media,
    pipe,
    resistance,
    ring_source,
    simulation,
    solver,
    utilities,
    validate,
)
from .constants import VERSION
from .ground_heat_exchangers import SlinkyGHE, VerticalGHE
