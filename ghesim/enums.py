from enum import Enum, auto


class FluidType(Enum):
    ETHYLALCOHOL = auto()
    ETHYLENEGLYCOL = auto()
    METHYLALCOHOL = auto()
    PROPYLENEGLYCOL = auto()
    WATER = auto()


class DeviceType(Enum):
    VERTICAL = "VERTICAL"
    SLINKY = "SLINKY"


class CoilOrientation(Enum):
    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"


class SolverState(Enum):
    INACTIVE = auto()
    FIRST_STEP = auto()
    SUPERPOSITION = auto()
    AGGREGATED = auto()
