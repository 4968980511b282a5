import logging
from abc import ABC, abstractmethod

import numpy as np

from ghesim.constants import DAYS_IN_YEAR, DELTA_TEMP_LIMIT, HRS_IN_DAY, MAX_EXCURSION_WARNINGS, PI, SEC_IN_HR
from ghesim.enums import CoilOrientation, DeviceType
from ghesim.gfunction import GFunctionTable, borehole_radius_correction, calculate_rectangle_g_function
from ghesim.ground_temperature import ConstantGroundTemperature, ground_temperature_from_dict
from ghesim.load_aggregation import LoadHistory
from ghesim.media import Fluid, Grout, Soil
from ghesim.pipe import Pipe
from ghesim.resistance import FluidPathResistance
from ghesim.ring_source import RingSourceIntegrator
from ghesim.simulation import SimulationClock, TimeStepContext
from ghesim.solver import StepResult, ThermalResponseSolver
from ghesim.utilities import check_positive

logger = logging.getLogger(__name__)


class GHEBase(ABC):
    """
    Shared state and timestep logic of a ground heat exchanger device.

    Each device owns its load history, its simulation clock and its g-function. Subclasses
    describe the geometry: how the g-function is obtained, the steady state time used to scale
    elapsed time, the undisturbed ground temperature and how flow divides between units.
    """

    device_type: DeviceType

    def __init__(
        self,
        name: str,
        fluid: Fluid,
        soil: Soil,
        pipe: Pipe,
        ground_temperature,
        resistance: FluidPathResistance,
        num_units: int,
        total_tube_length: float,
        design_flow_rate: float,
        max_sim_years: int,
    ) -> None:
        if num_units < 1:
            raise ValueError(f"{name}: number of boreholes or trenches must be at least 1, got {num_units}")
        check_positive(total_tube_length, "Total tube length")
        check_positive(design_flow_rate, "Design flow rate")
        if max_sim_years < 1:
            raise ValueError(f"{name}: maximum simulation years must be at least 1, got {max_sim_years}")
        if ground_temperature is None:
            raise ValueError(f"{name}: an undisturbed ground temperature source is required")
        if isinstance(ground_temperature, int | float):
            ground_temperature = ConstantGroundTemperature(float(ground_temperature))

        self.name = name
        self.fluid = fluid
        self.soil = soil
        self.pipe = pipe
        self.ground_temperature = ground_temperature
        self.resistance = resistance
        self.num_units = num_units
        self.total_tube_length = total_tube_length
        self.design_flow_rate = design_flow_rate
        self.max_sim_years = max_sim_years

        self.history = LoadHistory(max_sim_years)
        self.clock = SimulationClock()
        self.solver = ThermalResponseSolver(self.g_function_response, soil.k, total_tube_length)
        self.g_function: GFunctionTable | None = None
        self.last_result: StepResult | None = None
        self.num_excursions = 0

    @property
    @abstractmethod
    def time_ss_factor(self) -> float:
        """Steady state time used to scale elapsed time before the g-function lookup, hours."""

    @property
    @abstractmethod
    def ground_depth(self) -> float:
        """Depth at which the undisturbed ground temperature is evaluated, m."""

    @abstractmethod
    def calc_g_function(self) -> GFunctionTable:
        pass

    def setup(self) -> GFunctionTable:
        if self.g_function is None:
            self.g_function = self.calc_g_function()
        return self.g_function

    def g_function_response(self, delta_hours):
        return self.g_function.interpolate(np.log(np.asarray(delta_hours) / self.time_ss_factor))

    def m_flow_unit(self, m_dot: float) -> float:
        return m_dot / self.num_units

    def calc_hx_resistance(self, m_dot: float) -> float:
        return self.resistance.calc_total_resistance(self.m_flow_unit(m_dot), self.fluid)

    def ground_temp(self, day_of_year: float) -> float:
        return self.ground_temperature.get_temp(self.ground_depth, day_of_year)

    def begin_environment(self) -> None:
        self.history.reset()
        self.clock.reset()
        self.last_result = None

    def simulate(
        self,
        inlet_temp: float,
        m_dot: float,
        elapsed_hours: float,
        warmup: bool = False,
        day_of_year: float | None = None,
    ) -> StepResult:
        """
        Solve one timestep.

        :param inlet_temp: fluid inlet temperature, C
        :param m_dot: device mass flow rate, kg/s
        :param elapsed_hours: hours since the start of the environment
        :param warmup: True while the enclosing simulation is warming up
        :param day_of_year: day used for the ground temperature, derived from elapsed time when omitted
        """
        self.setup()
        if day_of_year is None:
            day_of_year = int(max(elapsed_hours, 0.0) // HRS_IN_DAY) % DAYS_IN_YEAR + 1
        ground_temp = self.ground_temp(day_of_year)

        self.fluid.update_props_with_new_temp(inlet_temp)
        r_hx = self.calc_hx_resistance(m_dot)
        result = self.solver.solve(self.history, elapsed_hours, inlet_temp, m_dot, self.fluid.cp, r_hx, ground_temp)

        if not warmup and abs(result.outlet_temperature - result.inlet_temperature) > DELTA_TEMP_LIMIT:
            result.temperature_excursion = True
            self._report_excursion(result, elapsed_hours)

        self.last_result = result
        return result

    def simulate_time_step(self, context: TimeStepContext, inlet_temp: float, m_dot: float) -> StepResult:
        elapsed_hours, reset_history = self.clock.tick(context)
        if reset_history:
            self.history.reset()
        return self.simulate(inlet_temp, m_dot, elapsed_hours, context.warmup, context.day_of_year)

    def _report_excursion(self, result: StepResult, elapsed_hours: float) -> None:
        self.num_excursions += 1
        if self.num_excursions > MAX_EXCURSION_WARNINGS:
            return
        logger.warning(
            f"{self.name}: outlet temperature {result.outlet_temperature:0.2f} C differs from inlet temperature "
            f"{result.inlet_temperature:0.2f} C by more than {DELTA_TEMP_LIMIT} K at {elapsed_hours:0.3f} hours"
        )
        if self.num_excursions == MAX_EXCURSION_WARNINGS:
            logger.warning(f"{self.name}: further temperature excursion warnings are suppressed")

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.device_type.name,
            "fluid": self.fluid.as_dict(),
            "soil": self.soil.as_dict(),
            "pipe": self.pipe.as_dict(),
            "ground_temperature": self.ground_temperature.as_dict(),
            "resistance": self.resistance.as_dict(),
            "total_tube_length": {"value": self.total_tube_length, "units": "m"},
            "design_flow_rate": {"value": self.design_flow_rate, "units": "kg/s"},
            "maximum_simulation_years": self.max_sim_years,
        }


class VerticalGHE(GHEBase):
    device_type = DeviceType.VERTICAL

    def __init__(
        self,
        name: str,
        fluid: Fluid,
        soil: Soil,
        grout: Grout,
        pipe: Pipe,
        ground_temperature,
        num_boreholes: int,
        borehole_length: float,
        borehole_radius: float,
        design_flow_rate: float,
        max_sim_years: int,
        g_function: GFunctionTable,
        g_reference_ratio: float | None = None,
    ) -> None:
        check_positive(borehole_length, "Borehole length")
        check_positive(borehole_radius, "Borehole radius")
        if pipe.s is None:
            raise ValueError(f"{name}: vertical boreholes need a U-tube pipe with a shank spacing")
        if g_function is None:
            raise ValueError(f"{name}: vertical ground heat exchangers need a g-function table")

        self.g_function_table = g_function
        self.grout = grout
        self.H = borehole_length
        self.r_b = borehole_radius
        self.g_reference_ratio = g_reference_ratio if g_reference_ratio is not None else borehole_radius / borehole_length
        check_positive(self.g_reference_ratio, "g-function reference rb/H ratio")

        resistance = FluidPathResistance(pipe, grout, borehole_radius)
        super().__init__(
            name,
            fluid,
            soil,
            pipe,
            ground_temperature,
            resistance,
            num_boreholes,
            num_boreholes * borehole_length,
            design_flow_rate,
            max_sim_years,
        )

    @classmethod
    def init_from_dict(cls, name: str, ghe_dict: dict, fluid: Fluid) -> "VerticalGHE":
        soil = Soil(ghe_dict["soil"]["conductivity"], ghe_dict["soil"]["rho_cp"])
        grout = Grout(ghe_dict["grout"]["conductivity"], ghe_dict["grout"]["rho_cp"])
        pipe = Pipe.init_from_dict(ghe_dict["pipe"])
        borehole = ghe_dict["borehole"]
        ground_temperature = ground_temperature_from_dict(ghe_dict["ground_temperature"], soil.alpha)

        g_props = ghe_dict.get("g_function", {})
        g_reference_ratio = None
        if "log_time" in g_props:
            g_function = GFunctionTable.init_from_dict(g_props)
            g_reference_ratio = g_props.get("rb_over_h")
            num_boreholes = ghe_dict.get("num_boreholes", 1)
        elif "rectangle" in g_props:
            field = g_props["rectangle"]
            g_function = calculate_rectangle_g_function(
                field["rows"],
                field["columns"],
                field["spacing"],
                field.get("spacing_y", field["spacing"]),
                borehole["length"],
                borehole.get("buried_depth", 2.0),
                borehole["radius"],
                soil.alpha,
            )
            num_boreholes = field["rows"] * field["columns"]
        else:
            raise ValueError(f"{name}: vertical ground heat exchangers need 'log_time' data or a 'rectangle' field")

        return cls(
            name,
            fluid,
            soil,
            grout,
            pipe,
            ground_temperature,
            num_boreholes,
            borehole["length"],
            borehole["radius"],
            ghe_dict["design_flow_rate"],
            ghe_dict.get("max_simulation_years", 1),
            g_function=g_function,
            g_reference_ratio=g_reference_ratio,
        )

    @property
    def time_ss_factor(self) -> float:
        return self.H**2 / (9.0 * self.soil.alpha) / SEC_IN_HR

    @property
    def ground_depth(self) -> float:
        return self.H / 2.0

    def calc_g_function(self) -> GFunctionTable:
        return self.g_function_table

    def g_function_response(self, delta_hours):
        g = super().g_function_response(delta_hours)
        return borehole_radius_correction(g, self.r_b, self.H, self.g_reference_ratio)

    def as_dict(self) -> dict:
        output = super().as_dict()
        output["grout"] = self.grout.as_dict()
        output["number_of_boreholes"] = self.num_units
        output["borehole_length"] = {"value": self.H, "units": "m"}
        output["borehole_radius"] = {"value": self.r_b, "units": "m"}
        output["steady_state_time"] = {"value": self.time_ss_factor, "units": "hr"}
        return output


class SlinkyGHE(GHEBase):
    device_type = DeviceType.SLINKY

    def __init__(
        self,
        name: str,
        fluid: Fluid,
        soil: Soil,
        pipe: Pipe,
        ground_temperature,
        num_trenches: int,
        trench_length: float,
        trench_spacing: float,
        trench_depth: float,
        coil_diameter: float,
        coil_pitch: float,
        design_flow_rate: float,
        max_sim_years: int,
        orientation: CoilOrientation = CoilOrientation.HORIZONTAL,
    ) -> None:
        for value, name_str in (
            (trench_length, "Trench length"),
            (trench_depth, "Trench depth"),
            (coil_diameter, "Coil diameter"),
            (coil_pitch, "Coil pitch"),
        ):
            check_positive(value, name_str)

        if orientation == CoilOrientation.VERTICAL:
            if trench_depth - coil_diameter < 0.0:
                raise ValueError(
                    f"{name}: trench depth ({trench_depth}) must be at least the coil diameter ({coil_diameter}) "
                    "for vertical coils"
                )
            coil_depth = trench_depth - coil_diameter / 2.0
        else:
            coil_depth = trench_depth

        num_coils = int(trench_length / coil_pitch)
        if num_coils < 1:
            raise ValueError(f"{name}: trench length ({trench_length}) is shorter than the coil pitch ({coil_pitch})")

        self.num_trenches = num_trenches
        self.trench_length = trench_length
        self.trench_spacing = trench_spacing
        self.trench_depth = trench_depth
        self.coil_diameter = coil_diameter
        self.coil_pitch = coil_pitch
        self.coil_depth = coil_depth
        self.num_coils = num_coils
        self.orientation = orientation

        total_tube_length = PI * coil_diameter * trench_length * num_trenches / coil_pitch
        super().__init__(
            name,
            fluid,
            soil,
            pipe,
            ground_temperature,
            FluidPathResistance(pipe),
            num_trenches,
            total_tube_length,
            design_flow_rate,
            max_sim_years,
        )

        self.integrator = RingSourceIntegrator(
            num_trenches,
            num_coils,
            coil_pitch,
            trench_spacing,
            coil_depth,
            coil_diameter,
            pipe.r_out,
            soil.alpha,
            max_sim_years,
            orientation,
        )

    @classmethod
    def init_from_dict(cls, name: str, ghe_dict: dict, fluid: Fluid) -> "SlinkyGHE":
        soil = Soil(ghe_dict["soil"]["conductivity"], ghe_dict["soil"]["rho_cp"])
        pipe = Pipe.init_from_dict(ghe_dict["pipe"])
        if "ground_temperature" not in ghe_dict:
            raise ValueError(f"{name}: slinky ground heat exchangers need far-field ground temperature data")
        ground_temperature = ground_temperature_from_dict(ghe_dict["ground_temperature"], soil.alpha)
        trench = ghe_dict["trench"]
        coil = ghe_dict["coil"]
        return cls(
            name,
            fluid,
            soil,
            pipe,
            ground_temperature,
            trench["num_trenches"],
            trench["length"],
            trench.get("spacing", 0.0),
            trench["depth"],
            coil["diameter"],
            coil["pitch"],
            ghe_dict["design_flow_rate"],
            ghe_dict.get("max_simulation_years", 1),
            CoilOrientation[coil.get("orientation", "HORIZONTAL").upper()],
        )

    @property
    def time_ss_factor(self) -> float:
        # the ring-source table is tabulated against ln(hours)
        return 1.0

    @property
    def ground_depth(self) -> float:
        return self.coil_depth

    def calc_g_function(self) -> GFunctionTable:
        return self.integrator.calc_g_function()

    def as_dict(self) -> dict:
        output = super().as_dict()
        output["number_of_trenches"] = self.num_trenches
        output["number_of_coils_per_trench"] = self.num_coils
        output["coil_orientation"] = self.orientation.name
        output["coil_depth"] = {"value": self.coil_depth, "units": "m"}
        output["trench_length"] = {"value": self.trench_length, "units": "m"}
        output["coil_diameter"] = {"value": self.coil_diameter, "units": "m"}
        output["coil_pitch"] = {"value": self.coil_pitch, "units": "m"}
        return output
