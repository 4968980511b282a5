import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from ghesim.constants import AGG, HRS_IN_MONTH, SUB_AGG, TWO_PI
from ghesim.enums import SolverState
from ghesim.load_aggregation import LoadHistory

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    state: SolverState
    inlet_temperature: float  # C
    outlet_temperature: float  # C
    average_fluid_temperature: float  # C
    wall_temperature: float  # C
    heat_extraction_rate: float  # W/m of tube, positive when heat is drawn from the ground
    heat_transfer_rate: float  # W, positive when heat is rejected to the ground
    mass_flow_rate: float  # kg/s
    temperature_excursion: bool = False

    def as_dict(self) -> dict:
        return {
            "state": self.state.name,
            "inlet_temperature": self.inlet_temperature,
            "outlet_temperature": self.outlet_temperature,
            "average_fluid_temperature": self.average_fluid_temperature,
            "wall_temperature": self.wall_temperature,
            "heat_transfer_rate": self.heat_transfer_rate,
            "mass_flow_rate": self.mass_flow_rate,
        }


class ThermalResponseSolver:
    """
    Solves the fluid and ground temperatures of one device for one timestep.

    The ground response to every stored heat pulse is superposed through ``response``, which maps
    elapsed hours to the dimensionless g-function. The current pulse is solved implicitly together
    with the local energy balance of the fluid.

    :param response: g-function of elapsed hours, accepts floats and numpy arrays
    :param k_ground: ground thermal conductivity, W/m-K
    :param total_tube_length: heat exchanging tube length of the whole device, m
    """

    def __init__(self, response: Callable, k_ground: float, total_tube_length: float) -> None:
        self.response = response
        self.two_pi_k = TWO_PI * k_ground
        self.total_tube_length = total_tube_length

    @staticmethod
    def determine_state(history: LoadHistory, elapsed_hours: float) -> SolverState:
        if elapsed_hours <= 0.0:
            return SolverState.INACTIVE
        if history.step_count <= 1:
            return SolverState.FIRST_STEP
        if elapsed_hours < HRS_IN_MONTH + AGG + SUB_AGG:
            return SolverState.SUPERPOSITION
        return SolverState.AGGREGATED

    def first_step_reference(self, elapsed_hours: float, ground_temp: float) -> tuple[float, float]:
        """Reference temperature and current pulse resistance with no history, K and m-K/W."""
        return ground_temp, self.response(elapsed_hours) / self.two_pi_k

    def superposition_reference(
        self, history: LoadHistory, elapsed_hours: float, ground_temp: float
    ) -> tuple[float, float]:
        """
        Ground temperature seen by the current pulse after all earlier pulses are superposed.

        The stored history is superposed in full, then the latest stored level is taken back out
        over the current pulse duration, where the unknown current pulse replaces it.
        """
        terms = history.superposition_terms(elapsed_hours)
        r_current = self.response(terms.current_duration) / self.two_pi_k
        if terms.steps.size > 0:
            history_drop = float(np.dot(terms.steps, self.response(terms.elapsed))) / self.two_pi_k
        else:
            history_drop = 0.0
        t_ref = ground_temp - (history_drop - terms.previous_level * r_current)
        return t_ref, r_current

    def energy_balance(
        self,
        state: SolverState,
        t_ref: float,
        r_current: float,
        inlet_temp: float,
        m_dot: float,
        cp: float,
        r_hx: float,
    ) -> StepResult:
        if m_dot <= 0.0:
            q = 0.0
            outlet_temp = inlet_temp
            ave_fluid_temp = t_ref
        else:
            c2 = self.total_tube_length / (2.0 * m_dot * cp)
            c3 = m_dot * cp / self.total_tube_length
            q = (t_ref - inlet_temp) / (r_hx + r_current - c2 + 1.0 / c3)
            ave_fluid_temp = t_ref - (r_current + r_hx) * q
            outlet_temp = t_ref + (c2 - r_current - r_hx) * q

        heat_rate = -q * self.total_tube_length if q != 0.0 else 0.0
        return StepResult(
            state=state,
            inlet_temperature=inlet_temp,
            outlet_temperature=outlet_temp,
            average_fluid_temperature=ave_fluid_temp,
            wall_temperature=t_ref - q * r_current,
            heat_extraction_rate=q,
            heat_transfer_rate=heat_rate,
            mass_flow_rate=m_dot,
        )

    def solve(
        self,
        history: LoadHistory,
        elapsed_hours: float,
        inlet_temp: float,
        m_dot: float,
        cp: float,
        r_hx: float,
        ground_temp: float,
    ) -> StepResult:
        """
        Advance ``history`` to ``elapsed_hours``, solve the step and record the new pulse.

        :param history: load history owned by the device
        :param elapsed_hours: hours since the start of the environment
        :param inlet_temp: fluid inlet temperature, C
        :param m_dot: device mass flow rate, kg/s
        :param cp: fluid specific heat, J/kg-K
        :param r_hx: fluid to ground resistance, m-K/W
        :param ground_temp: undisturbed ground temperature, C
        """
        if elapsed_hours <= 0.0:
            history.reset()
            return StepResult(
                state=SolverState.INACTIVE,
                inlet_temperature=inlet_temp,
                outlet_temperature=inlet_temp,
                average_fluid_temperature=inlet_temp,
                wall_temperature=ground_temp,
                heat_extraction_rate=0.0,
                heat_transfer_rate=0.0,
                mass_flow_rate=m_dot,
            )

        if history.step_count > 0 and elapsed_hours < history.current_time:
            logger.debug(f"Time moved back from {history.current_time} to {elapsed_hours} hours, history reset")
            history.reset()

        history.advance(elapsed_hours)
        state = self.determine_state(history, elapsed_hours)
        if state == SolverState.FIRST_STEP:
            t_ref, r_current = self.first_step_reference(elapsed_hours, ground_temp)
        else:
            t_ref, r_current = self.superposition_reference(history, elapsed_hours, ground_temp)

        result = self.energy_balance(state, t_ref, r_current, inlet_temp, m_dot, cp, r_hx)
        history.record(result.heat_extraction_rate)
        return result
