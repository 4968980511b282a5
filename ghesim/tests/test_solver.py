from math import pi

import numpy as np

from ghesim.constants import AGG, HRS_IN_MONTH, SUB_AGG
from ghesim.enums import SolverState
from ghesim.load_aggregation import LoadHistory
from ghesim.solver import ThermalResponseSolver
from ghesim.tests.ghe_base_case import GHEBaseTest

K_GROUND = 2.0
LENGTH = 200.0
CP = 4180.0
R_HX = 0.2
T_GROUND = 12.0


def response(delta_hours):
    return 2.0 + 0.5 * np.log1p(np.asarray(delta_hours, dtype=float))


class TestThermalResponseSolver(GHEBaseTest):
    def setUp(self):
        super().setUp()
        self.solver = ThermalResponseSolver(response, K_GROUND, LENGTH)
        self.history = LoadHistory()

    def solve(self, elapsed, inlet=25.0, m_dot=0.5):
        return self.solver.solve(self.history, elapsed, inlet, m_dot, CP, R_HX, T_GROUND)

    def test_inactive_passes_inlet_through(self):
        self.solve(1.0)
        result = self.solve(0.0, inlet=30.0)
        self.assertEqual(result.state, SolverState.INACTIVE)
        self.assertEqual(result.outlet_temperature, 30.0)
        self.assertEqual(result.average_fluid_temperature, 30.0)
        self.assertEqual(result.wall_temperature, T_GROUND)
        self.assertEqual(result.heat_transfer_rate, 0.0)
        self.assertEqual(self.history.step_count, 0)

    def test_first_step_matches_empty_history_superposition(self):
        self.history.advance(0.25)
        t_ref, r_current = self.solver.superposition_reference(self.history, 0.25, T_GROUND)
        t_ref_first, r_current_first = self.solver.first_step_reference(0.25, T_GROUND)
        self.assertEqual(t_ref, t_ref_first)
        self.assertEqual(r_current, r_current_first)

    def test_first_step(self):
        result = self.solve(0.25)
        self.assertEqual(result.state, SolverState.FIRST_STEP)

        c0 = response(0.25) / (2.0 * pi * K_GROUND)
        c2 = LENGTH / (2.0 * 0.5 * CP)
        c3 = 0.5 * CP / LENGTH
        q = (T_GROUND - 25.0) / (R_HX + c0 - c2 + 1.0 / c3)
        self.assertAlmostEqual(result.heat_extraction_rate, q, delta=1e-12)
        self.assertAlmostEqual(result.outlet_temperature, T_GROUND + (c2 - c0 - R_HX) * q, delta=1e-12)
        self.assertAlmostEqual(result.wall_temperature, T_GROUND - q * c0, delta=1e-12)
        # warm inlet rejects heat to the ground
        self.assertGreater(result.heat_transfer_rate, 0.0)
        self.assertLess(result.outlet_temperature, 25.0)
        self.assertGreater(result.outlet_temperature, T_GROUND)

    def test_energy_balance(self):
        for elapsed, inlet, m_dot in [(0.5, 30.0, 0.4), (1.0, 5.0, 0.2), (1.5, 18.0, 1.1)]:
            result = self.solve(elapsed, inlet, m_dot)
            self.assertAlmostEqual(
                result.heat_transfer_rate, m_dot * CP * (inlet - result.outlet_temperature), delta=1e-6
            )
            self.assertAlmostEqual(
                result.average_fluid_temperature, (inlet + result.outlet_temperature) / 2.0, delta=1e-9
            )

    def test_zero_flow(self):
        self.solve(0.5)
        result = self.solve(1.0, inlet=40.0, m_dot=0.0)
        self.assertEqual(result.heat_extraction_rate, 0.0)
        self.assertEqual(result.heat_transfer_rate, 0.0)
        self.assertEqual(result.outlet_temperature, 40.0)
        # fluid sits at the ground reference temperature
        self.assertEqual(result.average_fluid_temperature, result.wall_temperature)
        self.assertLess(result.average_fluid_temperature, 40.0)

    def test_repeated_time_is_idempotent(self):
        self.solve(0.5)
        first = self.solve(1.0, inlet=20.0)
        step_count = self.history.step_count
        second = self.solve(1.0, inlet=20.0)
        self.assertEqual(self.history.step_count, step_count)
        self.assertEqual(first.outlet_temperature, second.outlet_temperature)
        self.assertEqual(first.heat_extraction_rate, second.heat_extraction_rate)

    def test_second_step_superposes_first_pulse(self):
        first = self.solve(0.5)
        q1 = first.heat_extraction_rate
        self.history.advance(1.25)
        t_ref, r_current = self.solver.superposition_reference(self.history, 1.25, T_GROUND)

        two_pi_k = 2.0 * pi * K_GROUND
        expected = T_GROUND - (q1 * response(1.25) - q1 * response(0.75)) / two_pi_k
        self.assertAlmostEqual(t_ref, expected, delta=1e-12)
        self.assertAlmostEqual(r_current, response(0.75) / two_pi_k, delta=1e-15)

    def test_states(self):
        self.assertEqual(self.solve(1.0).state, SolverState.FIRST_STEP)
        self.assertEqual(self.solve(2.0).state, SolverState.SUPERPOSITION)
        aggregated_start = HRS_IN_MONTH + AGG + SUB_AGG
        for hour in range(3, aggregated_start):
            self.assertEqual(self.solve(float(hour)).state, SolverState.SUPERPOSITION)
        result = self.solve(float(aggregated_start))
        self.assertEqual(result.state, SolverState.AGGREGATED)
        self.assertTrue(np.isfinite(result.outlet_temperature))

    def test_time_moving_back_resets_history(self):
        for elapsed in [1.0, 2.0, 3.0]:
            self.solve(elapsed)
        result = self.solve(1.5)
        self.assertEqual(result.state, SolverState.FIRST_STEP)
        self.assertEqual(self.history.step_count, 1)
        self.assertEqual(self.history.num_pulses, 0)

    def test_constant_inlet_approaches_ground(self):
        # with a constant inlet the ground warms, so less heat is rejected over time
        rates = [self.solve(float(hour), inlet=30.0).heat_transfer_rate for hour in range(1, 100)]
        self.assertTrue(all(r > 0.0 for r in rates))
        self.assertLess(rates[-1], rates[0])

    def test_wall_temperature_includes_current_pulse(self):
        q1 = self.solve(0.5).heat_extraction_rate
        result = self.solve(1.25)
        q2 = result.heat_extraction_rate

        two_pi_k = 2.0 * pi * K_GROUND
        t_ref = T_GROUND - (q1 * response(1.25) - q1 * response(0.75)) / two_pi_k
        r_current = response(0.75) / two_pi_k
        self.assertAlmostEqual(result.wall_temperature, t_ref - q2 * r_current, delta=1e-9)
        self.assertAlmostEqual(result.average_fluid_temperature - result.wall_temperature, -R_HX * q2, delta=1e-9)
