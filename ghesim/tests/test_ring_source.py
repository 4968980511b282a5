from math import isfinite, pi, sqrt

import numpy as np
import pytest
from scipy.special import erfc

from ghesim.enums import CoilOrientation
from ghesim.ring_source import NUM_NODES_OBSERVER, NUM_NODES_SELF, NUM_NODES_SOURCE, RingSourceIntegrator

ALPHA = 1.08 / 2.0736e6
ONE_MONTH = 730.0 * 3600.0


def make_integrator(
    num_trenches=3, num_coils=3, use_symmetry=True, orientation=CoilOrientation.HORIZONTAL, coil_depth=1.5
):
    return RingSourceIntegrator(
        num_trenches=num_trenches,
        num_coils=num_coils,
        coil_pitch=0.5,
        trench_spacing=2.0,
        coil_depth=coil_depth,
        coil_diameter=0.9,
        pipe_outer_radius=0.013335,
        alpha=ALPHA,
        max_sim_years=1,
        orientation=orientation,
        use_symmetry=use_symmetry,
    )


def test_self_response_uses_fine_nodes():
    integrator = make_integrator()
    assert integrator.node_counts(2, 2, 2, 2) == (NUM_NODES_SOURCE, NUM_NODES_SELF)
    assert integrator.node_counts(1, 1, 1, 2) == (NUM_NODES_SOURCE, NUM_NODES_OBSERVER)
    assert NUM_NODES_SOURCE % 2 == 1 and NUM_NODES_OBSERVER % 2 == 1 and NUM_NODES_SELF % 2 == 1


@pytest.mark.parametrize("orientation", [CoilOrientation.HORIZONTAL, CoilOrientation.VERTICAL])
def test_self_response_is_finite(orientation):
    integrator = make_integrator(orientation=orientation)
    previous = 0.0
    for hours in [0.01, 1.0, 100.0, 8760.0]:
        value = integrator.near_field_response(1, 1, 1, 1, hours * 3600.0)
        assert isfinite(value)
        assert value > previous
        previous = value


def test_far_field_is_zero():
    integrator = make_integrator(num_trenches=1, num_coils=40)
    # coils 30 pitches apart are 15 m apart
    assert integrator.center_distance(1, 1, 1, 31) == pytest.approx(15.0)
    assert integrator.ring_pair_response(1, 1, 1, 31, ONE_MONTH) == 0.0


def test_mid_field_uses_center_distance():
    integrator = make_integrator(num_trenches=1, num_coils=40)
    d = integrator.center_distance(1, 1, 1, 11)
    assert 2.5 + 0.9 < d <= 10.0 + 0.9
    sqrt_alpha_t = 2.0 * sqrt(ALPHA * ONE_MONTH)
    d_image = sqrt(d**2 + 4.0 * 1.5**2)
    expected = 4.0 * pi**2 * (erfc(d / sqrt_alpha_t) / d - erfc(d_image / sqrt_alpha_t) / d_image)
    assert integrator.ring_pair_response(1, 1, 1, 11, ONE_MONTH) == pytest.approx(expected)


def test_mid_field_approximates_the_double_integral():
    # deep coils so the image term is negligible, and long times so the ring size hardly matters
    integrator = make_integrator(num_trenches=1, num_coils=40, coil_depth=20.0)
    one_year = 8760.0 * 3600.0
    near = integrator.near_field_response(1, 1, 1, 11, one_year)
    mid = integrator.mid_field_response(1, 1, 1, 11, one_year)
    assert mid == pytest.approx(near, rel=0.05)


def test_quadrant_weights_for_odd_field():
    integrator = make_integrator()
    assert integrator.observer_rings() == [
        (1, 1, 1.0),
        (1, 2, 0.5),
        (2, 1, 0.5),
        (2, 2, 0.25),
    ]
    assert integrator.field_fraction() == 0.25


def test_single_trench_uses_half_field():
    integrator = make_integrator(num_trenches=1, num_coils=5)
    assert integrator.field_fraction() == 0.5
    assert integrator.observer_rings() == [(1, 1, 1.0), (1, 2, 1.0), (1, 3, 0.5)]


@pytest.mark.parametrize("num_trenches, num_coils", [(3, 3), (1, 3), (2, 4)])
def test_symmetry_matches_brute_force(num_trenches, num_coils):
    quadrant = make_integrator(num_trenches, num_coils, use_symmetry=True)
    full = make_integrator(num_trenches, num_coils, use_symmetry=False)
    for time_sec in [3600.0, ONE_MONTH]:
        assert quadrant.g_function_value(time_sec) == pytest.approx(full.g_function_value(time_sec), rel=1e-9)


def test_cache_is_keyed_by_offset():
    integrator = make_integrator()
    integrator.g_function_value(ONE_MONTH)
    # a 3 x 3 field has 3 x 3 distinct (|dm|, |dn|) offsets
    assert set(integrator._cache.keys()) == {(dm, dn) for dm in range(3) for dn in range(3)}


def test_g_function_table():
    integrator = make_integrator(num_trenches=1, num_coils=4)
    table = integrator.calc_g_function()
    # log10(hours) from -2 to log10(8760) in steps of 0.25
    assert len(table) == 24
    assert table.log_time[0] == pytest.approx(-2.0 * np.log(10.0))
    assert np.all(np.isfinite(table.g_values))
    assert np.all(np.diff(table.g_values) > 0.0)


def test_g_function_is_computed_once(monkeypatch):
    integrator = make_integrator(num_trenches=1, num_coils=2)
    first = integrator.calc_g_function()

    def fail(_time_sec):
        raise AssertionError("g-function was recomputed")

    monkeypatch.setattr(integrator, "g_function_value", fail)
    assert integrator.calc_g_function() is first
    assert integrator.g_function is first


def test_invalid_geometry_raises():
    with pytest.raises(ValueError):
        make_integrator(num_trenches=0)
    with pytest.raises(ValueError):
        RingSourceIntegrator(1, 3, 0.5, 0.0, 1.5, 0.02, 0.013335, ALPHA, 1)
