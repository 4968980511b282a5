import pytest

from ghesim.ground_temperature import (
    ConstantGroundTemperature,
    KusudaAchenbachGroundTemperature,
    ground_temperature_from_dict,
)

ALPHA = 1.08 / 2.0736e6
MONTHLY = [1.5, 2.8, 7.1, 12.6, 17.8, 22.5, 24.9, 24.2, 20.1, 13.9, 7.8, 2.9]


def test_constant():
    model = ConstantGroundTemperature(13.0)
    assert model.get_temp(1.5, 1) == 13.0
    assert model.get_temp(100.0, 200) == 13.0


def test_surface_follows_annual_wave():
    model = KusudaAchenbachGroundTemperature(12.0, 8.0, 20.0, ALPHA)
    # coldest on the phase shift day, warmest half a year later
    assert model.get_temp(0.0, 20.0) == pytest.approx(4.0)
    assert model.get_temp(0.0, 20.0 + 365.0 / 2.0) == pytest.approx(20.0)


def test_wave_is_damped_with_depth():
    model = KusudaAchenbachGroundTemperature(12.0, 8.0, 20.0, ALPHA)
    shallow = [model.get_temp(0.5, day) for day in range(1, 366)]
    deep = [model.get_temp(5.0, day) for day in range(1, 366)]
    very_deep = [model.get_temp(50.0, day) for day in range(1, 366)]
    assert max(deep) - min(deep) < max(shallow) - min(shallow)
    assert max(very_deep) == pytest.approx(12.0, abs=1e-3)
    assert min(very_deep) == pytest.approx(12.0, abs=1e-3)


def test_fit_to_monthly_surface_temperatures():
    model = KusudaAchenbachGroundTemperature.init_from_surface_temperatures(MONTHLY, ALPHA)
    mean = sum(MONTHLY) / 12.0
    assert model.average_temp == pytest.approx(mean)
    assert model.amplitude == pytest.approx(sum(abs(t - mean) for t in MONTHLY) / 12.0)
    # January is the coldest month
    assert model.phase_shift_days == pytest.approx(365.0 / 12.0)

    with pytest.raises(ValueError):
        KusudaAchenbachGroundTemperature.init_from_surface_temperatures(MONTHLY[:11], ALPHA)


def test_fit_takes_last_of_tied_coldest_months():
    tied = list(MONTHLY)
    tied[11] = tied[0]
    model = KusudaAchenbachGroundTemperature.init_from_surface_temperatures(tied, ALPHA)
    assert model.phase_shift_days == pytest.approx(12 * 365.0 / 12.0)

    february = [5.0, 1.0, 1.0] + [10.0] * 9
    model = KusudaAchenbachGroundTemperature.init_from_surface_temperatures(february, ALPHA)
    assert model.phase_shift_days == pytest.approx(3 * 365.0 / 12.0)


def test_from_dict():
    constant = ground_temperature_from_dict({"type": "CONSTANT", "temperature": 15.0}, ALPHA)
    assert isinstance(constant, ConstantGroundTemperature)

    fitted = ground_temperature_from_dict({"type": "KUSUDA_ACHENBACH", "monthly_surface_temperatures": MONTHLY}, ALPHA)
    assert isinstance(fitted, KusudaAchenbachGroundTemperature)

    explicit = ground_temperature_from_dict(
        {"type": "kusuda_achenbach", "average_temperature": 10.0, "amplitude": 5.0, "phase_shift_days": 30.0}, ALPHA
    )
    assert explicit.as_dict()["phase_shift"]["value"] == 30.0


@pytest.mark.parametrize(
    "props",
    [
        {"type": "CONSTANT"},
        {"type": "KUSUDA_ACHENBACH", "average_temperature": 10.0},
        {"type": "RANDOM", "temperature": 10.0},
    ],
)
def test_from_dict_errors(props):
    with pytest.raises(ValueError):
        ground_temperature_from_dict(props, ALPHA)


def test_invalid_model():
    with pytest.raises(ValueError):
        KusudaAchenbachGroundTemperature(12.0, -1.0, 0.0, ALPHA)
    with pytest.raises(ValueError):
        KusudaAchenbachGroundTemperature(12.0, 8.0, 0.0, 0.0)
