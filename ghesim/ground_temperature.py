from math import cos, exp, sqrt

import numpy as np

from ghesim.constants import DAYS_IN_YEAR, MONTHS_IN_YEAR, PI, SEC_IN_DAY, TWO_PI


class ConstantGroundTemperature:
    def __init__(self, temperature: float) -> None:
        self.temperature = temperature

    def get_temp(self, _depth: float, _day_of_year: float) -> float:
        return self.temperature

    def as_dict(self) -> dict:
        return {"type": "CONSTANT", "temperature": {"value": self.temperature, "units": "C"}}


class KusudaAchenbachGroundTemperature:
    """
    Undisturbed ground temperature as a damped, lagged annual wave (Kusuda and Achenbach, 1965).

    :param average_temp: annual mean ground surface temperature, C
    :param amplitude: amplitude of the surface temperature wave, K
    :param phase_shift_days: day of the year with the minimum surface temperature
    :param alpha: ground thermal diffusivity, m2/s
    """

    def __init__(self, average_temp: float, amplitude: float, phase_shift_days: float, alpha: float) -> None:
        if amplitude < 0.0:
            raise ValueError(f"Surface temperature amplitude must not be negative, got {amplitude}")
        if alpha <= 0.0:
            raise ValueError(f"Ground diffusivity must be positive, got {alpha}")
        self.average_temp = average_temp
        self.amplitude = amplitude
        self.phase_shift_days = phase_shift_days
        self.alpha = alpha

    @classmethod
    def init_from_surface_temperatures(cls, monthly_temps: list[float], alpha: float):
        """Fit the model to twelve monthly mean surface temperatures."""
        if len(monthly_temps) != MONTHS_IN_YEAR:
            raise ValueError(f"Expected {MONTHS_IN_YEAR} monthly surface temperatures, got {len(monthly_temps)}")
        temps = np.asarray(monthly_temps, dtype=float)
        average_temp = float(np.mean(temps))
        amplitude = float(np.mean(np.abs(temps - average_temp)))
        # 1-based month number, last one on ties
        coldest_month = MONTHS_IN_YEAR - int(np.argmin(temps[::-1]))
        phase_shift_days = coldest_month * DAYS_IN_YEAR / MONTHS_IN_YEAR
        return cls(average_temp, amplitude, phase_shift_days, alpha)

    @classmethod
    def init_from_dict(cls, props: dict, alpha: float):
        if "monthly_surface_temperatures" in props:
            return cls.init_from_surface_temperatures(props["monthly_surface_temperatures"], alpha)
        try:
            return cls(props["average_temperature"], props["amplitude"], props["phase_shift_days"], alpha)
        except KeyError as err:
            raise ValueError(
                "Kusuda-Achenbach ground temperature needs either 'monthly_surface_temperatures' or "
                f"'average_temperature', 'amplitude' and 'phase_shift_days'; missing {err}"
            ) from err

    def get_temp(self, depth: float, day_of_year: float) -> float:
        period = DAYS_IN_YEAR * SEC_IN_DAY
        term1 = -depth * sqrt(PI / (period * self.alpha))
        term2 = (TWO_PI / period) * (
            (day_of_year - self.phase_shift_days) * SEC_IN_DAY - (depth / 2.0) * sqrt(period / (PI * self.alpha))
        )
        return self.average_temp - self.amplitude * exp(term1) * cos(term2)

    def as_dict(self) -> dict:
        return {
            "type": "KUSUDA_ACHENBACH",
            "average_temperature": {"value": self.average_temp, "units": "C"},
            "amplitude": {"value": self.amplitude, "units": "K"},
            "phase_shift": {"value": self.phase_shift_days, "units": "days"},
        }


def ground_temperature_from_dict(props: dict, alpha: float):
    """Build the ground temperature model described by an input dictionary."""
    model_type = props.get("type", "CONSTANT").upper()
    match model_type:
        case "CONSTANT":
            if "temperature" not in props:
                raise ValueError("Constant ground temperature requires 'temperature'")
            return ConstantGroundTemperature(props["temperature"])
        case "KUSUDA_ACHENBACH":
            return KusudaAchenbachGroundTemperature.init_from_dict(props, alpha)
        case _:
            raise ValueError(f"Ground temperature model {model_type} not recognized.")
