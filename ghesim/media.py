from scp.ethyl_alcohol import EthylAlcohol
from scp.ethylene_glycol import EthyleneGlycol
from scp.methyl_alcohol import MethylAlcohol
from scp.propylene_glycol import PropyleneGlycol
from scp.water import Water

from ghesim.enums import FluidType


class Fluid:
    """
    Circulating fluid with temperature dependent properties.

    Properties are evaluated by SecondaryCoolantProps and cached on the instance; call
    ``update_props_with_new_temp`` whenever the fluid temperature changes.
    """

    def __init__(self, fluid_name: str, temperature: float = 20, percent: float = 0) -> None:
        self.name = fluid_name
        self.fluid_type = self.get_fluid_type(fluid_name)
        self.concentration_percent = percent

        if self.fluid_type != FluidType.WATER and not 0 <= percent <= 100:  # noqa: PLR2004
            raise ValueError(f"Fluid concentration {percent} must be between 0 and 100 percent")

        concentration_frac = self.concentration_percent / 100
        match self.fluid_type:
            case FluidType.ETHYLALCOHOL:
                self._fluid = EthylAlcohol(concentration_frac)
            case FluidType.ETHYLENEGLYCOL:
                self._fluid = EthyleneGlycol(concentration_frac)
            case FluidType.METHYLALCOHOL:
                self._fluid = MethylAlcohol(concentration_frac)
            case FluidType.PROPYLENEGLYCOL:
                self._fluid = PropyleneGlycol(concentration_frac)
            case _:
                self._fluid = Water()

        # supported props
        self.temperature: float = temperature
        self.cp: float = 0.0
        self.k: float = 0.0
        self.mu: float = 0.0
        self.rho: float = 0.0
        self.rho_cp: float = 0.0
        self.update_props_with_new_temp(temperature)

    @classmethod
    def init_from_dict(cls, fluid_props: dict) -> "Fluid":
        return cls(
            fluid_props["fluid_name"],
            temperature=fluid_props.get("temperature", 20),
            percent=fluid_props.get("concentration_percent", 0),
        )

    @staticmethod
    def get_fluid_type(fluid_name: str) -> FluidType:
        fluid_name_upper = fluid_name.upper()
        if fluid_name_upper in ["MEA", "ETHYLALCOHOL", "ETHYL ALCOHOL"]:
            return FluidType.ETHYLALCOHOL
        if fluid_name_upper in ["MEG", "ETHYLENEGLYCOL", "ETHYLENE GLYCOL"]:
            return FluidType.ETHYLENEGLYCOL
        if fluid_name_upper in ["MMA", "METHYLALCOHOL", "METHYL ALCOHOL"]:
            return FluidType.METHYLALCOHOL
        if fluid_name_upper in ["MPG", "PROPYLENEGLYCOL", "PROPYLENE GLYCOL"]:
            return FluidType.PROPYLENEGLYCOL
        if fluid_name_upper == "WATER":
            return FluidType.WATER

        raise ValueError(f'Unsupported fluid type "{fluid_name}"')

    def update_props_with_new_temp(self, temperature: float) -> None:
        self.temperature = temperature
        self.cp = self._fluid.cp(temperature)
        self.k = self._fluid.k(temperature)
        self.mu = self._fluid.mu(temperature)
        self.rho = self._fluid.rho(temperature)
        self.rho_cp = self.rho * self.cp

    def prandtl(self) -> float:
        return self.cp * self.mu / self.k

    def as_dict(self) -> dict:
        return {
            "fluid_name": self.name,
            "concentration_percent": {"value": self.concentration_percent, "units": "%"},
            "temperature": {"value": self.temperature, "units": "C"},
        }


class ThermalProperty:
    def __init__(self, k: float, rho_cp: float) -> None:
        if k <= 0.0:
            raise ValueError(f"Thermal conductivity must be positive, got {k}")
        if rho_cp <= 0.0:
            raise ValueError(f"Volumetric heat capacity must be positive, got {rho_cp}")
        self.k = k  # Thermal conductivity (W/m.K)
        self.rho_cp = rho_cp  # Volumetric heat capacity (J/K.m3)

    def as_dict(self) -> dict:
        output = {
            "type": self.__class__.__name__,
            "thermal_conductivity": {"value": self.k, "units": "W/m-K"},
            "volumetric_heat_capacity": {"value": self.rho_cp, "units": "J/K-m3"},
        }
        return output


class Grout(ThermalProperty):
    pass


class Soil(ThermalProperty):
    def __init__(self, k: float, rho_cp: float) -> None:
        super().__init__(k, rho_cp)
        self.alpha = k / rho_cp  # m2/s

    def as_dict(self) -> dict:
        output = super().as_dict()
        output["thermal_diffusivity"] = {"value": self.alpha, "units": "m2/s"}
        return output
