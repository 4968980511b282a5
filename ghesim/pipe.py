from math import log

from ghesim.constants import TWO_PI
from ghesim.media import ThermalProperty
from ghesim.utilities import check_arg_bounds, check_positive

HDPE_RHO_CP = 1.542e6  # J/K.m3


class Pipe(ThermalProperty):
    """
    A single circular pipe leg, described by its outer diameter and wall thickness.

    Vertical boreholes hold two legs of a U-tube separated by ``shank_spacing``. Slinky coils
    are a single continuous leg, so ``shank_spacing`` stays ``None``.
    """

    def __init__(
        self,
        conductivity: float,
        outer_diameter: float,
        thickness: float,
        shank_spacing: float | None = None,
        rho_cp: float = HDPE_RHO_CP,
    ) -> None:
        super().__init__(conductivity, rho_cp)
        check_positive(outer_diameter, "Pipe outer diameter")
        check_positive(thickness, "Pipe wall thickness")
        check_arg_bounds(thickness, outer_diameter / 2.0, "Pipe wall thickness", "pipe outer radius")

        self.d_out = outer_diameter
        self.thickness = thickness
        self.d_in = outer_diameter - 2.0 * thickness
        self.r_out = outer_diameter / 2.0
        self.r_in = self.d_in / 2.0
        self.s = shank_spacing

    @classmethod
    def init_u_tube(
        cls, conductivity: float, outer_diameter: float, thickness: float, shank_spacing: float, **kwargs
    ) -> "Pipe":
        if shank_spacing < 0.0:
            raise ValueError(f"U-tube shank spacing must not be negative, got {shank_spacing}")
        return cls(conductivity, outer_diameter, thickness, shank_spacing=shank_spacing, **kwargs)

    @classmethod
    def init_from_dict(cls, pipe_props: dict) -> "Pipe":
        kwargs = {}
        if "rho_cp" in pipe_props:
            kwargs["rho_cp"] = pipe_props["rho_cp"]
        if "shank_spacing" in pipe_props:
            return cls.init_u_tube(
                pipe_props["conductivity"],
                pipe_props["outer_diameter"],
                pipe_props["thickness"],
                pipe_props["shank_spacing"],
                **kwargs,
            )
        return cls(pipe_props["conductivity"], pipe_props["outer_diameter"], pipe_props["thickness"], **kwargs)

    def calc_pipe_cond_resistance(self) -> float:
        # two legs share the conduction path
        return log(self.r_out / self.r_in) / (TWO_PI * self.k) / 2.0

    def as_dict(self) -> dict:
        output = {
            "base": super().as_dict(),
            "pipe_outer_diameter": {"value": self.d_out, "units": "m"},
            "pipe_inner_diameter": {"value": self.d_in, "units": "m"},
            "pipe_wall_thickness": {"value": self.thickness, "units": "m"},
        }
        if self.s is not None:
            output["shank_spacing_pipe_to_pipe"] = {"value": self.s, "units": "m"}
        return output
