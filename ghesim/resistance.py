from ghesim.constants import PI, TWO_PI
from ghesim.media import Fluid, Grout
from ghesim.pipe import Pipe

# (upper ratio bound, inclusive upper bound, B0, B1) for the grout resistance curve fit
GROUT_FIT_REGIMES = (
    (0.25, True, 14.450872, -0.8176),
    (0.5, False, 20.100377, -0.94467),
    (0.75, True, 17.44268, -0.605154),
)
GROUT_FIT_DEFAULT = (21.90587, -0.3796)


class FluidPathResistance:
    """
    Thermal resistance between the circulating fluid and the ground coupling point.

    Holds the constant geometry of one device unit (a borehole or a trench). Vertical
    boreholes pass a ``grout`` and ``borehole_radius`` so the grout annulus is included;
    slinky coils leave both as ``None``.
    """

    def __init__(self, pipe: Pipe, grout: Grout | None = None, borehole_radius: float | None = None) -> None:
        self.pipe = pipe
        self.grout = grout
        self.r_b = borehole_radius
        if (grout is None) != (borehole_radius is None):
            raise ValueError("Grout and borehole radius must be given together")
        if borehole_radius is not None and borehole_radius <= pipe.d_out:
            raise ValueError(
                f"Borehole radius ({borehole_radius}) must be larger than the pipe outer diameter ({pipe.d_out})"
            )
        self.R_p = pipe.calc_pipe_cond_resistance()
        self.R_g = self.calc_grout_resistance() if grout is not None else 0.0

    @staticmethod
    def compute_reynolds(m_flow_pipe: float, r_in: float, fluid: Fluid) -> float:
        # Hydraulic diameter
        dia_hydraulic = 2.0 * r_in
        # Fluid velocity
        vol_flow_rate = m_flow_pipe / fluid.rho
        area_cr_inner = PI * r_in**2
        velocity = vol_flow_rate / area_cr_inner
        # Reynolds number
        return fluid.rho * velocity * dia_hydraulic / fluid.mu

    @staticmethod
    def compute_nusselt(reynolds: float, prandtl: float) -> float:
        # Dittus-Boelter
        return 0.023 * reynolds**0.8 * prandtl**0.35

    @staticmethod
    def compute_fluid_resistance(h_conv: float, radius: float) -> float:
        return 1 / (h_conv * TWO_PI * radius)

    def calc_conv_resistance(self, m_flow_unit: float, fluid: Fluid) -> float:
        """
        Convective resistance of the two pipe legs in parallel.

        :param m_flow_unit: mass flow rate through one borehole or trench, kg/s
        :param fluid: fluid with properties evaluated at the current temperature
        :return: convective resistance, m-K/W. Zero when there is no flow.
        """
        if m_flow_unit <= 0.0:
            return 0.0
        r_in = self.pipe.r_in
        reynolds = self.compute_reynolds(m_flow_unit, r_in, fluid)
        prandtl = fluid.prandtl()
        nusselt = self.compute_nusselt(reynolds, prandtl)
        h_conv = nusselt * fluid.k / (2.0 * r_in)
        return self.compute_fluid_resistance(h_conv, r_in) / 2.0

    def calc_grout_resistance(self) -> float:
        max_distance = 2.0 * self.r_b - 2.0 * self.pipe.d_out
        ratio = self.pipe.s / max_distance

        b0, b1 = GROUT_FIT_DEFAULT
        if ratio >= 0.0:
            for upper, inclusive, fit_b0, fit_b1 in GROUT_FIT_REGIMES:
                if ratio < upper or (inclusive and ratio == upper):
                    b0, b1 = fit_b0, fit_b1
                    break

        return 1.0 / (self.grout.k * b0 * (self.r_b / self.pipe.r_out) ** b1)

    def calc_total_resistance(self, m_flow_unit: float, fluid: Fluid) -> float:
        return self.calc_conv_resistance(m_flow_unit, fluid) + self.R_p + self.R_g

    def as_dict(self) -> dict:
        return {
            "pipe_conduction_resistance": {"value": self.R_p, "units": "m-K/W"},
            "grout_resistance": {"value": self.R_g, "units": "m-K/W"},
        }
