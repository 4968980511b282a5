import logging
from math import log

import numpy as np
import pygfunction as gt

from ghesim.utilities import check_positive, eskilson_log_times

logger = logging.getLogger(__name__)


def borehole_radius_correction(g_values, rb: float, h: float, rb_over_h_reference: float):
    r"""
    Correct a g-function computed for one borehole radius to another radius.

    .. math::
        g(\frac{t}{t_s}, \frac{r_b}{H}) = g(\frac{t}{t_s}, \frac{r_b^*}{H}) -
        ln(\frac{r_b}{H \cdot (r_b^*/H)})

    Parameters
    ----------
    g_values: float or array
        g-function values computed at the reference ratio
    rb: float
        Borehole radius of the simulated field (m)
    h: float
        Borehole length of the simulated field (m)
    rb_over_h_reference: float
        Ratio rb/H the g-function values were computed for (-)

    Returns
    -------
    Corrected g-function values, same shape as ``g_values``.
    """
    if rb / h == rb_over_h_reference:
        return g_values
    return g_values - log(rb / (h * rb_over_h_reference))


class GFunctionTable:
    """
    Ordered (log-time, g) pairs with linear interpolation.

    Values outside the table are extrapolated along the line through the two nearest
    boundary entries, never clamped.
    """

    def __init__(self, log_time, g_values) -> None:
        self.log_time = np.asarray(log_time, dtype=float)
        self.g_values = np.asarray(g_values, dtype=float)

        if self.log_time.ndim != 1 or self.log_time.shape != self.g_values.shape:
            raise ValueError("log_time and g_values must be one dimensional and of equal length")
        if self.log_time.size < 2:  # noqa: PLR2004
            raise ValueError(f"A g-function table needs at least two entries, got {self.log_time.size}")
        if not np.all(np.diff(self.log_time) > 0.0):
            raise ValueError("g-function log_time values must be strictly increasing")
        if not np.all(np.isfinite(self.g_values)):
            raise ValueError("g-function values must be finite")

    @classmethod
    def init_from_dict(cls, g_function_props: dict) -> "GFunctionTable":
        return cls(g_function_props["log_time"], g_function_props["g_values"])

    def __len__(self) -> int:
        return int(self.log_time.size)

    def interpolate(self, x):
        """
        Evaluate the table at one or many log-time values.

        An exact hit on a table entry returns that entry. Inside the table the result lies on the
        segment between the bracketing entries; below the first or above the last entry the first
        or last segment is extended.
        """
        x_arr = np.asarray(x, dtype=float)
        lt = self.log_time
        g = self.g_values
        n = lt.size

        # index of the upper bracketing entry, kept inside [1, n - 1] so the first and last
        # segments are reused for extrapolation
        upper = np.clip(np.searchsorted(lt, x_arr, side="left"), 1, n - 1)
        lower = upper - 1
        slope = (g[upper] - g[lower]) / (lt[upper] - lt[lower])
        result = g[lower] + slope * (x_arr - lt[lower])

        exact = lt[upper] == x_arr
        result = np.where(exact, g[upper], result)

        if result.ndim == 0:
            return float(result)
        return result

    def as_dict(self) -> dict:
        return {"log_time": self.log_time.tolist(), "g_values": self.g_values.tolist()}


def calculate_rectangle_g_function(
    n_x: int,
    n_y: int,
    spacing_x: float,
    spacing_y: float,
    h: float,
    depth: float,
    r_b: float,
    alpha: float,
    log_time: list | None = None,
    boundary_condition: str = "UBWT",
) -> GFunctionTable:
    """
    Build a g-function table for a rectangular field of vertical boreholes with pygfunction.

    :param n_x: number of boreholes along x
    :param n_y: number of boreholes along y
    :param spacing_x: borehole spacing along x, m
    :param spacing_y: borehole spacing along y, m
    :param h: borehole length, m
    :param depth: buried depth of the borehole head, m
    :param r_b: borehole radius, m
    :param alpha: ground thermal diffusivity, m2/s
    :param log_time: ln(t/ts) values, Eskilson's times when omitted
    :param boundary_condition: pygfunction boundary condition
    """
    for value, name in ((h, "Borehole length"), (r_b, "Borehole radius"), (alpha, "Ground diffusivity")):
        check_positive(value, name)
    if n_x < 1 or n_y < 1:
        raise ValueError(f"A rectangular field needs at least one borehole per row, got {n_x} x {n_y}")

    if log_time is None:
        log_time = eskilson_log_times()

    ts = h**2 / (9.0 * alpha)  # Bore field characteristic time
    time_values = np.exp(log_time) * ts

    field = gt.borefield.Borefield.rectangle_field(n_x, n_y, spacing_x, spacing_y, h, depth, r_b)

    # setup options
    # none of these are exposed in the input file yet
    options = {"nSegments": 8, "disp": False}

    logger.info(f"Computing g-function for a {n_x} x {n_y} field with pygfunction")
    g_func = gt.gfunction.gFunction(
        field, alpha, time=time_values, boundary_condition=boundary_condition, options=options, method="equivalent"
    )
    return GFunctionTable(log_time, g_func.gFunc)
