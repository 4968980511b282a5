import logging
from math import ceil, log, sqrt

import numpy as np
from scipy.integrate import simpson
from scipy.special import erfc

from ghesim.constants import FOUR_PI, HRS_IN_YEAR, PI, SEC_IN_HR, TWO_PI
from ghesim.enums import CoilOrientation
from ghesim.gfunction import GFunctionTable
from ghesim.utilities import check_positive

logger = logging.getLogger(__name__)

# Simpson 1/3 node counts, all odd
NUM_NODES_SOURCE = 33
NUM_NODES_OBSERVER = 561
NUM_NODES_SELF = 1089

# distance limits (m), offset by the coil diameter
NEAR_FIELD_LIMIT = 2.5
FAR_FIELD_LIMIT = 10.0

# log10(hours) time grid
LOG_TIME_MIN = -2.0
LOG_TIME_STEP = 0.25


class RingSourceIntegrator:
    """
    Computes the g-function of a slinky coil field from ring-source theory.

    Every coil loop is a ring heat source of diameter ``coil_diameter`` centred at
    ``(pitch * (n - 1), trench_spacing * (m - 1), coil_depth)`` for trench ``m`` and coil ``n``.
    The temperature response at each observation ring is the sum of the responses to all source
    rings, with a mirror source above the ground surface holding the surface temperature fixed.

    With ``use_symmetry`` only one quadrant (or half, for a single trench) of observation rings is
    evaluated and weighted back up to the full field.
    """

    def __init__(
        self,
        num_trenches: int,
        num_coils: int,
        coil_pitch: float,
        trench_spacing: float,
        coil_depth: float,
        coil_diameter: float,
        pipe_outer_radius: float,
        alpha: float,
        max_sim_years: int,
        orientation: CoilOrientation = CoilOrientation.HORIZONTAL,
        use_symmetry: bool = True,
    ) -> None:
        if num_trenches < 1 or num_coils < 1:
            raise ValueError(f"A coil field needs at least one trench and one coil, got {num_trenches} x {num_coils}")
        for value, name in (
            (coil_pitch, "Coil pitch"),
            (coil_depth, "Coil depth"),
            (coil_diameter, "Coil diameter"),
            (pipe_outer_radius, "Pipe outer radius"),
            (alpha, "Ground diffusivity"),
            (max_sim_years, "Maximum simulation years"),
        ):
            check_positive(value, name)
        if pipe_outer_radius >= coil_diameter / 2.0:
            raise ValueError("Pipe outer radius must be smaller than the coil radius")
        if num_trenches > 1:
            check_positive(trench_spacing, "Trench spacing")

        self.num_trenches = num_trenches
        self.num_coils = num_coils
        self.pitch = coil_pitch
        self.trench_spacing = trench_spacing
        self.depth = coil_depth
        self.diameter = coil_diameter
        self.r_coil = coil_diameter / 2.0
        self.r_pipe = pipe_outer_radius
        self.alpha = alpha
        self.max_sim_years = max_sim_years
        self.orientation = orientation
        self.use_symmetry = use_symmetry

        self._cache: dict[tuple[int, int], float] = {}
        self._g_function: GFunctionTable | None = None

    # Geometry
    # --------
    def ring_center(self, m: int, n: int) -> tuple[float, float, float]:
        return self.pitch * (n - 1), self.trench_spacing * (m - 1), self.depth

    def center_distance(self, m: int, n: int, m1: int, n1: int) -> float:
        x, y, _ = self.ring_center(m, n)
        x1, y1, _ = self.ring_center(m1, n1)
        return sqrt((x - x1) ** 2 + (y - y1) ** 2)

    def node_counts(self, m: int, n: int, m1: int, n1: int) -> tuple[int, int]:
        if m == m1 and n == n1:
            return NUM_NODES_SOURCE, NUM_NODES_SELF
        return NUM_NODES_SOURCE, NUM_NODES_OBSERVER

    def observer_rings(self) -> list[tuple[int, int, float]]:
        """Observation rings as (trench, coil, weight) tuples."""
        if not self.use_symmetry:
            return [(m1, n1, 1.0) for m1 in range(1, self.num_trenches + 1) for n1 in range(1, self.num_coils + 1)]

        num_rc = ceil(self.num_trenches / 2)
        num_lc = ceil(self.num_coils / 2)
        odd_trenches = self.num_trenches % 2 == 1
        odd_coils = self.num_coils % 2 == 1
        several_trenches = self.num_trenches > 1

        rings = []
        for m1 in range(1, num_rc + 1):
            for n1 in range(1, num_lc + 1):
                on_trench_axis = odd_trenches and m1 == num_rc and several_trenches
                on_coil_axis = odd_coils and n1 == num_lc
                if on_trench_axis and on_coil_axis:
                    weight = 0.25
                elif on_trench_axis or on_coil_axis:
                    weight = 0.5
                else:
                    weight = 1.0
                rings.append((m1, n1, weight))
        return rings

    def field_fraction(self) -> float:
        if not self.use_symmetry:
            return 1.0
        return 0.25 if self.num_trenches > 1 else 0.5

    # Kernels
    # -------
    def _point_distances(self, m: int, n: int, m1: int, n1: int, eta, theta):
        """
        Mean distance from observation points on ring (m, n) to the inner and outer pipe wall
        points of ring (m1, n1), and the same for the mirror image of ring (m1, n1).
        """
        x0, y0, z0 = self.ring_center(m, n)
        x1, y1, z1 = self.ring_center(m1, n1)
        r_in = self.r_coil - self.r_pipe
        r_out = self.r_coil + self.r_pipe

        x = x0 + np.cos(theta) * self.r_coil
        x_in = x1 + np.cos(eta) * r_in
        x_out = x1 + np.cos(eta) * r_out

        if self.orientation == CoilOrientation.HORIZONTAL:
            y = y0 + np.sin(theta) * self.r_coil
            y_in = y1 + np.sin(eta) * r_in
            y_out = y1 + np.sin(eta) * r_out
            d = 0.5 * np.hypot(x - x_in, y - y_in) + 0.5 * np.hypot(x - x_out, y - y_out)
            d_image = np.sqrt(d**2 + 4.0 * self.depth**2)
            return d, d_image

        dy2 = (y1 - y0) ** 2
        z = z0 + np.sin(theta) * self.r_coil
        z_in = z1 + np.sin(eta) * r_in
        z_out = z1 + np.sin(eta) * r_out
        d = 0.5 * np.sqrt((x - x_in) ** 2 + dy2 + (z - z_in) ** 2)
        d = d + 0.5 * np.sqrt((x - x_out) ** 2 + dy2 + (z - z_out) ** 2)
        d_image = 0.5 * np.sqrt((x - x_in) ** 2 + dy2 + (z + z_in) ** 2)
        d_image = d_image + 0.5 * np.sqrt((x - x_out) ** 2 + dy2 + (z + z_out) ** 2)
        return d, d_image

    def _erfc_kernel(self, d, d_image, time_sec: float):
        sqrt_alpha_t = 2.0 * sqrt(self.alpha * time_sec)
        return erfc(d / sqrt_alpha_t) / d - erfc(d_image / sqrt_alpha_t) / d_image

    def near_field_response(self, m: int, n: int, m1: int, n1: int, time_sec: float) -> float:
        num_eta, num_theta = self.node_counts(m, n, m1, n1)
        eta = np.linspace(0.0, TWO_PI, num_eta)
        theta = np.linspace(0.0, TWO_PI, num_theta)
        d, d_image = self._point_distances(m, n, m1, n1, eta[:, np.newaxis], theta[np.newaxis, :])
        kernel = self._erfc_kernel(d, d_image, time_sec)
        inner = simpson(kernel, x=theta, axis=1)
        return float(simpson(inner, x=eta))

    def mid_field_response(self, m: int, n: int, m1: int, n1: int, time_sec: float) -> float:
        d = self.center_distance(m, n, m1, n1)
        d_image = sqrt(d**2 + 4.0 * self.depth**2)
        return 4.0 * PI**2 * float(self._erfc_kernel(d, d_image, time_sec))

    def ring_pair_response(self, m: int, n: int, m1: int, n1: int, time_sec: float) -> float:
        key = (abs(m - m1), abs(n - n1))
        if key in self._cache:
            return self._cache[key]

        d = self.center_distance(m, n, m1, n1)
        if d <= NEAR_FIELD_LIMIT + self.diameter:
            value = self.near_field_response(m, n, m1, n1, time_sec)
        elif d > FAR_FIELD_LIMIT + self.diameter:
            value = 0.0
        else:
            value = self.mid_field_response(m, n, m1, n1, time_sec)

        self._cache[key] = value
        return value

    # Assembly
    # --------
    def log10_time_grid(self) -> np.ndarray:
        log_time_max = np.log10(self.max_sim_years * HRS_IN_YEAR)
        num_pairs = int((log_time_max - LOG_TIME_MIN) / LOG_TIME_STEP) + 1
        return LOG_TIME_MIN + LOG_TIME_STEP * np.arange(num_pairs)

    def g_function_value(self, time_sec: float) -> float:
        self._cache.clear()
        total = 0.0
        for m1, n1, weight in self.observer_rings():
            for m in range(1, self.num_trenches + 1):
                for n in range(1, self.num_coils + 1):
                    total += weight * self.ring_pair_response(m, n, m1, n1, time_sec)

        fraction = self.field_fraction()
        return total * self.r_coil / (FOUR_PI * fraction * self.num_trenches * self.num_coils)

    def calc_g_function(self) -> GFunctionTable:
        """
        Evaluate the field g-function on the log-time grid, once.

        The returned table uses ln(hours) as its log-time axis. Later calls return the table
        from the first call.
        """
        if self._g_function is not None:
            return self._g_function

        log10_hours = self.log10_time_grid()
        logger.info(
            f"Computing ring-source g-function for {self.num_trenches} trench(es) x {self.num_coils} coils "
            f"at {log10_hours.size} times"
        )
        g_values = [self.g_function_value(10.0**lt * SEC_IN_HR) for lt in log10_hours]
        self._g_function = GFunctionTable(log10_hours * log(10.0), g_values)
        return self._g_function

    @property
    def g_function(self) -> GFunctionTable | None:
        return self._g_function
