import logging
from dataclasses import dataclass

import numpy as np

from ghesim.constants import AGG, HRS_IN_MONTH, MAX_TS_IN_HR, MONTHS_IN_YEAR, SUB_AGG

logger = logging.getLogger(__name__)


class HistoryBuffer:
    """
    Fixed capacity ring buffer read most-recent-first.

    Index 0 is the latest value pushed. Pushing onto a full buffer overwrites the oldest value.
    Unwritten slots read as zero.
    """

    def __init__(self, size: int, dtype=float) -> None:
        if size < 1:
            raise ValueError(f"History buffer size must be positive, got {size}")
        self.size = size
        self._data = np.zeros(size, dtype=dtype)
        self._head = 0

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, i: int):
        if not 0 <= i < self.size:
            raise IndexError(f"History index {i} out of range for buffer of size {self.size}")
        return self._data[(self._head + i) % self.size]

    def push(self, value) -> None:
        self._head = (self._head - 1) % self.size
        self._data[self._head] = value

    def values(self, count: int | None = None) -> np.ndarray:
        """Return the ``count`` most recent values, newest first."""
        if count is None:
            count = self.size
        count = min(count, self.size)
        return self._data[(self._head + np.arange(count)) % self.size]

    def reset(self) -> None:
        self._data[:] = 0
        self._head = 0


@dataclass
class SuperpositionTerms:
    # step changes in heat extraction rate (W/m) and the hours elapsed since each step
    steps: np.ndarray
    elapsed: np.ndarray
    # heat extraction rate in effect just before the current pulse (W/m)
    previous_level: float
    # hours since the current pulse started
    current_duration: float
    aggregated: bool


class LoadHistory:
    """
    Heat pulse history of one device at three time resolutions.

    Pulses of the last ``SUB_AGG`` completed hours and of the current hour are kept as they were
    solved. Older pulses are represented by hourly averages, and once enough hours have elapsed,
    by monthly averages of ``HRS_IN_MONTH`` hours. Pulse ``i`` in the sub-hourly buffer spans
    ``[timestamps[i + 2], timestamps[i + 1]]``; ``timestamps[0]`` is the current time.
    """

    def __init__(self, max_sim_years: int = 1) -> None:
        if max_sim_years < 1:
            raise ValueError(f"Maximum simulation years must be at least 1, got {max_sim_years}")
        self.max_sim_years = max_sim_years
        self.sub_hourly_capacity = (SUB_AGG + 1) * MAX_TS_IN_HR + 1
        self.hourly_capacity = HRS_IN_MONTH + AGG + SUB_AGG
        self.monthly_capacity = max_sim_years * MONTHS_IN_YEAR

        self.q_sub_hourly = HistoryBuffer(self.sub_hourly_capacity)
        self.timestamps = HistoryBuffer(self.sub_hourly_capacity + 2)
        self.q_hourly = HistoryBuffer(self.hourly_capacity)
        self.bucket_boundary_index = HistoryBuffer(SUB_AGG + 1, dtype=int)
        self.q_monthly: list[float] = []

        self.step_count = 0
        self.num_pulses = 0
        self.hours_completed = 0
        self.pending_q: float | None = None
        self._monthly_overflow_logged = False

    def reset(self) -> None:
        self.q_sub_hourly.reset()
        self.timestamps.reset()
        self.q_hourly.reset()
        self.bucket_boundary_index.reset()
        self.q_monthly = []
        self.step_count = 0
        self.num_pulses = 0
        self.hours_completed = 0
        self.pending_q = None
        self._monthly_overflow_logged = False

    @property
    def current_time(self) -> float:
        return float(self.timestamps[0])

    @property
    def previous_time(self) -> float:
        return float(self.timestamps[1])

    def is_new_time(self, elapsed_hours: float) -> bool:
        return self.step_count == 0 or elapsed_hours != self.current_time

    def advance(self, elapsed_hours: float) -> bool:
        """
        Move the history to ``elapsed_hours``.

        A time equal to the last one seen leaves the history untouched. A new time pushes the
        pulse solved at the previous time and folds any completed hours and months.

        :return: True when the history moved to a new time
        """
        if not self.is_new_time(elapsed_hours):
            return False

        self.timestamps.push(elapsed_hours)
        self.step_count += 1
        if self.pending_q is not None:
            self.q_sub_hourly.push(self.pending_q)
            self.num_pulses += 1
            self.pending_q = None
            self._aggregate_completed_hours()
        return True

    def record(self, q: float) -> None:
        """Store the pulse solved at the current time; it is pushed at the next new time."""
        self.pending_q = q

    def _pulses_since_last_hour(self) -> int:
        return self.num_pulses - int(self.bucket_boundary_index[0])

    def hourly_average(self, count: int) -> float:
        """Time weighted mean of the ``count`` most recent sub-hourly pulses."""
        q = self.q_sub_hourly.values(count)
        times = self.timestamps.values(count + 2)
        spans = times[1 : count + 1] - times[2 : count + 2]
        total_span = times[1] - times[count + 1]
        if total_span <= 0.0:
            return float(np.mean(q))
        return float(np.dot(q, spans) / total_span)

    def _aggregate_completed_hours(self) -> None:
        latest_end = self.previous_time
        while int(latest_end) > self.hours_completed:
            count = min(self._pulses_since_last_hour(), self.sub_hourly_capacity)
            if count > 0:
                q_hour = self.hourly_average(count)
            else:
                # one pulse spanned more than one hour
                q_hour = float(self.q_sub_hourly[0])
            self.q_hourly.push(q_hour)
            self.bucket_boundary_index.push(self.num_pulses)
            self.hours_completed += 1

            if self.hours_completed % HRS_IN_MONTH == 0:
                self._aggregate_month()

    def _aggregate_month(self) -> None:
        q_month = float(np.mean(self.q_hourly.values(HRS_IN_MONTH)))
        self.q_monthly.append(q_month)
        if len(self.q_monthly) > self.monthly_capacity and not self._monthly_overflow_logged:
            logger.warning(
                f"Simulation has run past {self.max_sim_years} year(s); "
                f"the g-function is extrapolated beyond its computed range"
            )
            self._monthly_overflow_logged = True

    def current_month(self, elapsed_hours: float) -> int:
        """Number of monthly buckets used by the superposition at ``elapsed_hours``."""
        if elapsed_hours < HRS_IN_MONTH + AGG + SUB_AGG:
            return 0
        num_months = len(self.q_monthly)
        if num_months == 0:
            return 0
        if elapsed_hours < num_months * HRS_IN_MONTH + AGG + SUB_AGG:
            return num_months - 1
        return num_months

    def superposition_terms(self, elapsed_hours: float) -> SuperpositionTerms:
        """
        Collect the step changes of all stored pulses and their ages at ``elapsed_hours``.

        Monthly buckets come first, oldest first, then hourly buckets and sub-hourly pulses,
        newest first. The oldest entry of each finer resolution steps down to the newest entry of
        the next coarser resolution, so the steps telescope to the level of the latest pulse.
        """
        hours = self.hours_completed
        num_sub_hours = min(hours, SUB_AGG)
        num_months = self.current_month(elapsed_hours)
        aggregated = elapsed_hours >= HRS_IN_MONTH + AGG + SUB_AGG

        steps = []
        elapsed = []

        # monthly buckets: bucket i spans [i * HRS_IN_MONTH, (i + 1) * HRS_IN_MONTH)
        level = 0.0
        if num_months > 0:
            q_month = np.asarray(self.q_monthly[:num_months])
            steps.append(q_month - np.concatenate(([0.0], q_month[:-1])))
            elapsed.append(elapsed_hours - HRS_IN_MONTH * np.arange(num_months))
            level = float(q_month[-1])

        # hourly buckets k = num_sub_hours + 1 .. last_hour, bucket k spans [hours - k, hours - k + 1)
        last_hour = min(hours - num_months * HRS_IN_MONTH, len(self.q_hourly))
        if last_hour > num_sub_hours:
            q_hour = self.q_hourly.values(last_hour)[num_sub_hours:]
            steps.append(q_hour - np.append(q_hour[1:], level))
            elapsed.append(elapsed_hours - (hours - np.arange(num_sub_hours + 1, last_hour + 1)))
            level = float(q_hour[0])

        # sub-hourly pulses since the start of hour (hours - num_sub_hours)
        count = min(self.num_pulses - int(self.bucket_boundary_index[num_sub_hours]), self.sub_hourly_capacity)
        if count > 0:
            q_sub = self.q_sub_hourly.values(count)
            starts = self.timestamps.values(count + 2)[2:]
            steps.append(q_sub - np.append(q_sub[1:], level))
            elapsed.append(elapsed_hours - starts)
            level = float(q_sub[0])

        if steps:
            all_steps = np.concatenate(steps)
            all_elapsed = np.concatenate(elapsed)
        else:
            all_steps = np.zeros(0)
            all_elapsed = np.zeros(0)

        return SuperpositionTerms(
            steps=all_steps,
            elapsed=all_elapsed,
            previous_level=level,
            current_duration=elapsed_hours - self.previous_time,
            aggregated=aggregated,
        )
