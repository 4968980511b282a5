from dataclasses import dataclass

from ghesim.constants import HRS_IN_DAY


@dataclass
class TimeStepContext:
    """Calendar position of one call, as supplied by the enclosing simulation."""

    day_of_sim: int
    hour_of_day: int  # 1 to 24
    time_step: int  # zone timestep within the hour, starting at 1
    time_step_zone: float  # zone timestep length, hours
    sys_time_elapsed: float = 0.0  # system timestep progress within the zone timestep, hours
    warmup: bool = False
    day_of_year: int | None = None

    def elapsed_hours(self) -> float:
        return (
            (self.day_of_sim - 1) * HRS_IN_DAY
            + self.hour_of_day
            - 1
            + (self.time_step - 1) * self.time_step_zone
            + self.sys_time_elapsed
        )


class SimulationClock:
    """
    Converts calendar positions to elapsed hours and decides when history must restart.

    The history restarts on the first day of a run once it has been armed. It is armed when the
    day counter passes 1, and re-armed when warmup starts again after a non-warmup period, as
    happens between design days.
    """

    def __init__(self) -> None:
        self.update_cur_sim_time = True
        self.trigger_design_day_reset = False

    def reset(self) -> None:
        self.update_cur_sim_time = True
        self.trigger_design_day_reset = False

    def tick(self, context: TimeStepContext) -> tuple[float, bool]:
        """
        :return: elapsed hours and whether the history has to be reset before this step
        """
        reset_history = False
        if self.trigger_design_day_reset and context.warmup:
            self.update_cur_sim_time = True
        if context.day_of_sim == 1 and self.update_cur_sim_time:
            reset_history = True
            self.update_cur_sim_time = False
            self.trigger_design_day_reset = False

        if context.day_of_sim > 1:
            self.update_cur_sim_time = True
        if not context.warmup:
            self.trigger_design_day_reset = True

        return context.elapsed_hours(), reset_history
