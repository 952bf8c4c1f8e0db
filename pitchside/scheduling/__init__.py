"""Round-robin scheduling and calendar assignment."""

from .round_robin import Round, berger_rounds, generate_schedule, schedule_to_frame
from .calendar import DatedFixture, assign_dates, next_saturday

__all__ = [
    "Round",
    "berger_rounds",
    "generate_schedule",
    "schedule_to_frame",
    "DatedFixture",
    "assign_dates",
    "next_saturday",
]
