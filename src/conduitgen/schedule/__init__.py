"""
Schedule Module

Run schedules with per-segment cut lengths, and spool packages with their
bills of materials.
"""

from .run_schedule import SCHEDULE_HEADER, RunScheduleEntry, RunScheduleService
from .spool import SpoolBomEntry, SpoolManager, SpoolPackage

__all__ = [
    'RunScheduleEntry',
    'RunScheduleService',
    'SCHEDULE_HEADER',
    'SpoolPackage',
    'SpoolBomEntry',
    'SpoolManager',
]
