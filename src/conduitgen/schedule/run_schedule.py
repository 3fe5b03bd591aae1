"""
Run Schedule

One schedule row per conduit run: type, size, equipment, total length, and
a cut length for every segment after bend deducts.

A segment's start deduct comes from the fitting joining it to the previous
segment, its end deduct from the fitting joining it to the next one.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path

from ..model.elements import ConduitFitting, ConduitSegment
from ..model.model_store import ConduitModelStore
from ..routing.smart_bend import INCHES_PER_FOOT, SmartBendService

SCHEDULE_HEADER = [
    "RunId", "Type", "TradeSize", "Material", "TotalLength(ft)", "Segments", "Fittings",
    "StartEquip", "EndEquip", "Voltage", "FillPct", "FittingTypes", "CutLengths(in)",
]


@dataclass
class RunScheduleEntry:
    """Schedule row for one run (lengths in feet, cut lengths in inches)."""

    run_id: str
    conduit_type: str
    trade_size: str
    material: str
    total_length_feet: float
    segment_count: int
    fitting_count: int
    start_equipment: str = ""
    end_equipment: str = ""
    voltage: str = ""
    conductor_fill_percent: float = 0.0
    fitting_types: list[str] = field(default_factory=list)
    cut_lengths_inches: list[float] = field(default_factory=list)


def _joining_fitting(
    fittings: list[ConduitFitting], a: ConduitSegment, b: ConduitSegment,
) -> ConduitFitting | None:
    for fitting in fittings:
        if a.id in fitting.connected_segment_ids and b.id in fitting.connected_segment_ids:
            return fitting
    return None


class RunScheduleService:
    """Builds run schedules from the runs in a model store."""

    def __init__(self, store: ConduitModelStore, bends: SmartBendService | None = None):
        self.store = store
        self.bends = bends or SmartBendService()

    def generate_schedule(self) -> list[RunScheduleEntry]:
        entries = []
        for run in self.store.all_runs():
            segments = run.get_segments(self.store)
            fittings = run.get_fittings(self.store)
            conduit_type = self.store.get_type(run.conduit_type_id)

            entry = RunScheduleEntry(
                run_id=run.run_id,
                conduit_type=conduit_type.name if conduit_type else run.material.value,
                trade_size=run.trade_size,
                material=run.material.value,
                total_length_feet=run.compute_total_length(self.store),
                segment_count=len(segments),
                fitting_count=len(fittings),
                start_equipment=run.start_equipment,
                end_equipment=run.end_equipment,
                voltage=run.voltage,
                conductor_fill_percent=run.conductor_fill_percent,
                fitting_types=[f.fitting_type.value for f in fittings],
            )

            for i, segment in enumerate(segments):
                start_angle = None
                end_angle = None
                if i > 0:
                    fitting = _joining_fitting(fittings, segments[i - 1], segment)
                    start_angle = fitting.angle_degrees if fitting else None
                if i < len(segments) - 1:
                    fitting = _joining_fitting(fittings, segment, segments[i + 1])
                    end_angle = fitting.angle_degrees if fitting else None

                entry.cut_lengths_inches.append(self.bends.compute_cut_length(
                    segment.length * INCHES_PER_FOOT, run.trade_size, start_angle, end_angle,
                ))

            entries.append(entry)
        return entries

    def export_schedule_csv(self) -> str:
        """Schedule as CSV text with a header row. List columns are ';'-joined."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(SCHEDULE_HEADER)
        for entry in self.generate_schedule():
            writer.writerow([
                entry.run_id,
                entry.conduit_type,
                entry.trade_size,
                entry.material,
                f"{entry.total_length_feet:.2f}",
                entry.segment_count,
                entry.fitting_count,
                entry.start_equipment,
                entry.end_equipment,
                entry.voltage,
                f"{entry.conductor_fill_percent:.1f}",
                ";".join(entry.fitting_types),
                ";".join(f"{c:.2f}" for c in entry.cut_lengths_inches),
            ])
        return buffer.getvalue()

    def write_schedule_csv(self, path: str | Path) -> None:
        with open(path, "w", newline="", encoding="utf-8") as f:
            f.write(self.export_schedule_csv())
