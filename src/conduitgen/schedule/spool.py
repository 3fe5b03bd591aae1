"""
Spool Packages

Groups runs into prefabrication spools and builds each spool's bill of
materials: conduit aggregated by material and trade size with the summed
length, fittings aggregated by type and trade size.
"""

from __future__ import annotations

import csv
import io
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..model.conduit_size import trade_size_to_float
from ..model.model_store import ConduitModelStore
from ..routing.smart_bend import INCHES_PER_FOOT

# Material reported for fittings in a spool BOM
FITTING_MATERIAL = "Steel"


@dataclass
class SpoolPackage:
    """A named set of runs fabricated together."""

    spool_name: str
    run_ids: list[str] = field(default_factory=list)
    notes: str = ""
    spool_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class SpoolBomEntry:
    """Aggregated BOM line. Only conduit lines carry a length."""

    item_type: str
    description: str
    trade_size: str
    material: str
    quantity: int = 0
    total_length_inches: float = 0.0


def _trade_size_sort_key(trade_size: str) -> float:
    try:
        return trade_size_to_float(trade_size)
    except ValueError:
        return float("inf")


class SpoolManager:
    """Creates spool packages over a model store and reports their BOMs."""

    def __init__(self, store: ConduitModelStore):
        self.store = store
        self.spools: list[SpoolPackage] = []
        self._next_spool_number = 1

    def create_spool(self, run_ids: list[str], name: str | None = None) -> SpoolPackage:
        """Create a spool; unnamed spools are numbered SP-001, SP-002, ..."""
        if name is None:
            name = f"SP-{self._next_spool_number:03d}"
            self._next_spool_number += 1
        spool = SpoolPackage(spool_name=name, run_ids=list(run_ids))
        self.spools.append(spool)
        return spool

    def generate_bom(self, spool: SpoolPackage) -> list[SpoolBomEntry]:
        """
        Aggregate the spool's segments and fittings into BOM lines.

        Run ids missing from the store are skipped. Lines are sorted by item
        type, then by numeric trade size.
        """
        groups: dict[tuple[str, str, str], SpoolBomEntry] = {}

        for run_id in spool.run_ids:
            run = self.store.get_run(run_id)
            if run is None:
                continue

            for segment in run.get_segments(self.store):
                key = ("Conduit", segment.material.value, segment.trade_size)
                if key not in groups:
                    groups[key] = SpoolBomEntry(
                        item_type="Conduit",
                        description=f'{segment.material.value} {segment.trade_size}" Conduit',
                        trade_size=segment.trade_size,
                        material=segment.material.value,
                    )
                groups[key].quantity += 1
                groups[key].total_length_inches += segment.length * INCHES_PER_FOOT

            for fitting in run.get_fittings(self.store):
                key = ("Fitting", fitting.fitting_type.value, fitting.trade_size)
                if key not in groups:
                    groups[key] = SpoolBomEntry(
                        item_type="Fitting",
                        description=f'{fitting.fitting_type.value} {fitting.trade_size}"',
                        trade_size=fitting.trade_size,
                        material=FITTING_MATERIAL,
                    )
                groups[key].quantity += 1

        entries = list(groups.values())
        entries.sort(key=lambda e: (e.item_type, _trade_size_sort_key(e.trade_size)))
        return entries

    def export_spool_sheet_csv(self, spool: SpoolPackage) -> str:
        """Spool sheet: a short heading block followed by the numbered BOM."""
        buffer = io.StringIO()
        buffer.write(f"Spool Sheet: {spool.spool_name}\n")
        buffer.write(f"Created: {spool.created_utc:%Y-%m-%d %H:%M}\n")
        buffer.write(f"Runs: {', '.join(spool.run_ids)}\n")
        buffer.write("\n")

        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Item", "Description", "TradeSize", "Material", "Qty", "TotalLength(in)"])
        for item, entry in enumerate(self.generate_bom(spool), start=1):
            writer.writerow([
                item,
                entry.description,
                entry.trade_size,
                entry.material,
                entry.quantity,
                f"{entry.total_length_inches:.2f}",
            ])
        return buffer.getvalue()
