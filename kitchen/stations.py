"""Slot-bounded cooking jobs per station.

Jobs are immutable records; whether one is done is worked out from the
clock each time somebody asks, so nothing needs cancelling when a dish is
dropped and pausing the clock pauses every job at once.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from kitchen.clock import GameClock
from kitchen.errors import NoFreeSlot, NotReady, ToolNotAllowed, UnknownStation
from recipe_catalog import RecipeCatalog, StationDef


@dataclass(frozen=True)
class CookingJob:
    station_id: str
    slot_index: int
    ingredient_id: Optional[str]
    tool_id: str
    started_at: float
    duration: float
    owner: Optional[str] = None

    def is_ready(self, now: float) -> bool:
        return now - self.started_at >= self.duration

    def remaining(self, now: float) -> float:
        return max(0.0, self.duration - (now - self.started_at))

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(1.0, (now - self.started_at) / self.duration)


class StationScheduler:
    def __init__(self, catalog: RecipeCatalog, clock: GameClock) -> None:
        self._clock = clock
        self._stations: Dict[str, StationDef] = {station.station_id: station for station in catalog.stations()}
        self._slots: Dict[str, Dict[int, CookingJob]] = {station_id: {} for station_id in self._stations}

    def _station(self, station_id: str) -> StationDef:
        station = self._stations.get(station_id)
        if station is None:
            raise UnknownStation(station_id)
        return station

    def submit(
        self,
        station_id: str,
        ingredient_id: Optional[str],
        tool_id: str,
        duration: float,
        owner: Optional[str] = None,
    ) -> int:
        """Start a job in the lowest free slot and return the slot index."""
        station = self._station(station_id)
        if not station.allows(tool_id):
            raise ToolNotAllowed(tool_id, station_id)

        slots = self._slots[station_id]
        slot_index = next((i for i in range(station.slots) if i not in slots), None)
        if slot_index is None:
            raise NoFreeSlot(station_id)

        slots[slot_index] = CookingJob(
            station_id=station_id,
            slot_index=slot_index,
            ingredient_id=ingredient_id,
            tool_id=tool_id,
            started_at=self._clock.now(),
            duration=float(duration),
            owner=owner,
        )
        return slot_index

    def job(self, station_id: str, slot_index: int) -> Optional[CookingJob]:
        return self._slots.get(station_id, {}).get(slot_index)

    def is_ready(self, station_id: str, slot_index: int) -> bool:
        job = self.job(station_id, slot_index)
        return job is not None and job.is_ready(self._clock.now())

    def collect(self, station_id: str, slot_index: int) -> CookingJob:
        self._station(station_id)
        if not self.is_ready(station_id, slot_index):
            raise NotReady(station_id, slot_index)
        return self._slots[station_id].pop(slot_index)

    def ready_jobs(self) -> List[Tuple[str, int, CookingJob]]:
        now = self._clock.now()
        ready: List[Tuple[str, int, CookingJob]] = []
        for station_id, slots in self._slots.items():
            for slot_index in sorted(slots):
                job = slots[slot_index]
                if job.is_ready(now):
                    ready.append((station_id, slot_index, job))
        return ready

    def jobs(self, station_id: str) -> Dict[int, CookingJob]:
        return dict(self._slots.get(station_id, {}))

    def owned_jobs(self, owner: str) -> List[CookingJob]:
        return [job for slots in self._slots.values() for job in slots.values() if job.owner == owner]

    def free_slots(self, station_id: str) -> int:
        station = self._station(station_id)
        return station.slots - len(self._slots[station_id])

    def clear_owner(self, owner: str) -> int:
        """Drop every job started for ``owner``; returns how many were dropped."""
        dropped = 0
        for slots in self._slots.values():
            for slot_index in [i for i, job in slots.items() if job.owner == owner]:
                del slots[slot_index]
                dropped += 1
        return dropped

    def clear(self) -> None:
        for slots in self._slots.values():
            slots.clear()
