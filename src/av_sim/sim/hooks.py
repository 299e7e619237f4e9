import itertools
from typing import Protocol

from av_sim.domain.entities.geography import Coordinate, Node, Road
from av_sim.domain.entities.vehicle import DriveStatus
from av_sim.io.drive_events import DriveEvent


class DriveHooks(Protocol):
    def drive_start(self, *, start: Node, end: Node, segments: int | None, t: float): ...
    def segment_start(self, *, index: int, road: Road, t: float): ...
    def tick(
        self,
        *,
        index: int,
        tick: int,
        position: Coordinate,
        speed: float,
        bearing: float,
        traveled: float,
        t: float,
    ): ...
    def drive_end(
        self, *, status: DriveStatus, ticks: int, t: float, wall_ms: float, error: str | None = None
    ): ...
    def next_seq(self) -> int: ...
    def biz(self, ev: DriveEvent): ...


class NoopHooks:
    """
    Ignores the lifecycle, but still hands out event sequence numbers so every
    event recorded for a session (drive and monitor alike) is totally ordered.
    """

    def __init__(self):
        self._seq = itertools.count()

    def next_seq(self) -> int:
        return next(self._seq)

    def drive_start(self, **_):
        pass

    def segment_start(self, **_):
        pass

    def tick(self, **_):
        pass

    def drive_end(self, **_):
        pass

    def biz(self, ev: DriveEvent):
        pass
