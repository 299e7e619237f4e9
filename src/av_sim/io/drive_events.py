# av_sim/io/drive_events.py

from dataclasses import dataclass
from typing import Literal


# Base type for analytics events emitted during a drive
@dataclass
class DriveEvent:
    run_id: str
    t: float  # clock time
    seq: int  # emission sequence (for total ordering)
    name: str  # stable event name


@dataclass
class DriveStarted(DriveEvent):
    start_id: str
    end_id: str
    segments: int


@dataclass
class NoRoute(DriveEvent):
    start_id: str
    end_id: str


@dataclass
class SegmentStarted(DriveEvent):
    index: int
    distance: float
    bearing: float
    speed_limit: int


@dataclass
class DriveEnded(DriveEvent):
    status: Literal["completed", "cancelled", "idle"]  # idle: the loop raised
    ticks: int
    wall_ms: float | None = None
    error: str | None = None


# Route monitor
@dataclass
class OffRoad(DriveEvent):
    road_index: int
    lon: float
    lat: float


@dataclass
class BackOnRoad(DriveEvent):
    road_index: int
    off_road_s: float


@dataclass
class Crashed(DriveEvent):
    road_index: int
    lon: float
    lat: float
    off_road_s: float


@dataclass
class SpeedViolation(DriveEvent):
    road_index: int
    reported: int
    expected: int
    kind: Literal["speeding", "too_slow"]
    fine: int
