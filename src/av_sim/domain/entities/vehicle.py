from dataclasses import dataclass, field
from enum import Enum

from av_sim.domain.entities.geography import Coordinate, Road

NO_ROAD = -1


class DriveStatus(Enum):
    IDLE = "idle"
    DRIVING = "driving"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class VehicleSample:
    position: Coordinate | None
    bearing: float
    speed: float
    road_index: int
    active: bool
    status: DriveStatus


@dataclass
class VehicleState:
    # One writer (the motion loop), many pollers. Every field is rebound to an
    # immutable value, so a reader sees either the old or the new value.
    position: Coordinate | None = None
    speed: float = 0.0
    bearing: float = 0.0
    road_index: int = NO_ROAD
    status: DriveStatus = DriveStatus.IDLE
    route: list[Road] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return self.status is DriveStatus.DRIVING

    def snapshot(self) -> VehicleSample:
        return VehicleSample(
            position=self.position,
            bearing=self.bearing,
            speed=self.speed,
            road_index=self.road_index,
            active=self.active,
            status=self.status,
        )
