from typing import Protocol, runtime_checkable

from av_sim.domain.entities.geography import Coordinate, Node, Road
from av_sim.domain.entities.network import RoadNetwork


# ------------- Mechanics --------------------
@runtime_checkable
class NetworkGenerator(Protocol):
    """
    Responsibilities:
    • Build one connected road network per call.
    • Own no state between calls beyond its configuration and rng.
    """

    def generate(self) -> RoadNetwork: ...


@runtime_checkable
class Navigator(Protocol):
    """
    Responsibilities:
      • Plan a route between two network nodes (None when unreachable).
      • Tell the vehicle how far it is from the commanded speed/bearing.
    Units are whatever the implementation emits; callers must not assume km.
    """

    def navigate(self, start: Node, end: Node) -> list[Road] | None: ...
    def speed_correction(self, road: Road, current_speed: float) -> float: ...
    def bearing_correction(
        self, road: Road, current_bearing: float, position: Coordinate | None = None
    ) -> float: ...
    def segment_distance(self, road: Road) -> float: ...


@runtime_checkable
class DriftModel(Protocol):
    """
    Per-tick sensor/actuator noise.
    Return the perturbed (speed, bearing); bearing stays in [0, 360).
    """

    def perturb(self, speed: float, bearing: float) -> tuple[float, float]: ...


@runtime_checkable
class TimeSource(Protocol):
    """Seconds-based pacing for the motion loop."""

    def now(self) -> float: ...
    def sleep(self, seconds: float) -> None: ...
