from dataclasses import dataclass


# Core geometry types used by mechanics
@dataclass(frozen=True)
class Coordinate:
    lon: float  # degrees
    lat: float


@dataclass(frozen=True, eq=False)
class Node:
    """Road network vertex. Identity is the id, never the coordinate."""

    id: str
    name: str
    coordinate: Coordinate

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


@dataclass(frozen=True)
class Road:
    """One travel segment of a route, in the units of the router that built it."""

    distance: float
    bearing: float  # degrees [0, 360)
    speed_limit: int
    start: Coordinate | None = None
    end: Coordinate | None = None
    from_id: str | None = None
    to_id: str | None = None


Route = list[Road]
