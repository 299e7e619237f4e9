# av_sim/domain/entities/network.py
from dataclasses import dataclass

from av_sim.domain.entities.geography import Node
from av_sim.domain.mechanics.mechanics_geodesy import distance_km


@dataclass(frozen=True)
class Connection:
    source_id: str
    destination: Node
    distance_km: float  # cached at insertion
    speed_limit: int  # km/h


class RoadNetwork:
    """
    Ordered nodes plus an id-keyed adjacency list of directed connections.
    Read-only by convention once generation has finished.
    """

    def __init__(self):
        self._nodes: list[Node] = []
        self._by_id: dict[str, Node] = {}
        self._adjacency: dict[str, list[Connection]] = {}

    @property
    def nodes(self) -> tuple[Node, ...]:
        return tuple(self._nodes)

    @property
    def edge_count(self) -> int:
        return sum(len(conns) for conns in self._adjacency.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, Node) and node.id in self._by_id

    def add_node(self, node: Node) -> None:
        if node.id in self._by_id:
            return
        self._nodes.append(node)
        self._by_id[node.id] = node
        self._adjacency[node.id] = []

    def add_connection(self, source: Node, destination: Node, speed_limit: int) -> Connection:
        if source.id not in self._by_id or destination.id not in self._by_id:
            raise ValueError(
                f"both nodes must be added before connecting them: {source.id!r} -> {destination.id!r}"
            )
        conn = Connection(
            source_id=source.id,
            destination=destination,
            distance_km=distance_km(source.coordinate, destination.coordinate),
            speed_limit=int(speed_limit),
        )
        self._adjacency[source.id].append(conn)
        return conn

    def add_bidirectional_connection(self, a: Node, b: Node, speed_limit: int) -> None:
        self.add_connection(a, b, speed_limit)
        self.add_connection(b, a, speed_limit)

    def connections(self, node: Node) -> tuple[Connection, ...]:
        return tuple(self._adjacency.get(node.id, ()))

    def get_node(self, node_id: str) -> Node | None:
        return self._by_id.get(node_id)

    def is_linked(self, a_id: str, b_id: str) -> bool:
        return any(c.destination.id == b_id for c in self._adjacency.get(a_id, ()))

    def speed_limit(self, source_id: str, destination_id: str) -> int | None:
        """Speed limit of the first connection source -> destination, if any."""
        for c in self._adjacency.get(source_id, ()):
            if c.destination.id == destination_id:
                return c.speed_limit
        return None
