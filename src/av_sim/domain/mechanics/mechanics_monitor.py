import itertools
from collections.abc import Callable

from av_sim.domain.entities.geography import Node, Road
from av_sim.domain.entities.network import RoadNetwork
from av_sim.domain.entities.vehicle import VehicleSample
from av_sim.domain.mechanics.mechanics_geodesy import angle_diff_deg, bearing_deg, is_point_on_segment
from av_sim.io.drive_events import BackOnRoad, Crashed, DriveEvent, OffRoad, SpeedViolation


class RouteMonitor:
    """
    Compares polled vehicle samples against the ground-truth node path.

    Off-road: the position leaves the current segment's tolerance band, or
    the heading is more than max_bearing_deviation_deg off the segment.
    Staying off-road for crash_after_s ends the drive (crashed=True).
    Speed: once per road index, the navigator's reported limit is compared
    with the network's; a gap of violation_threshold_kmh or more is fined.
    Pass the hooks' next_seq so monitor events share the drive's sequence.
    """

    def __init__(
        self,
        network: RoadNetwork,
        path: list[Node],
        route: list[Road],
        *,
        run_id: str = "local",
        tolerance_km: float = 0.2,
        max_bearing_deviation_deg: float = 45.0,
        crash_after_s: float = 1.5,
        violation_threshold_kmh: int = 5,
        fine_per_kmh: int = 10,
        min_fine: int = 25,
        next_seq: Callable[[], int] | None = None,
    ):
        self.network, self.path, self.route = network, list(path), list(route)
        self.run_id = run_id
        self.tolerance_km = tolerance_km
        self.max_bearing_deviation_deg = max_bearing_deviation_deg
        self.crash_after_s = crash_after_s
        self.violation_threshold_kmh = violation_threshold_kmh
        self.fine_per_kmh, self.min_fine = fine_per_kmh, min_fine

        self.off_road_since: float | None = None
        self.crashed = False
        self.total_fines = 0
        self.checked: list[int] = []  # road indices already seen by the speed check
        self._next_seq = next_seq or itertools.count().__next__

    def _segment(self, idx: int) -> tuple[Node, Node] | None:
        if idx < 0 or idx >= len(self.path) - 1:
            return None
        return self.path[idx], self.path[idx + 1]

    def is_on_road(self, sample: VehicleSample) -> bool:
        seg = self._segment(sample.road_index)
        if seg is None or sample.position is None:
            return True  # nothing to compare against
        a, b = seg
        if not is_point_on_segment(sample.position, a.coordinate, b.coordinate, self.tolerance_km):
            return False
        expected = bearing_deg(a.coordinate, b.coordinate)
        return angle_diff_deg(expected, sample.bearing) <= self.max_bearing_deviation_deg

    def observe(self, sample: VehicleSample, now: float) -> list[DriveEvent]:
        if self.crashed:
            return []
        idx = sample.road_index
        out: list[DriveEvent] = []

        if not self.is_on_road(sample):
            pos = sample.position
            if self.off_road_since is None:
                self.off_road_since = now
                out.append(OffRoad(self.run_id, now, self._next_seq(), "OffRoad", idx, pos.lon, pos.lat))
            off_s = now - self.off_road_since
            if off_s >= self.crash_after_s:
                self.crashed = True
                out.append(
                    Crashed(self.run_id, now, self._next_seq(), "Crashed", idx, pos.lon, pos.lat, off_s)
                )
            return out

        if self.off_road_since is not None:
            off_s = now - self.off_road_since
            self.off_road_since = None
            out.append(BackOnRoad(self.run_id, now, self._next_seq(), "BackOnRoad", idx, off_s))

        violation = self._check_speed(idx, now)
        if violation:
            out.append(violation)
        return out

    def _check_speed(self, idx: int, now: float) -> SpeedViolation | None:
        if self.checked and self.checked[-1] == idx:
            return None
        self.checked.append(idx)
        seg = self._segment(idx)
        if seg is None or idx >= len(self.route):
            return None

        expected = self.network.speed_limit(seg[0].id, seg[1].id)
        if expected is None:
            return None
        reported = self.route[idx].speed_limit
        diff = abs(expected - reported)
        if diff < self.violation_threshold_kmh:
            return None

        fine = max(diff * self.fine_per_kmh, self.min_fine)
        self.total_fines += fine
        kind = "speeding" if reported > expected else "too_slow"
        return SpeedViolation(
            self.run_id, now, self._next_seq(), "SpeedViolation", idx, reported, expected, kind, fine
        )
