import threading
import time

from av_sim.app.protocols import DriftModel, Navigator, TimeSource
from av_sim.domain.entities.geography import Coordinate, Node, Road
from av_sim.domain.entities.vehicle import NO_ROAD, DriveStatus, VehicleSample, VehicleState
from av_sim.domain.mechanics.mechanics_drift import NoDrift
from av_sim.domain.mechanics.mechanics_geodesy import destination_point, distance_km
from av_sim.sim.cancellation import CancellationToken
from av_sim.sim.clock import HOUR, MIN, MS, WallClock, hours
from av_sim.sim.hooks import DriveHooks, NoopHooks


class VehicleDriver:
    """
    Discrete-time vehicle along a navigator's route.

    Each tick the navigator corrects speed and bearing, the vehicle moves
    speed * speed_scale / 3600 * tick_s km along that bearing, then speed
    and bearing drift until the next correction.
    """

    def __init__(
        self,
        navigator: Navigator,
        *,
        drift: DriftModel | None = None,
        clock: TimeSource | None = None,
        hooks: DriveHooks | None = None,
        tick_s: float = 0.05,
        speed_scale: float = 2400.0,
    ):
        self.navigator = navigator
        self.drift = drift or NoDrift()
        self.clock = clock or WallClock()
        self.hooks = hooks or NoopHooks()
        self.tick_s, self.speed_scale = tick_s, speed_scale

        self.state = VehicleState()
        self._lock = threading.Lock()
        self._start: Node | None = None
        self._start_bearing = 0.0
        self.ticks = 0  # ticks of the current or last drive

    # ------------------------------------------------------------------ #
    # Live polling surface
    # ------------------------------------------------------------------ #

    @property
    def current_position(self) -> Coordinate | None:
        return self.state.position

    @property
    def current_bearing(self) -> float:
        return self.state.bearing

    @property
    def current_speed(self) -> float:
        return self.state.speed

    @property
    def current_road_index(self) -> int:
        return self.state.road_index

    @property
    def current_route(self) -> list[Road]:
        return list(self.state.route)

    @property
    def is_active(self) -> bool:
        return self.state.active

    @property
    def status(self) -> DriveStatus:
        return self.state.status

    def snapshot(self) -> VehicleSample:
        return self.state.snapshot()

    # ------------------------------------------------------------------ #
    # Route management
    # ------------------------------------------------------------------ #

    def calculate_route(self, start: Node, end: Node) -> list[Road] | None:
        return self.navigator.navigate(start, end)

    def update_route(self, route: list[Road]) -> None:
        with self._lock:
            if self.state.active:
                raise RuntimeError("cannot replace the route of an active drive")
            self.state.route = list(route)
            self.state.road_index = 0

    def reset(self) -> None:
        with self._lock:
            if self.state.active:
                raise RuntimeError("cancel the active drive before resetting")
            s = self.state
            s.status = DriveStatus.IDLE
            s.position = self._start.coordinate if self._start else None
            s.bearing = self._start_bearing
            s.speed = 0.0
            s.road_index = NO_ROAD

    def remaining_distance(self) -> float:
        """Kilometres left along the route from the current position."""
        s = self.state
        route, idx = s.route, s.road_index
        if not route or idx >= len(route):
            return 0.0
        idx = max(idx, 0)

        total = 0.0
        for i in range(idx, len(route)):
            road = route[i]
            if road.end is None:
                total += self.navigator.segment_distance(road)
            elif i == idx and s.position is not None:
                total += distance_km(s.position, road.end)
            else:
                total += distance_km(road.start, road.end)
        return total

    def remaining_time_min(self) -> float:
        """Minutes left at each segment's speed limit."""
        s = self.state
        route, idx = s.route, max(s.road_index, 0)
        total_h = 0.0
        for i in range(idx, len(route)):
            road = route[i]
            if road.end is None:
                d = self.navigator.segment_distance(road)
            elif i == idx and s.position is not None:
                d = distance_km(s.position, road.end)
            else:
                d = distance_km(road.start, road.end)
            total_h += d / max(road.speed_limit, 0.1)
        return hours(total_h) / MIN

    # ------------------------------------------------------------------ #
    # Drive loop
    # ------------------------------------------------------------------ #

    def step_km(self, speed: float) -> float:
        return max(0.1, speed) * self.speed_scale / HOUR * self.tick_s

    def start_driving(
        self, start: Node, end: Node, cancel: CancellationToken | None = None
    ) -> DriveStatus:
        """
        Blocking. Run it off the thread that polls the vehicle.

        Every drive that reported drive_start also reports drive_end, with
        error set when the loop raised; the vehicle is then back to IDLE.
        """
        with self._lock:
            if self.state.active:
                raise RuntimeError("a drive is already active on this vehicle")
            self.state.status = DriveStatus.DRIVING

        token = cancel or CancellationToken()
        s = self.state
        w0 = time.perf_counter()
        self.ticks = 0
        status = DriveStatus.IDLE
        started = False
        error: BaseException | None = None
        try:
            self._start = start
            s.position = start.coordinate
            s.speed = 0.0
            route = self.navigator.navigate(start, end)
            self.hooks.drive_start(
                start=start,
                end=end,
                segments=None if route is None else len(route),
                t=self.clock.now(),
            )
            started = True
            s.route = route or []
            self._start_bearing = s.route[0].bearing if s.route else 0.0
            s.bearing = self._start_bearing
            s.road_index = 0

            completed = True
            for i, road in enumerate(s.route):
                if not self._travel(i, road, token):
                    completed = False
                    break
                s.road_index = i + 1
            status = DriveStatus.COMPLETED if completed else DriveStatus.CANCELLED
        except BaseException as exc:
            error = exc
            raise
        finally:
            s.status = status
            if started:
                self.hooks.drive_end(
                    status=status,
                    ticks=self.ticks,
                    t=self.clock.now(),
                    wall_ms=(time.perf_counter() - w0) / MS,
                    error=None if error is None else repr(error),
                )
        return status

    def _correct(self, road: Road) -> None:
        s = self.state
        s.speed = s.speed + self.navigator.speed_correction(road, s.speed)
        turn = self.navigator.bearing_correction(road, s.bearing, s.position)
        s.bearing = (s.bearing + turn) % 360.0

    def _travel(self, index: int, road: Road, token: CancellationToken) -> bool:
        s = self.state
        self._correct(road)
        self.hooks.segment_start(index=index, road=road, t=self.clock.now())

        length = self.navigator.segment_distance(road)
        traveled = 0.0
        while traveled < length:
            if token.cancelled:
                return False

            # drift from the previous tick is undone before moving
            self._correct(road)
            step = self.step_km(s.speed)
            remaining = length - traveled
            if step >= remaining:
                step, traveled = remaining, length
            else:
                traveled += step

            s.position = destination_point(s.position, s.bearing, step)
            speed, bearing = self.drift.perturb(s.speed, s.bearing)
            s.speed = speed
            s.bearing = bearing
            self.ticks += 1
            self.hooks.tick(
                index=index,
                tick=self.ticks,
                position=s.position,
                speed=s.speed,
                bearing=s.bearing,
                traveled=traveled,
                t=self.clock.now(),
            )
            self.clock.sleep(self.tick_s)
        return True
