# av_sim/app/session.py
import logging
import threading
from collections.abc import Iterator

from av_sim.app.protocols import Navigator, TimeSource
from av_sim.config.models import MonitorModel, MotionModel
from av_sim.domain.entities.geography import Node, Road
from av_sim.domain.entities.network import RoadNetwork
from av_sim.domain.entities.vehicle import DriveStatus, VehicleSample
from av_sim.domain.mechanics.mechanics_core import Mechanics
from av_sim.domain.mechanics.mechanics_monitor import RouteMonitor
from av_sim.domain.mechanics.mechanics_motion import VehicleDriver
from av_sim.domain.mechanics.mechanics_routers import GroundTruthRouter
from av_sim.sim.cancellation import CancellationToken
from av_sim.sim.hooks import DriveHooks, NoopHooks

log = logging.getLogger(__name__)


class _MonitoredHooks:
    """
    Forwards the drive lifecycle and feeds every tick's sample to a route
    monitor on the drive thread, so no tick goes unchecked. A crash cancels
    the drive.
    """

    def __init__(
        self,
        inner: DriveHooks,
        monitor: RouteMonitor,
        vehicle: VehicleDriver,
        token: CancellationToken,
    ):
        self.inner, self.monitor, self.vehicle, self.token = inner, monitor, vehicle, token

    def next_seq(self) -> int:
        return self.inner.next_seq()

    def biz(self, ev) -> None:
        self.inner.biz(ev)

    def drive_start(self, **kw):
        self.inner.drive_start(**kw)

    def segment_start(self, **kw):
        self.inner.segment_start(**kw)

    def tick(self, **kw):
        self.inner.tick(**kw)
        for ev in self.monitor.observe(self.vehicle.snapshot(), kw["t"]):
            self.inner.biz(ev)
        if self.monitor.crashed:
            self.token.cancel()

    def drive_end(self, **kw):
        self.inner.drive_end(**kw)


class DriveSession:
    """
    What a front end talks to: one map, one vehicle, one drive at a time.
    The drive loop runs on a worker thread; callers poll the vehicle state.
    """

    def __init__(
        self,
        mechanics: Mechanics,
        *,
        clock: TimeSource,
        hooks: DriveHooks | None = None,
        motion: MotionModel | None = None,
        monitor: MonitorModel | None = None,
        run_id: str = "local",
    ):
        self.mechanics = mechanics
        self.clock = clock
        self.hooks = hooks or NoopHooks()
        self.motion = motion or MotionModel()
        self.monitor_cfg = monitor or MonitorModel()
        self.run_id = run_id

        self.network: RoadNetwork | None = None
        self.navigator: Navigator | None = None
        self.ground_truth: GroundTruthRouter | None = None
        self.vehicle: VehicleDriver | None = None

        self._thread: threading.Thread | None = None
        self._token: CancellationToken | None = None
        self.error: BaseException | None = None

    # ------------------------------------------------------------------ #
    # Map & routes
    # ------------------------------------------------------------------ #

    def generate_map(self) -> RoadNetwork:
        if self.running:
            raise RuntimeError("cannot regenerate the map during a drive")
        network = self.mechanics.generate()
        self.network = network
        self.navigator = self.mechanics.navigator(network)
        self.ground_truth = self.mechanics.ground_truth(network)
        self.vehicle = VehicleDriver(
            self.navigator,
            drift=self.mechanics.drift,
            clock=self.clock,
            hooks=self.hooks,
            tick_s=self.motion.tick_s,
            speed_scale=self.motion.speed_scale,
        )
        return network

    def _require_map(self) -> None:
        if self.network is None:
            raise RuntimeError("no map yet; call generate_map() first")

    def calculate_route(self, start: Node, end: Node, *, ground_truth: bool = False) -> list[Road] | None:
        self._require_map()
        router = self.ground_truth if ground_truth else self.navigator
        return router.navigate(start, end)

    def monitor(self, start: Node, end: Node) -> RouteMonitor | None:
        """Route monitor for the start -> end drive, None when unreachable."""
        self._require_map()
        path = self.ground_truth.find_path(start, end)
        route = self.navigator.navigate(start, end)
        if path is None or route is None:
            return None
        return RouteMonitor(
            self.network,
            path,
            route,
            run_id=self.run_id,
            next_seq=self.hooks.next_seq,
            **self.monitor_cfg.model_dump(),
        )

    # ------------------------------------------------------------------ #
    # Driving
    # ------------------------------------------------------------------ #

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start_driving(
        self, start: Node, end: Node, *, monitor: RouteMonitor | None = None
    ) -> threading.Thread:
        """With a monitor, every tick is observed and a crash cancels the drive."""
        self._require_map()
        if self.running:
            raise RuntimeError("a drive is already running")

        self.error = None
        self._token = CancellationToken()
        self.vehicle.hooks = (
            _MonitoredHooks(self.hooks, monitor, self.vehicle, self._token) if monitor else self.hooks
        )
        self._thread = threading.Thread(
            target=self._run, args=(start, end, self._token), name="av-sim-drive", daemon=True
        )
        self._thread.start()
        return self._thread

    def _run(self, start: Node, end: Node, token: CancellationToken) -> None:
        try:
            self.vehicle.start_driving(start, end, token)
        except Exception as exc:
            log.exception("drive failed", extra={"extra": {"start": start.id, "end": end.id}})
            self.error = exc

    def cancel(self) -> None:
        if self._token is not None:
            self._token.cancel()

    def join(self, timeout: float | None = None) -> DriveStatus:
        """Wait for the worker; re-raises whatever stopped it."""
        if self._thread is not None:
            self._thread.join(timeout)
        if self.error is not None:
            raise self.error
        return self.vehicle.status

    def poll(self) -> VehicleSample:
        self._require_map()
        return self.vehicle.snapshot()

    def samples(self, poll_s: float = 0.05) -> Iterator[VehicleSample]:
        """Snapshots at a fixed cadence until the worker ends, then one final one."""
        while self.running:
            yield self.poll()
            self._thread.join(poll_s)
        yield self.poll()
