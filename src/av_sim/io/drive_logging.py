# io/drive_logging.py
import json
import logging
import sys

from av_sim.io.drive_events import DriveEnded, DriveEvent, DriveStarted, NoRoute, SegmentStarted
from av_sim.io.recorder import Recorder
from av_sim.sim.hooks import NoopHooks


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(name: str = "av_sim", level: str = "INFO") -> logging.Logger:
    """Install the JSON stdout handler on the package logger (once)."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger


class DriveLogging(NoopHooks):
    """
    One place to shape and emit structured logs for a drive, and to forward
    drive events to the recorder.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 20,
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
    ):
        super().__init__()
        self.run_id, self.debug, self.sample_every = run_id, debug, max(1, sample_every)
        self.recorder = recorder
        self.log = logger or configure_logging(level=level)

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id, **extra}
        self.log.log(getattr(logging, level), msg, extra={"extra": payload})

    # --------------- drive lifecycle ---------------------

    def drive_start(self, *, start, end, segments, t):
        if segments is None:
            self._emit("WARNING", "no_route", start=start.id, end=end.id, t=t)
            self.biz(NoRoute(self.run_id, t, self.next_seq(), "NoRoute", start.id, end.id))
            return
        self._emit("INFO", "drive_start", start=start.id, end=end.id, segments=segments, t=t)
        self.biz(DriveStarted(self.run_id, t, self.next_seq(), "DriveStarted", start.id, end.id, segments))

    def segment_start(self, *, index, road, t):
        self._emit(
            "INFO",
            "segment_start",
            index=index,
            distance=round(road.distance, 3),
            bearing=round(road.bearing, 1),
            speed_limit=road.speed_limit,
            t=t,
        )
        self.biz(
            SegmentStarted(
                self.run_id, t, self.next_seq(), "SegmentStarted",
                index, road.distance, road.bearing, road.speed_limit,
            )
        )

    def tick(self, *, index, tick, position, speed, bearing, traveled, t):
        if self.debug and (tick % self.sample_every) == 0:
            self._emit(
                "DEBUG",
                "tick",
                index=index,
                tick=tick,
                lon=position.lon,
                lat=position.lat,
                speed=round(speed, 2),
                bearing=round(bearing, 1),
                traveled=round(traveled, 4),
                t=t,
            )

    def drive_end(self, *, status, ticks, t, wall_ms, error=None):
        level = "ERROR" if error else "INFO"
        self._emit(
            level, "drive_end", status=status.value, ticks=ticks, t=t, wall_ms=round(wall_ms, 1), error=error
        )
        self.biz(
            DriveEnded(self.run_id, t, self.next_seq(), "DriveEnded", status.value, ticks, wall_ms, error)
        )

    # ------------- Drive event reporting --------------------------

    def biz(self, ev: DriveEvent):
        if self.recorder:
            self.recorder.emit(ev)
