# io/recorder.py
import json
import logging
import sys
import threading
from dataclasses import asdict
from typing import Protocol, TypeVar

from av_sim.io.drive_events import DriveEvent

log = logging.getLogger(__name__)

E = TypeVar("E", bound=DriveEvent)


class Sink(Protocol):
    def write(self, ev: DriveEvent) -> None: ...


class JsonlSink:
    """One JSON object per event; the event class name goes in as "type"."""

    def __init__(self, fp=sys.stdout, flush: bool = False):
        self.fp, self.flush = fp, flush

    def write(self, ev: DriveEvent) -> None:
        self.fp.write(json.dumps({"type": type(ev).__name__, **asdict(ev)}, default=str) + "\n")
        if self.flush:
            self.fp.flush()


class MemorySink:
    def __init__(self):
        self.events: list[DriveEvent] = []

    def write(self, ev: DriveEvent) -> None:
        self.events.append(ev)

    def names(self) -> list[str]:
        return [ev.name for ev in self.events]

    def of(self, kind: type[E]) -> list[E]:
        return [ev for ev in self.events if isinstance(ev, kind)]


class Recorder:
    """
    Fans drive events out to sinks. The drive worker and the polling thread
    (monitor events) both emit, so writes are serialized.
    """

    def __init__(self, *sinks: Sink):
        self.sinks = sinks or (JsonlSink(),)
        self._lock = threading.Lock()

    def emit(self, ev: DriveEvent) -> None:
        with self._lock:
            for s in self.sinks:
                try:
                    s.write(ev)
                except Exception:
                    # a broken sink must not stop the drive
                    log.exception("recorder sink %s failed on %s", type(s).__name__, ev.name)
