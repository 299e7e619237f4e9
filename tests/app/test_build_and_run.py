# tests/app/test_build_and_run.py
import pytest

from av_sim.app.build import build
from av_sim.domain.entities.vehicle import DriveStatus
from av_sim.domain.mechanics.mechanics_routers import GroundTruthRouter, MismatchedUnitRouter
from av_sim.io.drive_events import Crashed, DriveEnded, OffRoad, SpeedViolation
from av_sim.io.drive_logging import DriveLogging
from av_sim.io.recorder import MemorySink
from av_sim.sim.clock import VirtualClock, WallClock


def _cfg(**over):
    cfg = {
        "name": "test",
        "run_id": "t-1",
        "seed": 11,
        "mechanics": {"drift": {"kind": "none"}},
        "motion": {"clock": "virtual"},
    }
    cfg.update(over)
    return cfg


def test_build_runs():
    sink = MemorySink()
    app = build(_cfg(), sinks=(sink,))
    assert isinstance(app.clock, VirtualClock)
    assert isinstance(app.hooks, DriveLogging)

    session = app.session
    network = session.generate_map()
    start, end = network.nodes[0], network.nodes[-1]
    session.start_driving(start, end)
    samples = list(session.samples(poll_s=0.01))

    assert session.join(timeout=5.0) is DriveStatus.COMPLETED
    assert samples[-1].status is DriveStatus.COMPLETED
    assert not samples[-1].active

    names = sink.names()
    assert names[0] == "DriveStarted"
    assert names[-1] == "DriveEnded"
    assert names.count("SegmentStarted") == len(session.calculate_route(start, end))
    assert sink.of(DriveEnded)[0].status == "completed"
    assert [ev.seq for ev in sink.events] == sorted(ev.seq for ev in sink.events)


def test_same_seed_same_map():
    a = build(_cfg(), use_logging=False).session.generate_map()
    b = build(_cfg(), use_logging=False).session.generate_map()
    assert [n.coordinate for n in a.nodes] == [n.coordinate for n in b.nodes]
    assert a.edge_count == b.edge_count


def test_router_kind_selects_navigator():
    app = build(_cfg(mechanics={"router": {"kind": "mismatched_units"}}), use_logging=False)
    app.session.generate_map()
    assert isinstance(app.session.navigator, MismatchedUnitRouter)
    assert isinstance(app.session.ground_truth, GroundTruthRouter)


def test_session_needs_a_map_first():
    session = build(_cfg(), use_logging=False).session
    with pytest.raises(RuntimeError):
        session.poll()
    network = build(_cfg(), use_logging=False).session.generate_map()
    with pytest.raises(RuntimeError):
        session.calculate_route(network.nodes[0], network.nodes[1])
    with pytest.raises(RuntimeError):
        session.start_driving(network.nodes[0], network.nodes[1])


def _monitored_drive(router: str):
    sink = MemorySink()
    app = build(
        _cfg(mechanics={"router": {"kind": router}, "drift": {"kind": "uniform"}}),
        sinks=(sink,),
    )
    session = app.session
    network = session.generate_map()
    start, end = network.nodes[0], network.nodes[-1]
    monitor = session.monitor(start, end)
    assert monitor is not None

    session.start_driving(start, end, monitor=monitor)
    status = session.join(timeout=10.0)
    return session, monitor, sink, status


def test_ground_truth_drive_with_drift_is_clean():
    session, monitor, sink, status = _monitored_drive("ground_truth")

    assert status is DriveStatus.COMPLETED
    assert not monitor.crashed
    assert monitor.total_fines == 0
    assert sink.of(OffRoad) == [] and sink.of(SpeedViolation) == []
    # the monitor saw every segment while the vehicle was on it
    segments = len(session.vehicle.current_route)
    assert set(range(segments)) <= set(monitor.checked)


def test_mismatched_router_is_fined():
    session, monitor, sink, status = _monitored_drive("mismatched_units")

    violations = sink.of(SpeedViolation)
    assert violations, "expected at least the first segment to be fined"
    first = violations[0]
    assert first.road_index == 0
    assert first.reported == int(first.expected * 0.62137)
    assert first.kind == "too_slow"
    assert first.fine == max((first.expected - first.reported) * 10, 25)
    assert monitor.total_fines == sum(v.fine for v in violations) > 0
    if monitor.crashed:
        assert status is DriveStatus.CANCELLED
        assert len(sink.of(Crashed)) == 1


def test_drive_and_monitor_events_share_one_sequence():
    _, _, sink, _ = _monitored_drive("mismatched_units")
    seqs = [ev.seq for ev in sink.events]
    assert len(set(seqs)) == len(seqs)
    assert seqs == sorted(seqs)
    assert sink.names()[0] == "DriveStarted" and sink.names()[-1] == "DriveEnded"


def test_wall_clock_drive_cancels_and_rejects_second_start():
    app = build(
        _cfg(motion={"clock": "wall", "tick_s": 0.01, "speed_scale": 1.0}),
        use_logging=False,
    )
    assert isinstance(app.clock, WallClock)
    session = app.session
    network = session.generate_map()
    start, end = network.nodes[0], network.nodes[-1]

    session.start_driving(start, end)
    assert session.running
    with pytest.raises(RuntimeError):
        session.start_driving(start, end)
    with pytest.raises(RuntimeError):
        session.generate_map()

    session.cancel()
    assert session.join(timeout=5.0) is DriveStatus.CANCELLED
    assert not session.running
    assert session.poll().status is DriveStatus.CANCELLED
