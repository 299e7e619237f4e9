# main.py
import sys

from av_sim.app.build import build


def run(router: str = "ground_truth", seed: int | None = None):
    app = build(
        {
            "name": "demo",
            "run_id": "demo-1",
            "seed": seed,
            "mechanics": {"router": {"kind": router}},
        }
    )
    session = app.session

    network = session.generate_map()
    start, end = network.nodes[0], network.nodes[-1]
    monitor = session.monitor(start, end)

    session.start_driving(start, end, monitor=monitor)
    last_index = None
    for sample in session.samples(poll_s=0.25):
        if sample.road_index != last_index:
            last_index = sample.road_index
            print(f"segment {last_index}: {sample.speed:.0f} km/h", file=sys.stderr)

    status = session.join()
    fines = monitor.total_fines if monitor else 0
    crashed = monitor.crashed if monitor else False
    print(f"{status.value}: fines=${fines} crashed={crashed}", file=sys.stderr)


if __name__ == "__main__":
    run(*sys.argv[1:2])
