# av_sim/app/build.py
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from av_sim.app.protocols import TimeSource
from av_sim.app.session import DriveSession
from av_sim.config.models import ScenarioModel
from av_sim.domain.mechanics.mechanics_core import Mechanics
from av_sim.domain.mechanics.mechanics_factory import build_mechanics
from av_sim.io.drive_logging import DriveLogging
from av_sim.io.recorder import JsonlSink, Recorder, Sink
from av_sim.runtime.registries import make_clock
from av_sim.sim.hooks import DriveHooks, NoopHooks
from av_sim.sim.rng import RNGRegistry

log = logging.getLogger(__name__)


@dataclass
class App:
    config: ScenarioModel
    clock: TimeSource
    rng: RNGRegistry
    hooks: DriveHooks
    recorder: Recorder | None
    mechanics: Mechanics
    session: DriveSession


def build(
    cfg: ScenarioModel | Mapping,
    *,
    worker: int = 0,
    use_logging: bool = True,
    sinks: tuple[Sink, ...] = (),
) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, ScenarioModel) else ScenarioModel.model_validate(cfg)

    # 1) Clock & RNG
    clock = make_clock(model.motion.clock)
    rng_registry = RNGRegistry(model.seed, scenario=model.name, worker=worker)
    log.info(
        "rng seeded",
        extra={
            "extra": {
                "scenario": model.name,
                "seed": rng_registry.seed,
                "seeded": rng_registry.seeded,
                "router": model.mechanics.router.kind,
            }
        },
    )

    # 2) Hooks (logging + drive events)
    recorder = None
    if use_logging:
        recorder = Recorder(*(sinks or (JsonlSink(),)))
        hooks = DriveLogging(
            run_id=model.run_id,
            recorder=recorder,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
    else:
        hooks = NoopHooks()

    # 3) Mechanics & session
    mechanics = build_mechanics(model.mechanics, rng_registry=rng_registry)
    session = DriveSession(
        mechanics,
        clock=clock,
        hooks=hooks,
        motion=model.motion,
        monitor=model.monitor,
        run_id=model.run_id,
    )

    return App(model, clock, rng_registry, hooks, recorder, mechanics, session)
