from av_sim.config.models import GeneratorModel, MechanicsModel
from av_sim.domain.mechanics.mechanics_core import Mechanics
from av_sim.domain.mechanics.mechanics_generators import RandomNetworkGenerator
from av_sim.runtime.registries import make_drift
from av_sim.sim.rng import RNGRegistry


def build_generator(cfg: GeneratorModel, rng) -> RandomNetworkGenerator:
    return RandomNetworkGenerator(rng=rng, **cfg.model_dump())


def build_mechanics(cfg: MechanicsModel, rng_registry: RNGRegistry) -> Mechanics:
    rng_network = rng_registry.stream("network")
    rng_drift = rng_registry.stream("drift")

    return Mechanics(
        generator=build_generator(cfg.generator, rng_network),
        drift=make_drift(cfg.drift, rng=rng_drift),
        router_cfg=cfg.router,
    )
