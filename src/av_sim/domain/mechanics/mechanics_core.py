from dataclasses import dataclass

from av_sim.app.protocols import DriftModel, Navigator, NetworkGenerator
from av_sim.config.models import RouterUnion
from av_sim.domain.entities.network import RoadNetwork
from av_sim.domain.mechanics.mechanics_routers import GroundTruthRouter
from av_sim.runtime.registries import make_router


@dataclass
class Mechanics:
    """
    Convenience façade bundling the core mechanics components.
    Routers are bound to a network, so they are built per generated map.
    """

    generator: NetworkGenerator
    drift: DriftModel
    router_cfg: RouterUnion

    def generate(self) -> RoadNetwork:
        return self.generator.generate()

    def navigator(self, network: RoadNetwork) -> Navigator:
        return make_router(self.router_cfg, deps={"network": network})

    def ground_truth(self, network: RoadNetwork) -> GroundTruthRouter:
        return GroundTruthRouter(network)
