# runtime/registries.py
from collections.abc import Callable
from typing import Any

from av_sim.app.protocols import DriftModel, Navigator, TimeSource
from av_sim.config.models import (
    DriftUnion,
    GroundTruthRouterModel,
    MismatchedUnitRouterModel,
    NoDriftModel,
    RouterUnion,
    UniformDriftModel,
)
from av_sim.domain.mechanics.mechanics_drift import NoDrift, UniformDrift
from av_sim.domain.mechanics.mechanics_routers import GroundTruthRouter, MismatchedUnitRouter
from av_sim.sim.clock import VirtualClock, WallClock

RouterFactory = Callable[[RouterUnion, dict], Navigator]
DriftFactory = Callable[[DriftUnion, dict], DriftModel]

_router_registry: dict[str, RouterFactory] = {}
_drift_registry: dict[str, DriftFactory] = {}
_clock_registry: dict[str, Callable[[], TimeSource]] = {
    "wall": WallClock,
    "virtual": VirtualClock,
}


# --------------------- Routers  ---------------------


def register_router(kind: str):
    def deco(fn: RouterFactory):
        _router_registry[kind] = fn
        return fn

    return deco


def make_router(cfg: RouterUnion, *, deps: dict[str, Any]) -> Navigator:
    try:
        factory = _router_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown router kind {cfg.kind!r}") from None
    return factory(cfg, deps)


@register_router("ground_truth")
def _make_ground_truth(cfg: GroundTruthRouterModel, deps):
    return GroundTruthRouter(deps["network"])


@register_router("mismatched_units")
def _make_mismatched(cfg: MismatchedUnitRouterModel, deps):
    return MismatchedUnitRouter(deps["network"])


# ----------------------- Drift ------------------------------


def register_drift(kind: str):
    def deco(fn: DriftFactory):
        _drift_registry[kind] = fn
        return fn

    return deco


def make_drift(cfg: DriftUnion, *, rng) -> DriftModel:
    try:
        factory = _drift_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown drift kind {cfg.kind!r}") from None
    return factory(cfg, {"rng": rng})


@register_drift("none")
def _make_no_drift(cfg: NoDriftModel, deps):
    return NoDrift()


@register_drift("uniform")
def _make_uniform(cfg: UniformDriftModel, deps):
    return UniformDrift(deps["rng"], speed_pct=cfg.speed_pct, bearing_pct=cfg.bearing_pct)


# ----------------------- Clocks ------------------------------


def make_clock(kind: str) -> TimeSource:
    try:
        return _clock_registry[kind]()
    except KeyError:
        raise ValueError(f"Unknown clock kind {kind!r}") from None
