from av_sim.app.protocols import DriftModel


class NoDrift(DriftModel):
    def perturb(self, speed: float, bearing: float) -> tuple[float, float]:
        return speed, bearing


class UniformDrift(DriftModel):
    """Independent multiplicative noise, 1 + U(-pct, pct), on speed and bearing."""

    def __init__(self, rng, speed_pct: float = 0.075, bearing_pct: float = 0.05):
        self.rng, self.speed_pct, self.bearing_pct = rng, speed_pct, bearing_pct

    def _factor(self, pct: float) -> float:
        return 1.0 + self.rng.uniform(-pct, pct) if pct > 0 else 1.0

    def perturb(self, speed: float, bearing: float) -> tuple[float, float]:
        speed = max(0.0, speed * self._factor(self.speed_pct))
        bearing = (bearing * self._factor(self.bearing_pct)) % 360.0
        return speed, bearing
