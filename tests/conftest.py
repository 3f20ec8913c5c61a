import numpy as np
import pytest

from commons_sim.model.state import FrameSnapshot, RenderState


@pytest.fixture
def rng():
    """Seeded generator so stochastic models replay identically."""
    return np.random.default_rng(1234)


@pytest.fixture
def make_snapshot():
    def _make(step, metrics, elapsed=None):
        return FrameSnapshot(
            step=step,
            elapsed=step / 60 if elapsed is None else elapsed,
            alpha=0.0,
            metrics=dict(metrics),
            render=RenderState(field=np.zeros((4, 4)), points=np.zeros((0, 2)),
                               extent=(0, 4, 0, 4))
        )
    return _make
