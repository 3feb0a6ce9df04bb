"""Shared sample series for the sizer_trend tests."""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def v_shape():
    """Noise-free V: Y = X up to 5, then 10 - X (X = 1..10)."""
    x = np.arange(1, 11, dtype=float)
    y = np.where(x <= 5, x, 10.0 - x)
    return x, y


@pytest.fixture
def flat_series():
    """Y = 5 with a tiny alternating wobble (X = 1..40)."""
    x = np.arange(1, 41, dtype=float)
    y = 5.0 + 1e-3 * (-1.0) ** x
    return x, y


@pytest.fixture
def linear_up():
    """Strictly increasing noise-free line, Y = 2X (X = 1..20)."""
    x = np.arange(1, 21, dtype=float)
    return x, 2.0 * x


@pytest.fixture
def noisy_wave():
    """Unevenly spaced noisy sine wave."""
    rng = np.random.default_rng(7)
    x = np.sort(rng.uniform(0, 20, 120))
    y = np.sin(x / 3.0) + rng.normal(0, 0.2, x.size)
    return x, y


@pytest.fixture
def frame_of():
    """Build an (x, y) DataFrame from a fixture tuple."""
    def _build(series, **extra):
        x, y = series
        return pd.DataFrame({"x": x, "y": y, **extra})
    return _build
