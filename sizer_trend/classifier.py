"""
sizer_trend.classifier
~~~~~~~~~~~~~~~~~~~~~~
Turn a slope estimate and its standard error into a significance label.

A symmetric confidence interval ``slope +/- q * se`` is built around the
estimate.  The slope is *increasing* when the whole interval lies above zero,
*decreasing* when it lies below zero and *flat* when it straddles zero.

``n_blocks`` widens ``q`` for simultaneous inference over a row of roughly
independent tests: with ``n_blocks`` blocks the per-test coverage is
``confidence ** (1 / n_blocks)`` so that the whole row holds at the nominal
level.
"""

from __future__ import annotations

import math

import numpy as np
from scipy.stats import norm

from .labels import DECREASING, FLAT, INCREASING, UNAVAILABLE


def critical_value(confidence: float = 0.9, n_blocks: float = 1.0) -> float:
    """Two-sided normal quantile for *confidence*, adjusted for *n_blocks*.

    Examples
    --------
    >>> round(critical_value(0.9), 3)
    1.645
    """
    if not 0 < confidence < 1:
        raise ValueError(f"confidence must lie in (0, 1), got {confidence}")
    n_blocks = max(float(n_blocks), 1.0)
    coverage = confidence ** (1.0 / n_blocks)
    return float(norm.ppf((1.0 + coverage) / 2.0))


def classify_slope(
    slope: float,
    se: float,
    confidence: float = 0.9,
    available: bool = True,
    n_blocks: float = 1.0,
) -> str:
    """Classify a single ``(slope, se)`` pair.

    Returns one of ``"increasing"``, ``"decreasing"``, ``"flat"`` or
    ``"unavailable"``.  A non-finite slope or standard error is treated as
    unavailable.
    """
    if not available or not (math.isfinite(slope) and math.isfinite(se)):
        return UNAVAILABLE
    half_width = critical_value(confidence, n_blocks) * abs(se)
    if slope - half_width > 0:
        return INCREASING
    if slope + half_width < 0:
        return DECREASING
    return FLAT


def classify_slopes(
    slope: "array-like",
    se: "array-like",
    confidence: float = 0.9,
    available: "array-like | None" = None,
    n_blocks: float = 1.0,
) -> np.ndarray:
    """Vectorised :func:`classify_slope` over aligned arrays.

    Returns an object array of labels with the shape of *slope*.
    """
    slope = np.asarray(slope, dtype=float)
    se = np.asarray(se, dtype=float)
    ok = np.isfinite(slope) & np.isfinite(se)
    if available is not None:
        ok &= np.asarray(available, dtype=bool)

    half_width = critical_value(confidence, n_blocks) * np.abs(se)
    labels = np.full(slope.shape, FLAT, dtype=object)
    with np.errstate(invalid="ignore"):
        labels[slope - half_width > 0] = INCREASING
        labels[slope + half_width < 0] = DECREASING
    labels[~ok] = UNAVAILABLE
    return labels
