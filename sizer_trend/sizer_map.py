"""
sizer_trend.sizer_map
~~~~~~~~~~~~~~~~~~~~~
The SiZer map: slope significance labels for every (bandwidth, grid
position) pair.

Each bandwidth row depends only on the samples and its own bandwidth, so rows
may be computed concurrently; they are always reassembled in bandwidth order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np
import pandas as pd

from .classifier import classify_slopes
from .errors import InvalidInputError
from .estimator import LocalSlopeEstimator, evaluation_grid
from .labels import UNAVAILABLE

logger = logging.getLogger(__name__)

SPACINGS = ("linear", "log")


def bandwidth_levels(
    h_min: float,
    h_max: float,
    n_bandwidths: int = 11,
    spacing: str = "log",
) -> np.ndarray:
    """Return the bandwidth levels sampled across ``[h_min, h_max]``.

    Raises
    ------
    InvalidInputError
        For a non-positive or reversed range, an unknown spacing, or a single
        level requested for a range with distinct endpoints.
    """
    if spacing not in SPACINGS:
        raise InvalidInputError(f"unknown bandwidth spacing {spacing!r}; expected one of {SPACINGS}")
    if not (np.isfinite(h_min) and np.isfinite(h_max)) or h_min <= 0:
        raise InvalidInputError(f"bandwidths must be finite and positive, got [{h_min}, {h_max}]")
    if h_max < h_min:
        raise InvalidInputError(f"h_max ({h_max}) is smaller than h_min ({h_min})")
    if n_bandwidths < 1:
        raise InvalidInputError("n_bandwidths must be at least 1")
    if n_bandwidths == 1:
        if h_min != h_max:
            raise InvalidInputError("a single bandwidth level needs h_min == h_max")
        return np.array([float(h_min)])
    if spacing == "log":
        return np.geomspace(h_min, h_max, n_bandwidths)
    return np.linspace(h_min, h_max, n_bandwidths)


def _build_row(
    x: np.ndarray,
    y: np.ndarray,
    h: float,
    grid: np.ndarray,
    estimator: LocalSlopeEstimator,
    confidence: float,
    simultaneous: bool,
) -> tuple[dict, np.ndarray]:
    """Estimate and classify one bandwidth row."""
    est = estimator.estimate(x, y, h, grid)
    n_blocks = 1.0
    if simultaneous and est["available"].any():
        mean_ess = float(est["ess"][est["available"]].mean())
        n_blocks = max(x.size / mean_ess, 1.0)
    labels = classify_slopes(
        est["slope"], est["se"], confidence, est["available"], n_blocks
    )
    return est, labels


class SiZerMap:
    """Immutable grid of slope classifications.

    Rows are bandwidth levels (ascending), columns are evaluation grid
    positions.  Use :meth:`build` to compute a map from samples.

    Attributes
    ----------
    grid : numpy.ndarray
        Evaluation grid positions, shape ``(grid_length,)``.
    bandwidths : numpy.ndarray
        Bandwidth levels, shape ``(n_bandwidths,)``.
    slope, se, ess : numpy.ndarray
        Per-cell estimates, shape ``(n_bandwidths, grid_length)``.
    n_local : numpy.ndarray
        Samples inside the kernel support of each cell.
    labels : numpy.ndarray
        Object array of labels, one per cell.
    """

    def __init__(
        self,
        grid: np.ndarray,
        bandwidths: np.ndarray,
        slope: np.ndarray,
        se: np.ndarray,
        ess: np.ndarray,
        n_local: np.ndarray,
        labels: np.ndarray,
        confidence: float = 0.9,
        simultaneous: bool = True,
    ) -> None:
        shape = (len(bandwidths), len(grid))
        for name, arr in (("slope", slope), ("se", se), ("ess", ess),
                          ("n_local", n_local), ("labels", labels)):
            if np.shape(arr) != shape:
                raise ValueError(f"{name} has shape {np.shape(arr)}, expected {shape}")

        self.grid = self._frozen(grid, float)
        self.bandwidths = self._frozen(bandwidths, float)
        self.slope = self._frozen(slope, float)
        self.se = self._frozen(se, float)
        self.ess = self._frozen(ess, float)
        self.n_local = self._frozen(n_local, int)
        self.labels = self._frozen(labels, object)
        self.confidence = confidence
        self.simultaneous = simultaneous

    @staticmethod
    def _frozen(values, dtype) -> np.ndarray:
        arr = np.array(values, dtype=dtype, copy=True)
        arr.setflags(write=False)
        return arr

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        x: "array-like",
        y: "array-like",
        h_min: float,
        h_max: float,
        n_bandwidths: int = 11,
        spacing: str = "log",
        grid_length: int = 41,
        estimator: Optional[LocalSlopeEstimator] = None,
        confidence: float = 0.9,
        simultaneous: bool = True,
        n_jobs: int = 1,
    ) -> "SiZerMap":
        """Estimate and classify slopes over the full bandwidth grid.

        Parameters
        ----------
        x, y : array-like
            Finite sample coordinates.
        h_min, h_max : float
            Bandwidth range.
        n_bandwidths : int
            Number of bandwidth levels (default 11).
        spacing : str
            ``"log"`` (default) or ``"linear"`` level spacing.
        grid_length : int
            Number of evaluation grid positions (default 41).
        estimator : LocalSlopeEstimator, optional
            Custom estimator; a default local linear triangular-kernel
            estimator is used when not provided.
        confidence : float
            Confidence level of the slope intervals (default 0.9).
        simultaneous : bool
            Widen intervals for simultaneous inference along each row
            (default True).
        n_jobs : int
            Number of worker threads for the bandwidth rows (default 1).
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        estimator = estimator if estimator is not None else LocalSlopeEstimator()
        levels = bandwidth_levels(h_min, h_max, n_bandwidths, spacing)
        grid = evaluation_grid(x, grid_length)

        def row(h: float) -> tuple[dict, np.ndarray]:
            return _build_row(x, y, h, grid, estimator, confidence, simultaneous)

        if n_jobs > 1 and len(levels) > 1:
            with ThreadPoolExecutor(max_workers=n_jobs) as pool:
                rows = list(pool.map(row, levels))
        else:
            rows = [row(h) for h in levels]

        sizer = cls(
            grid=grid,
            bandwidths=levels,
            slope=np.vstack([est["slope"] for est, _ in rows]),
            se=np.vstack([est["se"] for est, _ in rows]),
            ess=np.vstack([est["ess"] for est, _ in rows]),
            n_local=np.vstack([est["n_local"] for est, _ in rows]),
            labels=np.vstack([labels for _, labels in rows]),
            confidence=confidence,
            simultaneous=simultaneous,
        )
        logger.info(
            "built SiZer map: %d bandwidths x %d positions, %d unavailable cells",
            len(levels), len(grid), int((sizer.labels == UNAVAILABLE).sum()),
        )
        return sizer

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def h_min(self) -> float:
        return float(self.bandwidths[0])

    @property
    def h_max(self) -> float:
        return float(self.bandwidths[-1])

    @property
    def shape(self) -> tuple[int, int]:
        return self.labels.shape

    def to_frame(self) -> pd.DataFrame:
        """Long table with one row per cell, ordered by bandwidth then position."""
        n_h, n_g = self.shape
        return pd.DataFrame(
            {
                "position": np.tile(np.arange(n_g), n_h),
                "x": np.tile(self.grid, n_h),
                "bandwidth": np.repeat(self.bandwidths, n_g),
                "slope": self.slope.ravel(),
                "se": self.se.ravel(),
                "ess": self.ess.ravel(),
                "label": self.labels.ravel(),
            }
        )

    def __repr__(self) -> str:
        n_h, n_g = self.shape
        return (
            f"SiZerMap(bandwidths={n_h} in [{self.h_min:g}, {self.h_max:g}], "
            f"grid_length={n_g})"
        )
