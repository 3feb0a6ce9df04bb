"""
sizer_trend.estimator
~~~~~~~~~~~~~~~~~~~~~
Kernel-weighted local polynomial estimates of the first derivative of a
noisy trend, together with their standard errors.

At every position ``g`` of an evenly spaced evaluation grid the samples are
fitted by weighted least squares on powers of ``(x - g)``; the coefficient of
the linear term is the slope at ``g``.  The standard error combines the
equivalent-kernel weights with a local residual variance, as in SiZer.
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

KERNELS = ("triangular", "epanechnikov", "gaussian")

# Gaussian weights never reach zero; samples beyond three bandwidths are
# treated as outside the kernel support.
_GAUSSIAN_SUPPORT = 3.0

# Relative size of floating-point error in a slope estimate.
_ROUNDING = 1e4 * np.finfo(float).eps


def evaluation_grid(x: "array-like", grid_length: int = 41) -> np.ndarray:
    """Return ``grid_length`` evenly spaced positions over ``[min(x), max(x)]``."""
    x = np.asarray(x, dtype=float)
    if grid_length < 2:
        raise ValueError(f"grid_length must be at least 2, got {grid_length}")
    if x.size == 0:
        raise ValueError("cannot build an evaluation grid from no samples")
    return np.linspace(x.min(), x.max(), int(grid_length))


class LocalSlopeEstimator:
    """Local polynomial derivative estimator.

    Parameters
    ----------
    kernel : str
        One of ``"triangular"`` (default), ``"epanechnikov"`` or
        ``"gaussian"``.  All kernels are scaled so that ``K(0) == 1``.
    degree : int
        Degree of the local polynomial (default 1, a local linear fit).
    min_samples : int
        Minimum number of samples inside the kernel support for a position
        to be estimated (default 3).  Fewer samples mark the position as
        unavailable.
    """

    def __init__(
        self,
        kernel: str = "triangular",
        degree: int = 1,
        min_samples: int = 3,
    ) -> None:
        if kernel not in KERNELS:
            raise ValueError(f"unknown kernel {kernel!r}; expected one of {KERNELS}")
        if degree < 1:
            raise ValueError("degree must be at least 1 to estimate a slope")
        if min_samples < degree + 1:
            raise ValueError(
                f"min_samples must be at least degree + 1 ({degree + 1}), "
                f"got {min_samples}"
            )
        self.kernel = kernel
        self.degree = degree
        self.min_samples = min_samples

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------

    @staticmethod
    def kernel_weights(u: np.ndarray, kernel: str = "triangular") -> np.ndarray:
        """Kernel weights at scaled distances *u*; zero outside the support."""
        u = np.abs(np.asarray(u, dtype=float))
        if kernel == "triangular":
            return np.clip(1.0 - u, 0.0, None)
        if kernel == "epanechnikov":
            return np.clip(1.0 - u ** 2, 0.0, None)
        if kernel == "gaussian":
            return np.where(u <= _GAUSSIAN_SUPPORT, np.exp(-0.5 * u ** 2), 0.0)
        raise ValueError(f"unknown kernel {kernel!r}")

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------

    def _equivalent_kernel(
        self, x: np.ndarray, g: float, h: float, min_count: int
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray] | None:
        """Equivalent-kernel rows of the local fit at *g*.

        Returns ``(rows, support, weights)`` where ``rows`` has one row per
        polynomial coefficient (already rescaled to the units of *x*) and one
        column per sample inside ``support``.  Returns *None* when fewer than
        *min_count* samples carry weight or the local design is singular.
        """
        weights = self.kernel_weights((x - g) / h, self.kernel)
        support = weights > 0
        if support.sum() < min_count:
            return None

        u = (x[support] - g) / h
        w = weights[support]
        design = np.vander(u, self.degree + 1, increasing=True)
        if np.linalg.matrix_rank(design * np.sqrt(w)[:, None]) < self.degree + 1:
            return None

        xtw = design.T * w
        try:
            rows = np.linalg.solve(xtw @ design, xtw)
        except np.linalg.LinAlgError:
            return None
        scale = h ** np.arange(self.degree + 1, dtype=float)
        return rows / scale[:, None], support, w

    def fitted_values(self, x: "array-like", y: "array-like", h: float) -> np.ndarray:
        """Evaluate the local polynomial smoother at the sample positions.

        Positions where the local design cannot be solved get *NaN*.
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        fitted = np.full(x.shape, np.nan)
        for i, xi in enumerate(x):
            kernel = self._equivalent_kernel(x, xi, h, self.degree + 1)
            if kernel is None:
                continue
            rows, support, _ = kernel
            fitted[i] = rows[0] @ y[support]
        return fitted

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def estimate(
        self,
        x: "array-like",
        y: "array-like",
        h: float,
        grid: "array-like",
    ) -> dict:
        """Estimate the slope and its standard error at every grid position.

        Parameters
        ----------
        x, y : array-like
            Sample coordinates; need not be sorted or evenly spaced.
        h : float
            Bandwidth, in the units of *x*.
        grid : array-like
            Evaluation positions.

        Returns
        -------
        dict
            Arrays aligned with *grid*: ``slope``, ``se``, ``ess`` (effective
            sample size), ``n_local`` (samples inside the kernel support) and
            ``available`` (bool).  Unavailable positions hold *NaN* in
            ``slope`` and ``se``.
        """
        if not h > 0:
            raise ValueError(f"bandwidth must be positive, got {h}")
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        grid = np.asarray(grid, dtype=float)

        residuals = y - self.fitted_values(x, y, h)
        finite = np.isfinite(residuals)

        slope = np.full(grid.shape, np.nan)
        se = np.full(grid.shape, np.nan)
        ess = np.zeros(grid.shape)
        n_local = np.zeros(grid.shape, dtype=int)

        for j, g in enumerate(grid):
            weights = self.kernel_weights((x - g) / h, self.kernel)
            ess[j] = weights.sum()
            n_local[j] = int((weights > 0).sum())

            kernel = self._equivalent_kernel(x, g, h, self.min_samples)
            if kernel is None:
                continue
            rows, support, w = kernel

            usable = finite[support]
            if not usable.any():
                continue
            r = residuals[support][usable]
            sigma2 = float(np.sum(w[usable] * r ** 2) / np.sum(w[usable]))

            slope[j] = rows[1] @ y[support]
            # se is floored at the rounding error of the dot product above.
            floor = _ROUNDING * np.sum(np.abs(rows[1] * y[support]))
            se[j] = max(np.sqrt(sigma2 * np.sum(rows[1] ** 2)), floor)

        available = np.isfinite(slope) & np.isfinite(se)
        logger.debug(
            "h=%g: %d of %d grid positions estimated",
            h, int(available.sum()), grid.size,
        )
        return {
            "slope": slope,
            "se": se,
            "ess": ess,
            "n_local": n_local,
            "available": available,
        }
