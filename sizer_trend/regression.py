"""
sizer_trend.regression
~~~~~~~~~~~~~~~~~~~~~~
Per-segment linear regression statistics.

:func:`fit_segments` fits an independent ordinary least-squares line to every
segment.  :func:`fit_continuous` fits one continuous piecewise-linear model
through the segment breakpoints, for comparison with the independent fits.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd
import pwlf
from scipy.stats import linregress

from .segmenter import breakpoints

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "segment_id",
    "label",
    "bandwidth",
    "x_start",
    "x_end",
    "n",
    "slope",
    "intercept",
    "slope_se",
    "intercept_se",
    "r_squared",
    "p_value",
    "df_resid",
]

_NOT_AVAILABLE = {
    "slope": np.nan,
    "intercept": np.nan,
    "slope_se": np.nan,
    "intercept_se": np.nan,
    "r_squared": np.nan,
    "p_value": np.nan,
}


def fit_segment(x: "array-like", y: "array-like") -> dict:
    """Ordinary least squares of *y* on *x* for one segment.

    Returns
    -------
    dict
        ``slope``, ``intercept``, ``slope_se``, ``intercept_se``,
        ``r_squared``, ``p_value`` (two-sided test of zero slope),
        ``df_resid`` and ``n``.  Every statistic is *NaN* when the segment
        has fewer than two samples or no spread in *x*; with exactly two
        samples the line is exact and only the standard errors and p-value
        are *NaN*.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    n = int(x.size)
    df_resid = max(n - 2, 0)

    if n < 2 or np.ptp(x) == 0:
        return {**_NOT_AVAILABLE, "df_resid": df_resid, "n": n}

    fit = linregress(x, y)
    stats = {
        "slope": float(fit.slope),
        "intercept": float(fit.intercept),
        "slope_se": float(fit.stderr),
        "intercept_se": float(fit.intercept_stderr),
        "r_squared": float(fit.rvalue ** 2),
        "p_value": float(fit.pvalue),
        "df_resid": df_resid,
        "n": n,
    }
    if df_resid == 0:
        stats.update(slope_se=np.nan, intercept_se=np.nan, p_value=np.nan)
    return stats


def fit_segments(
    segmented: pd.DataFrame,
    bandwidth: Optional[float] = None,
) -> pd.DataFrame:
    """Fit every segment of a segmented sample table.

    Parameters
    ----------
    segmented : pandas.DataFrame
        Output of :func:`~sizer_trend.segmenter.map_segments`.
    bandwidth : float, optional
        Bandwidth that produced the segmentation; *None* (stored as *NaN*)
        for the bandwidth aggregate.

    Returns
    -------
    pandas.DataFrame
        One row per segment in segment order, columns
        :data:`RESULT_COLUMNS`.
    """
    rows: list[dict] = []
    for segment_id, seg in segmented.groupby("segment_id", sort=True):
        stats = fit_segment(seg["x"], seg["y"])
        if np.isnan(stats["slope"]):
            logger.warning(
                "segment %d (%d sample%s) cannot support a regression",
                segment_id, stats["n"], "" if stats["n"] == 1 else "s",
            )
        rows.append(
            {
                "segment_id": int(segment_id),
                "label": seg["label"].iloc[0],
                "bandwidth": np.nan if bandwidth is None else float(bandwidth),
                "x_start": float(seg["x"].min()),
                "x_end": float(seg["x"].max()),
                **stats,
            }
        )
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


# ------------------------------------------------------------------
# Continuous piecewise fit
# ------------------------------------------------------------------


def _supported_breaks(x: np.ndarray, interior: list[float], min_points: int) -> list[float]:
    """Drop breakpoints that would leave a piece with fewer than *min_points*."""
    kept: list[float] = []
    lower = -np.inf
    for b in interior:
        before = int(np.sum((x > lower) & (x <= b)))
        after = int(np.sum(x > b))
        if before >= min_points and after >= min_points:
            kept.append(b)
            lower = b
    return kept


def fit_continuous(segmented: pd.DataFrame, min_points: int = 2) -> dict:
    """Continuous piecewise-linear fit through the segment breakpoints.

    Unlike :func:`fit_segments` the pieces share their end values.  Breaks
    that would isolate fewer than *min_points* samples are dropped, so short
    segments merge into a neighbour.

    Returns
    -------
    dict
        ``breaks`` (including both ends of the X range), ``ssr``,
        ``r_squared`` and ``segments``: a DataFrame with ``piece``,
        ``x_start``, ``x_end``, ``slope`` and ``intercept``.
    """
    x = segmented["x"].to_numpy(dtype=float)
    y = segmented["y"].to_numpy(dtype=float)
    if x.size < 2 or np.ptp(x) == 0:
        raise ValueError("a continuous fit needs at least two distinct x values")

    interior = _supported_breaks(x, breakpoints(segmented), min_points)
    breaks = [float(x.min()), *interior, float(x.max())]

    model = pwlf.PiecewiseLinFit(x, y)
    ssr = model.fit_with_breaks(breaks)
    with np.errstate(divide="ignore", invalid="ignore"):
        r_squared = float(model.r_squared())

    pieces = pd.DataFrame(
        {
            "piece": np.arange(len(breaks) - 1),
            "x_start": breaks[:-1],
            "x_end": breaks[1:],
            "slope": np.asarray(model.slopes, dtype=float),
            "intercept": np.asarray(model.intercepts, dtype=float),
        }
    )
    return {
        "breaks": breaks,
        "ssr": float(ssr),
        "r_squared": r_squared,
        "segments": pieces,
    }
