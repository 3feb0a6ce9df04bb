"""
sizer_trend.segmenter
~~~~~~~~~~~~~~~~~~~~~
Project a labeled evaluation grid back onto the raw samples and cut the
samples into contiguous segments at every label change.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from .labels import CONFLICT, DECREASING, FLAT, INCREASING

logger = logging.getLogger(__name__)


def nearest_grid_index(x: "array-like", grid: "array-like") -> np.ndarray:
    """Index of the nearest grid position for every value of *x*.

    *grid* must be sorted ascending.  A value exactly halfway between two
    positions maps to the lower one.
    """
    x = np.asarray(x, dtype=float)
    grid = np.asarray(grid, dtype=float)
    if grid.size == 1:
        return np.zeros(x.shape, dtype=int)

    upper = np.clip(np.searchsorted(grid, x, side="left"), 1, grid.size - 1)
    lower = upper - 1
    closer_upper = np.abs(grid[upper] - x) < np.abs(x - grid[lower])
    return np.where(closer_upper, upper, lower)


def _merge_turning_points(labels: np.ndarray) -> np.ndarray:
    """Fold lone flat or conflict samples at a peak or trough into the run before.

    A single such sample between an increasing run and a decreasing run (in
    either order) is the turning point itself.  It takes the label of the
    preceding run so the turn does not open a one-sample segment.
    """
    labels = labels.copy()
    starts = np.flatnonzero(np.r_[True, labels[1:] != labels[:-1]])
    ends = np.r_[starts[1:], labels.size]
    for k in range(1, starts.size - 1):
        start, end = starts[k], ends[k]
        if end - start != 1 or labels[start] not in (FLAT, CONFLICT):
            continue
        before, after = labels[starts[k - 1]], labels[starts[k + 1]]
        if {before, after} == {INCREASING, DECREASING}:
            labels[start] = before
    return labels


def map_segments(
    x: "array-like",
    y: "array-like",
    labeled_grid: pd.DataFrame,
    merge_turning_points: bool = True,
) -> pd.DataFrame:
    """Annotate samples with the label of their nearest grid position.

    Parameters
    ----------
    x, y : array-like
        Raw sample coordinates, in any order.
    labeled_grid : pandas.DataFrame
        A slice or aggregate with ``x`` and ``label`` columns, ordered by
        ``x``.
    merge_turning_points : bool
        Relabel a single flat or conflict sample lying between an increasing
        and a decreasing run with the label of the run before it.  At a
        sharp vertex the sample on the vertex sees a symmetric local fit;
        without merging it becomes a segment of its own.

    Returns
    -------
    pandas.DataFrame
        Columns ``x``, ``y``, ``position``, ``label`` and ``segment_id``,
        one row per sample in ascending X order (ties keep input order).
        ``segment_id`` starts at 0 and increases by one at every label
        change.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"x and y differ in shape: {x.shape} vs {y.shape}")

    order = np.argsort(x, kind="stable")
    x, y = x[order], y[order]
    grid_labels = labeled_grid["label"].to_numpy(dtype=object)
    position = nearest_grid_index(x, labeled_grid["x"].to_numpy(dtype=float))
    labels = grid_labels[position]
    if merge_turning_points and labels.size > 2:
        labels = _merge_turning_points(labels)

    changed = np.ones(x.shape, dtype=bool)
    changed[1:] = labels[1:] != labels[:-1]
    segment_id = np.cumsum(changed) - 1

    segmented = pd.DataFrame(
        {
            "x": x,
            "y": y,
            "position": position,
            "label": labels,
            "segment_id": segment_id,
        }
    )
    logger.debug("mapped %d samples onto %d segments", len(x), int(changed.sum()))
    return segmented


def breakpoints(segmented: pd.DataFrame) -> list[float]:
    """X positions where consecutive segments meet.

    Each breakpoint is the midpoint between the last sample of one segment
    and the first sample of the next.
    """
    bounds = segmented.groupby("segment_id", sort=True)["x"].agg(["min", "max"])
    ends = bounds["max"].to_numpy()[:-1]
    starts = bounds["min"].to_numpy()[1:]
    return [float(b) for b in (ends + starts) / 2.0]
