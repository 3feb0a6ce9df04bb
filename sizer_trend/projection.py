"""
sizer_trend.projection
~~~~~~~~~~~~~~~~~~~~~~
One-dimensional views of a :class:`~sizer_trend.sizer_map.SiZerMap`.

* :func:`slice_bandwidth` - the row at a single bandwidth level.
* :func:`aggregate_bandwidths` - a consensus label per grid position across
  all bandwidth levels.

Both return a labeled grid: a DataFrame with columns ``position``, ``x``,
``label`` and ``bandwidth`` (*NaN* for the aggregate).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np
import pandas as pd

from .errors import UnsupportedBandwidthError
from .labels import CONFLICT, DECREASING, FLAT, INCREASING, UNAVAILABLE
from .sizer_map import SiZerMap

logger = logging.getLogger(__name__)

# Relative slack on the range check so that a level read back from the map
# (or printed and re-parsed) is still accepted.
_RANGE_RTOL = 1e-9


def _labeled_grid(sizer_map: SiZerMap, labels, bandwidth: float) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "position": np.arange(len(sizer_map.grid)),
            "x": np.array(sizer_map.grid),
            "label": np.array(labels, dtype=object),
            "bandwidth": float(bandwidth),
        }
    )


# ------------------------------------------------------------------
# Slicing
# ------------------------------------------------------------------


def nearest_level(sizer_map: SiZerMap, bandwidth: float) -> int:
    """Index of the bandwidth level closest to *bandwidth*.

    Ties resolve to the smaller level.

    Raises
    ------
    UnsupportedBandwidthError
        If *bandwidth* lies outside ``[h_min, h_max]`` of the map.
    """
    h_min, h_max = sizer_map.h_min, sizer_map.h_max
    if not (
        np.isfinite(bandwidth)
        and h_min * (1 - _RANGE_RTOL) <= bandwidth <= h_max * (1 + _RANGE_RTOL)
    ):
        raise UnsupportedBandwidthError(bandwidth, h_min, h_max)
    return int(np.argmin(np.abs(sizer_map.bandwidths - bandwidth)))


def slice_bandwidth(sizer_map: SiZerMap, bandwidth: float) -> pd.DataFrame:
    """Labels of the bandwidth level nearest to *bandwidth*.

    The ``bandwidth`` column holds the level actually used, which may differ
    slightly from the one requested.
    """
    index = nearest_level(sizer_map, bandwidth)
    level = float(sizer_map.bandwidths[index])
    logger.debug("slice at h=%g uses level %d (h=%g)", bandwidth, index, level)
    return _labeled_grid(sizer_map, sizer_map.labels[index], level)


# ------------------------------------------------------------------
# Aggregation
# ------------------------------------------------------------------


def consensus_label(labels: Iterable[str]) -> str:
    """Collapse the labels of one grid column into a single label.

    Unavailable cells are ignored.  When nothing else remains the consensus
    is ``"unavailable"``.  Significant cells pointing both ways give
    ``"conflict"``; otherwise any significant direction wins over flat cells.

    Examples
    --------
    >>> consensus_label(["flat", "increasing", "unavailable"])
    'increasing'
    >>> consensus_label(["increasing", "decreasing"])
    'conflict'
    """
    seen = set(labels) - {UNAVAILABLE}
    if not seen:
        return UNAVAILABLE
    if INCREASING in seen and DECREASING in seen:
        return CONFLICT
    if INCREASING in seen:
        return INCREASING
    if DECREASING in seen:
        return DECREASING
    return FLAT


def aggregate_bandwidths(sizer_map: SiZerMap) -> pd.DataFrame:
    """Consensus label for every grid position across all bandwidth levels."""
    labels = [consensus_label(column) for column in sizer_map.labels.T]
    n_conflict = labels.count(CONFLICT)
    if n_conflict:
        logger.info("%d grid positions have conflicting slope directions", n_conflict)
    return _labeled_grid(sizer_map, labels, np.nan)
