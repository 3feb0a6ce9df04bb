"""
sizer_trend.analysis
~~~~~~~~~~~~~~~~~~~~
High-level facade that validates a sample table, builds its SiZer map and
turns the map into segments and per-segment regressions.
"""

from __future__ import annotations

import logging
from functools import cached_property
from typing import Optional

import numpy as np
import pandas as pd

from .config import AnalysisConfig
from .errors import InvalidInputError, UnsupportedBandwidthError
from .estimator import LocalSlopeEstimator
from .projection import aggregate_bandwidths, slice_bandwidth
from .regression import fit_continuous, fit_segments
from .segmenter import map_segments
from .sizer_map import SiZerMap

logger = logging.getLogger(__name__)

AGGREGATE = "aggregate"
BANDWIDTH = "bandwidth"


def validate_samples(data: pd.DataFrame, config: AnalysisConfig) -> pd.DataFrame:
    """Check one run's sample table and return its X, Y and group columns.

    Raises
    ------
    InvalidInputError
        If a configured column is missing, X or Y is non-numeric or holds
        missing / infinite values, the group keys are not constant, or the
        samples span no X range.
    """
    columns = [config.x_column, config.y_column, *config.group_columns]
    missing = [c for c in columns if c not in data.columns]
    if missing:
        raise InvalidInputError(f"sample table is missing columns {missing}")

    for name in (config.x_column, config.y_column):
        col = data[name]
        if pd.api.types.is_bool_dtype(col) or not pd.api.types.is_numeric_dtype(col):
            raise InvalidInputError(f"column {name!r} is not numeric (dtype {col.dtype})")
        bad = int((~np.isfinite(col.to_numpy(dtype=float))).sum())
        if bad:
            raise InvalidInputError(f"column {name!r} has {bad} missing or infinite values")

    for name in config.group_columns:
        n_keys = data[name].nunique(dropna=False)
        if n_keys > 1:
            raise InvalidInputError(
                f"group column {name!r} holds {n_keys} distinct keys; "
                "run one group at a time or use analyze_groups"
            )

    if len(data) < 2:
        raise InvalidInputError(f"need at least 2 samples, got {len(data)}")
    if data[config.x_column].nunique() < 2:
        raise InvalidInputError("all samples share one X value")
    return data[columns].reset_index(drop=True)


class SiZerAnalysis:
    """Breakpoint detection and segment regression for one (X, Y) series.

    Parameters
    ----------
    data : pandas.DataFrame
        Sample table holding the configured X, Y and group columns.
    config : AnalysisConfig
        Column names, bandwidth range and test settings.

    Examples
    --------
    >>> import pandas as pd
    >>> df = pd.DataFrame({"x": range(1, 21), "y": [2.0 * i for i in range(1, 21)]})
    >>> analysis = SiZerAnalysis(df, AnalysisConfig(h_min=3, h_max=6))
    >>> analysis.aggregate()["label"].unique().tolist()
    ['increasing']
    """

    def __init__(self, data: pd.DataFrame, config: AnalysisConfig) -> None:
        self.config = config
        self.samples = validate_samples(data, config)
        self.x = self.samples[config.x_column].to_numpy(dtype=float)
        self.y = self.samples[config.y_column].to_numpy(dtype=float)
        self.estimator = LocalSlopeEstimator(
            kernel=config.kernel,
            degree=config.degree,
            min_samples=config.min_samples,
        )

    @property
    def group_keys(self) -> dict:
        """Group column values shared by every sample of this run."""
        if self.samples.empty:
            return {}
        return {c: self.samples[c].iloc[0] for c in self.config.group_columns}

    @cached_property
    def sizer_map(self) -> SiZerMap:
        """The SiZer map, built on first access."""
        cfg = self.config
        return SiZerMap.build(
            self.x,
            self.y,
            cfg.h_min,
            cfg.h_max,
            n_bandwidths=cfg.n_bandwidths,
            spacing=cfg.bandwidth_spacing,
            grid_length=cfg.grid_length,
            estimator=self.estimator,
            confidence=cfg.confidence,
            simultaneous=cfg.simultaneous,
            n_jobs=cfg.n_jobs,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def aggregate(self) -> pd.DataFrame:
        """Consensus label per grid position across all bandwidths."""
        return aggregate_bandwidths(self.sizer_map)

    def slice(self, bandwidth: float) -> pd.DataFrame:
        """Labels at the bandwidth level nearest to *bandwidth*."""
        return slice_bandwidth(self.sizer_map, bandwidth)

    def labeled_grid(self, bandwidth: Optional[float] = None) -> pd.DataFrame:
        """The aggregate when *bandwidth* is *None*, otherwise a slice."""
        if bandwidth is None:
            return self.aggregate()
        return self.slice(bandwidth)

    def _segment(self, labeled_grid: pd.DataFrame) -> pd.DataFrame:
        segmented = map_segments(
            self.x,
            self.y,
            labeled_grid,
            merge_turning_points=self.config.merge_turning_points,
        )
        for name, value in self.group_keys.items():
            segmented[name] = value
        return segmented

    def _regress(self, segmented: pd.DataFrame, labeled_grid: pd.DataFrame) -> pd.DataFrame:
        level = float(labeled_grid["bandwidth"].iloc[0])
        is_slice = not np.isnan(level)
        table = fit_segments(segmented, bandwidth=level if is_slice else None)
        table.insert(0, "context", BANDWIDTH if is_slice else AGGREGATE)
        for name, value in self.group_keys.items():
            table.insert(0, name, value)
        return table

    def segments(self, bandwidth: Optional[float] = None) -> pd.DataFrame:
        """Segment-annotated samples for the aggregate or one slice."""
        return self._segment(self.labeled_grid(bandwidth))

    def regressions(self, bandwidth: Optional[float] = None) -> pd.DataFrame:
        """Per-segment OLS statistics for the aggregate or one slice."""
        grid = self.labeled_grid(bandwidth)
        return self._regress(self._segment(grid), grid)

    def continuous_fit(self, bandwidth: Optional[float] = None) -> dict:
        """Continuous piecewise-linear fit through the detected breakpoints."""
        return fit_continuous(self.segments(bandwidth))

    # ------------------------------------------------------------------
    # Convenience bundle
    # ------------------------------------------------------------------

    def run(self) -> dict:
        """Compute every output table for this series.

        Each labeled grid is mapped onto the samples once; the same
        segmentation feeds the segment table and the regressions.

        Keys
        ----
        sizer_map : pandas.DataFrame
            Long table of every map cell.
        aggregate : pandas.DataFrame
            Bandwidth-aggregated labeled grid.
        slices : dict[float, pandas.DataFrame]
            Labeled grid per requested slice bandwidth that lies in range.
        segments : pandas.DataFrame
            Segment-annotated samples for the aggregate.
        slice_segments : dict[float, pandas.DataFrame]
            Segment-annotated samples per entry of ``slices``.
        regressions : pandas.DataFrame
            Aggregate regressions followed by every slice's, with a
            ``context`` column.
        errors : list[str]
            One message per slice bandwidth that could not be served.
        """
        aggregate = self.aggregate()
        slices: dict[float, pd.DataFrame] = {}
        errors: list[str] = []
        for h in self.config.slice_bandwidths:
            try:
                slices[h] = self.slice(h)
            except UnsupportedBandwidthError as exc:
                logger.warning("skipping slice: %s", exc)
                errors.append(str(exc))

        segments = self._segment(aggregate)
        tables = [self._regress(segments, aggregate)]
        slice_segments: dict[float, pd.DataFrame] = {}
        for h, grid in slices.items():
            slice_segments[h] = self._segment(grid)
            tables.append(self._regress(slice_segments[h], grid))

        regressions = pd.concat(tables, ignore_index=True)
        logger.info(
            "%s: %d aggregate segments, %d slices, %d slice errors",
            self.group_keys or "series", int(segments["segment_id"].max()) + 1,
            len(slices), len(errors),
        )
        return {
            "sizer_map": self.sizer_map.to_frame(),
            "aggregate": aggregate,
            "slices": slices,
            "segments": segments,
            "slice_segments": slice_segments,
            "regressions": regressions,
            "errors": errors,
        }


def analyze_groups(data: pd.DataFrame, config: AnalysisConfig) -> pd.DataFrame:
    """Run every group of *data* independently and stack the regressions.

    Groups are defined by ``config.group_columns``; with no group columns the
    whole table is one run.  A group whose samples fail validation is logged
    and left out; the other groups are unaffected.
    """
    if not config.group_columns:
        return SiZerAnalysis(data, config).run()["regressions"]

    tables: list[pd.DataFrame] = []
    for keys, group in data.groupby(config.group_columns, sort=True, dropna=False):
        try:
            analysis = SiZerAnalysis(group, config)
        except InvalidInputError as exc:
            logger.warning("skipping group %s: %s", keys, exc)
            continue
        tables.append(analysis.run()["regressions"])

    if not tables:
        return pd.DataFrame()
    return pd.concat(tables, ignore_index=True)
