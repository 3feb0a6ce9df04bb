"""
sizer_trend
~~~~~~~~~~~
Significance-of-slope (SiZer) breakpoint detection and piecewise segment
regression for noisy bivariate trends.

Two calling paths are supported:

Path 1 - a sample table and a configuration:

    from sizer_trend import AnalysisConfig, SiZerAnalysis

    config = AnalysisConfig(x_column="year", y_column="conc", h_min=2, h_max=8,
                            slice_bandwidths=[3, 5])
    result = SiZerAnalysis(df, config).run()
    result["regressions"]

Path 2 - the individual stages on plain arrays:

    from sizer_trend import SiZerMap, aggregate_bandwidths, map_segments, fit_segments

    sizer = SiZerMap.build(x, y, h_min=2, h_max=8)
    segmented = map_segments(x, y, aggregate_bandwidths(sizer))
    table = fit_segments(segmented)
"""

from .analysis import SiZerAnalysis, analyze_groups, validate_samples
from .classifier import classify_slope, classify_slopes, critical_value
from .config import AnalysisConfig
from .errors import InvalidInputError, SiZerError, UnsupportedBandwidthError
from .estimator import LocalSlopeEstimator, evaluation_grid
from .labels import CONFLICT, DECREASING, FLAT, INCREASING, UNAVAILABLE
from .projection import aggregate_bandwidths, consensus_label, slice_bandwidth
from .regression import fit_continuous, fit_segment, fit_segments
from .segmenter import breakpoints, map_segments, nearest_grid_index
from .sizer_map import SiZerMap, bandwidth_levels

__all__ = [
    "AnalysisConfig",
    "SiZerAnalysis",
    "analyze_groups",
    "validate_samples",
    "LocalSlopeEstimator",
    "evaluation_grid",
    "classify_slope",
    "classify_slopes",
    "critical_value",
    "SiZerMap",
    "bandwidth_levels",
    "slice_bandwidth",
    "aggregate_bandwidths",
    "consensus_label",
    "map_segments",
    "nearest_grid_index",
    "breakpoints",
    "fit_segment",
    "fit_segments",
    "fit_continuous",
    "SiZerError",
    "InvalidInputError",
    "UnsupportedBandwidthError",
    "INCREASING",
    "DECREASING",
    "FLAT",
    "UNAVAILABLE",
    "CONFLICT",
]

__version__ = "0.1.0"
