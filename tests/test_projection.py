"""Unit tests for sizer_trend.projection (bandwidth slicer and aggregator)."""

import numpy as np
import pandas as pd
import pytest

from sizer_trend.errors import UnsupportedBandwidthError
from sizer_trend.labels import CONFLICT, DECREASING, FLAT, INCREASING, UNAVAILABLE
from sizer_trend.projection import (
    aggregate_bandwidths,
    consensus_label,
    nearest_level,
    slice_bandwidth,
)
from sizer_trend.sizer_map import SiZerMap

I, D, F, U = INCREASING, DECREASING, FLAT, UNAVAILABLE


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _toy_map(labels, bandwidths=None):
    """SiZerMap with hand-written labels and dummy estimates."""
    labels = np.array(labels, dtype=object)
    n_h, n_g = labels.shape
    if bandwidths is None:
        bandwidths = np.arange(1.0, n_h + 1.0)
    cells = np.zeros((n_h, n_g))
    return SiZerMap(
        grid=np.linspace(0.0, 1.0, n_g),
        bandwidths=bandwidths,
        slope=cells,
        se=cells,
        ess=cells,
        n_local=cells,
        labels=labels,
    )


@pytest.fixture
def toy():
    return _toy_map(
        [
            [U, I, F, I, U, D],
            [U, I, F, D, F, D],
            [U, F, F, F, U, U],
        ],
        bandwidths=[1.0, 2.0, 4.0],
    )


# ---------------------------------------------------------------------------
# consensus_label
# ---------------------------------------------------------------------------

class TestConsensusLabel:
    def test_all_flat(self):
        assert consensus_label([F, F, F]) == FLAT

    def test_direction_beats_flat(self):
        assert consensus_label([F, I, F]) == INCREASING
        assert consensus_label([D, F]) == DECREASING

    def test_unavailable_ignored(self):
        assert consensus_label([U, D, U]) == DECREASING
        assert consensus_label([U, F]) == FLAT

    def test_opposite_directions_conflict(self):
        assert consensus_label([I, F, D]) == CONFLICT

    def test_all_unavailable(self):
        assert consensus_label([U, U]) == UNAVAILABLE

    def test_empty_column(self):
        assert consensus_label([]) == UNAVAILABLE


# ---------------------------------------------------------------------------
# aggregate_bandwidths
# ---------------------------------------------------------------------------

class TestAggregate:
    def test_column_votes(self, toy):
        agg = aggregate_bandwidths(toy)
        assert agg["label"].tolist() == [U, I, F, CONFLICT, F, D]

    def test_columns(self, toy):
        agg = aggregate_bandwidths(toy)
        assert list(agg.columns) == ["position", "x", "label", "bandwidth"]
        assert agg["bandwidth"].isna().all()
        assert np.allclose(agg["x"], toy.grid)

    def test_idempotent(self, noisy_wave):
        x, y = noisy_wave
        sizer = SiZerMap.build(x, y, 0.5, 4.0, n_bandwidths=5)
        pd.testing.assert_frame_equal(aggregate_bandwidths(sizer), aggregate_bandwidths(sizer))

    def test_map_untouched(self, toy):
        before = toy.labels.copy()
        aggregate_bandwidths(toy)
        assert (toy.labels == before).all()


# ---------------------------------------------------------------------------
# slice_bandwidth
# ---------------------------------------------------------------------------

class TestSlice:
    def test_exact_level(self, toy):
        row = slice_bandwidth(toy, 2.0)
        assert row["label"].tolist() == [U, I, F, D, F, D]
        assert (row["bandwidth"] == 2.0).all()

    def test_nearest_level(self, toy):
        assert slice_bandwidth(toy, 3.5)["bandwidth"].iloc[0] == 4.0
        assert slice_bandwidth(toy, 1.2)["bandwidth"].iloc[0] == 1.0

    def test_tie_goes_to_smaller_level(self, toy):
        assert nearest_level(toy, 1.5) == 0

    @pytest.mark.parametrize("h", [1.0, 4.0, 2.7])
    def test_inside_range_succeeds(self, toy, h):
        assert len(slice_bandwidth(toy, h)) == 6

    def test_above_range_fails(self, toy):
        with pytest.raises(UnsupportedBandwidthError) as exc_info:
            slice_bandwidth(toy, toy.h_max + 1)
        assert exc_info.value.bandwidth == 5.0
        assert exc_info.value.h_max == 4.0

    @pytest.mark.parametrize("h", [0.999, 0.0, -2.0, np.nan, np.inf])
    def test_outside_range_fails(self, toy, h):
        with pytest.raises(UnsupportedBandwidthError):
            slice_bandwidth(toy, h)

    def test_error_is_a_value_error(self, toy):
        with pytest.raises(ValueError):
            slice_bandwidth(toy, 10.0)
