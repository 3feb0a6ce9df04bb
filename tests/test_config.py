"""Unit tests for sizer_trend.config.AnalysisConfig."""

import pytest
from pydantic import ValidationError

from sizer_trend.config import AnalysisConfig


class TestDefaults:
    def test_defaults(self):
        cfg = AnalysisConfig(h_min=1, h_max=4)
        assert cfg.x_column == "x"
        assert cfg.y_column == "y"
        assert cfg.grid_length == 41
        assert cfg.n_bandwidths == 11
        assert cfg.bandwidth_spacing == "log"
        assert cfg.kernel == "triangular"
        assert cfg.confidence == pytest.approx(0.9)
        assert cfg.min_samples == 3
        assert cfg.slice_bandwidths == []
        assert cfg.merge_turning_points is True

    def test_column_names_stripped(self):
        cfg = AnalysisConfig(x_column=" year ", y_column="conc", h_min=1, h_max=2)
        assert cfg.x_column == "year"


class TestValidation:
    def test_bandwidth_range_required(self):
        with pytest.raises(ValidationError):
            AnalysisConfig()

    def test_reversed_range(self):
        with pytest.raises(ValidationError) as exc_info:
            AnalysisConfig(h_min=4, h_max=1)
        assert "h_max" in str(exc_info.value)

    def test_nonpositive_bandwidth(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(h_min=0, h_max=1)

    def test_single_level_needs_point_range(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(h_min=1, h_max=2, n_bandwidths=1)
        assert AnalysisConfig(h_min=2, h_max=2, n_bandwidths=1).n_bandwidths == 1

    def test_at_most_three_slices(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(h_min=1, h_max=4, slice_bandwidths=[1, 2, 3, 4])

    def test_slices_must_be_positive(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(h_min=1, h_max=4, slice_bandwidths=[2, -1])

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(h_min=1, h_max=4, smoothing="loess")

    def test_unknown_kernel(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(h_min=1, h_max=4, kernel="box")

    def test_same_x_and_y(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(x_column="v", y_column="v", h_min=1, h_max=4)

    def test_group_column_overlap(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(group_columns=["x"], h_min=1, h_max=4)

    def test_min_samples_vs_degree(self):
        with pytest.raises(ValidationError):
            AnalysisConfig(h_min=1, h_max=4, degree=3, min_samples=3)

    def test_assignment_is_validated(self):
        cfg = AnalysisConfig(h_min=1, h_max=4)
        with pytest.raises(ValidationError):
            cfg.confidence = 1.5
