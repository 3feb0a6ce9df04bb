"""
sizer_trend.config
~~~~~~~~~~~~~~~~~~
Validated settings for one SiZer segmentation run.

All defaults live here; the pipeline modules take plain arguments and never
read configuration on their own.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AnalysisConfig(BaseModel):
    """Columns, bandwidth grid and test settings for :class:`SiZerAnalysis`.

    Examples
    --------
    >>> cfg = AnalysisConfig(x_column="year", y_column="conc", h_min=2, h_max=8)
    >>> cfg.grid_length
    41
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    x_column: str = "x"
    y_column: str = "y"
    group_columns: list[str] = Field(default_factory=list)

    h_min: float = Field(..., gt=0, description="Smallest bandwidth")
    h_max: float = Field(..., gt=0, description="Largest bandwidth")
    n_bandwidths: int = Field(11, ge=1, description="Number of bandwidth levels")
    bandwidth_spacing: Literal["linear", "log"] = "log"
    grid_length: int = Field(41, ge=2, description="Evaluation grid positions")

    kernel: Literal["triangular", "epanechnikov", "gaussian"] = "triangular"
    degree: int = Field(1, ge=1, le=3)
    min_samples: int = Field(3, ge=2, description="Samples required under the kernel")
    confidence: float = Field(0.9, gt=0, lt=1)
    simultaneous: bool = True
    n_jobs: int = Field(1, ge=1)

    merge_turning_points: bool = Field(
        True, description="Fold a lone flat sample at a peak or trough into the run before it"
    )

    slice_bandwidths: list[float] = Field(default_factory=list, max_length=3)

    @field_validator("slice_bandwidths")
    @classmethod
    def positive_slices(cls, v: list[float]) -> list[float]:
        if any(h <= 0 for h in v):
            raise ValueError("slice bandwidths must be positive")
        return v

    @model_validator(mode="after")
    def check_consistency(self) -> "AnalysisConfig":
        if self.h_max < self.h_min:
            raise ValueError(f"h_max ({self.h_max}) must not be below h_min ({self.h_min})")
        if self.n_bandwidths == 1 and self.h_min != self.h_max:
            raise ValueError("n_bandwidths=1 requires h_min == h_max")
        if self.min_samples < self.degree + 1:
            raise ValueError(
                f"min_samples ({self.min_samples}) must be at least degree + 1 "
                f"({self.degree + 1})"
            )
        if self.x_column == self.y_column:
            raise ValueError("x_column and y_column must differ")
        overlap = {self.x_column, self.y_column} & set(self.group_columns)
        if overlap:
            raise ValueError(f"group_columns overlap the X/Y columns: {sorted(overlap)}")
        return self
