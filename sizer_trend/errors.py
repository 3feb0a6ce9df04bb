"""
sizer_trend.errors
~~~~~~~~~~~~~~~~~~
Exceptions raised by the pipeline.

Only structurally invalid requests raise.  Too few samples under a kernel
and segments too short to regress are ordinary outcomes: they show up as the
``"unavailable"`` label and as NaN statistics respectively.
"""


class SiZerError(Exception):
    """Base class for every error raised by :mod:`sizer_trend`."""


class InvalidInputError(SiZerError, ValueError):
    """Sample table or analysis parameters cannot be used.

    Raised before any computation starts: missing or non-numeric X/Y values,
    mixed group keys within one run, or an empty / degenerate bandwidth
    range.
    """


class UnsupportedBandwidthError(SiZerError, ValueError):
    """A slice was requested outside the bandwidth range of a SiZer map."""

    def __init__(self, bandwidth: float, h_min: float, h_max: float) -> None:
        self.bandwidth = bandwidth
        self.h_min = h_min
        self.h_max = h_max
        super().__init__(
            f"bandwidth {bandwidth:g} lies outside the computed range "
            f"[{h_min:g}, {h_max:g}]"
        )
