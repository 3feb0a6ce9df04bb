"""
sizer_trend.labels
~~~~~~~~~~~~~~~~~~
Slope classification vocabulary shared by every stage of the pipeline.
"""

INCREASING = "increasing"
DECREASING = "decreasing"
FLAT = "flat"
UNAVAILABLE = "unavailable"

# Only produced by the bandwidth aggregator, when significant cells in one
# grid column disagree on direction.
CONFLICT = "conflict"

CELL_LABELS = (INCREASING, DECREASING, FLAT, UNAVAILABLE)
ALL_LABELS = CELL_LABELS + (CONFLICT,)
