"""Common utilities for pagescribe."""

# I/O utilities
from .io import read_image

# Geometry utilities
from .geometry import (
    box_iou,
    polygon_center,
    polygon_envelope,
)

# Line and segment reconstruction
from .sorting import (
    LineStats,
    combine_segment_texts,
    group_lines_into_segments,
    group_words_into_lines,
)

# Visualization utilities
from .visualization import (
    crop_region,
    visualize_segments,
)


__all__ = [
    # I/O
    "read_image",
    # Geometry
    "box_iou",
    "polygon_center",
    "polygon_envelope",
    # Sorting
    "LineStats",
    "group_words_into_lines",
    "group_lines_into_segments",
    "combine_segment_texts",
    # Visualization
    "crop_region",
    "visualize_segments",
]
