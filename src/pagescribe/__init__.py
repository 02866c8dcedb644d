from ._reconstructor import LineReconstructor
from .config import ReconstructionConfig
from .data import LineSegment, TextLine, WordAnnotation
from .utils import (
    combine_segment_texts,
    group_lines_into_segments,
    group_words_into_lines,
)

__all__ = [
    "LineReconstructor",
    "ReconstructionConfig",
    "WordAnnotation",
    "TextLine",
    "LineSegment",
    "group_words_into_lines",
    "group_lines_into_segments",
    "combine_segment_texts",
]
