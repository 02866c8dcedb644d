from .structures import (
    BoundingBox,
    BoundingPoly,
    LineSegment,
    MalformedAnnotationError,
    TextLine,
    Vertex,
    WordAnnotation,
)
from .vision import (
    VisionResponseError,
    extract_words,
    full_text,
    has_page_entry,
    load_word_annotations,
    parse_vision_response,
)

__all__ = [
    "Vertex",
    "BoundingPoly",
    "BoundingBox",
    "WordAnnotation",
    "TextLine",
    "LineSegment",
    "MalformedAnnotationError",
    "VisionResponseError",
    "parse_vision_response",
    "extract_words",
    "has_page_entry",
    "full_text",
    "load_word_annotations",
]
