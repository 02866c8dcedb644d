from typing import Any, Iterable, List, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


class MalformedAnnotationError(ValueError):
    """
    Raised when a raw word annotation cannot be turned into a WordAnnotation.

    Attributes
    ----------
    index : int
        Position of the offending entry in the input sequence.
    payload : Any
        The raw entry as it was received.
    """

    def __init__(self, index: int, payload: Any, reason: str = ""):
        self.index = index
        self.payload = payload
        message = f"Malformed word annotation at index {index}: {payload!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class Vertex(BaseModel):
    """
    A polygon corner in image pixel space.

    The vision service drops zero-valued coordinates from its JSON, so a
    missing ``x`` or ``y`` means 0.
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(0.0, allow_inf_nan=False)
    y: float = Field(0.0, allow_inf_nan=False)


class BoundingBox(BaseModel):
    """
    Axis-aligned envelope in image pixel space.
    """

    model_config = ConfigDict(frozen=True)

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def to_tuple(self) -> Tuple[float, float, float, float]:
        """Return the box as ``(x_min, y_min, x_max, y_max)``."""
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    @classmethod
    def envelope(cls, boxes: Iterable["BoundingBox"]) -> "BoundingBox":
        """
        Smallest box covering every box in ``boxes``.

        Raises
        ------
        ValueError
            If ``boxes`` is empty.
        """
        arr = np.array([b.to_tuple() for b in boxes], dtype=np.float64)
        if arr.size == 0:
            raise ValueError("Cannot build an envelope over zero boxes")
        return cls(
            min_x=float(arr[:, 0].min()),
            min_y=float(arr[:, 1].min()),
            max_x=float(arr[:, 2].max()),
            max_y=float(arr[:, 3].max()),
        )


class BoundingPoly(BaseModel):
    """
    Quadrilateral word outline. Vertex order is not guaranteed clockwise.
    """

    model_config = ConfigDict(frozen=True)

    vertices: List[Vertex] = Field(
        ...,
        min_length=4,
        max_length=4,
        description="Exactly four corners (x, y) in arbitrary order.",
    )

    def as_array(self) -> np.ndarray:
        """Vertices as a float array of shape (4, 2)."""
        return np.array([(v.x, v.y) for v in self.vertices], dtype=np.float64)

    @property
    def center(self) -> Tuple[float, float]:
        cx, cy = self.as_array().mean(axis=0)
        return float(cx), float(cy)

    @property
    def bounding_box(self) -> BoundingBox:
        pts = self.as_array()
        return BoundingBox(
            min_x=float(pts[:, 0].min()),
            max_x=float(pts[:, 0].max()),
            min_y=float(pts[:, 1].min()),
            max_y=float(pts[:, 1].max()),
        )


class WordAnnotation(BaseModel):
    """
    A single recognized word as returned by the vision service.

    Can be populated with either the Python field names (``text``,
    ``bounding_poly``) or the wire names (``description``, ``boundingPoly``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(..., alias="description")
    bounding_poly: BoundingPoly = Field(..., alias="boundingPoly")

    @property
    def center_x(self) -> float:
        return self.bounding_poly.center[0]

    @property
    def center_y(self) -> float:
        return self.bounding_poly.center[1]


class TextLine(BaseModel):
    """
    Words judged to lie on the same row, ordered left to right.
    """

    model_config = ConfigDict(frozen=True)

    line_index: int = Field(
        ..., ge=0, description="Top-to-bottom position among the page's lines."
    )
    words: List[WordAnnotation]
    text: str
    bounding_box: BoundingBox


class LineSegment(BaseModel):
    """
    A contiguous run of lines edited together.
    """

    model_config = ConfigDict(frozen=True)

    segment_index: int = Field(
        ..., ge=0, description="Position among the page's segments."
    )
    lines: List[TextLine]
    text: str
    bounding_box: BoundingBox
