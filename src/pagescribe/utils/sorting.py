import logging
from functools import cmp_to_key
from typing import (
    Any,
    Callable,
    Iterator,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import numpy as np

from ..data import BoundingBox, LineSegment, TextLine, WordAnnotation
from ..data.vision import coerce_word
from .geometry import polygon_center, polygon_envelope

logger = logging.getLogger(__name__)

DEFAULT_ROW_TOLERANCE = 30.0
DEFAULT_LINE_THRESHOLD = 40.0
DEFAULT_LINES_PER_SEGMENT = 3


class LineStats(NamedTuple):
    """Summary passed to the ``on_lines`` hook after line detection."""

    total_words: int
    detected_lines: int
    avg_words_per_line: float


class _Placed(NamedTuple):
    word: WordAnnotation
    center_x: float
    center_y: float


def _place(word: WordAnnotation) -> _Placed:
    cx, cy = polygon_center([(v.x, v.y) for v in word.bounding_poly.vertices])
    return _Placed(word, cx, cy)


def _reading_order(row_tolerance: float) -> Callable[[_Placed, _Placed], float]:
    def compare(a: _Placed, b: _Placed) -> float:
        dy = a.center_y - b.center_y
        if abs(dy) < row_tolerance:
            return a.center_x - b.center_x
        return dy

    return compare


def _sweep_rows(
    placed: Sequence[_Placed], line_threshold: float
) -> Iterator[Tuple[_Placed, ...]]:
    """
    Single pass over y-sorted words, yielding one tuple per row.

    A word joins the open row while its center-y is within
    ``line_threshold`` of the row's running mean center-y.
    """
    row: List[_Placed] = []
    row_y = 0.0
    for item in placed:
        if row and abs(item.center_y - row_y) < line_threshold:
            row.append(item)
            n = len(row)
            row_y = (row_y * (n - 1) + item.center_y) / n
            continue
        if row:
            yield tuple(row)
        row = [item]
        row_y = item.center_y
    if row:
        yield tuple(row)


def _make_line(row: Sequence[_Placed], line_index: int) -> TextLine:
    ordered = sorted(row, key=lambda p: p.center_x)
    words = [p.word for p in ordered]
    vertices = [(v.x, v.y) for w in words for v in w.bounding_poly.vertices]
    x_min, y_min, x_max, y_max = polygon_envelope(vertices)
    return TextLine(
        line_index=line_index,
        words=words,
        text=" ".join(w.text for w in words),
        bounding_box=BoundingBox(min_x=x_min, max_x=x_max, min_y=y_min, max_y=y_max),
    )


def group_words_into_lines(
    words: Sequence[Union[WordAnnotation, Mapping[str, Any]]],
    row_tolerance: float = DEFAULT_ROW_TOLERANCE,
    line_threshold: float = DEFAULT_LINE_THRESHOLD,
    on_lines: Optional[Callable[[LineStats], None]] = None,
) -> List[TextLine]:
    """
    Group word annotations into text lines in reading order.

    Words are sorted top-to-bottom by center-y (left-to-right by center-x
    when two centers are closer than ``row_tolerance`` vertically), then
    swept once: a word stays on the current line while its center-y is
    within ``line_threshold`` of the line's running mean center-y.

    Parameters
    ----------
    words : sequence of WordAnnotation or dict
        Word annotations in any order. Dicts in the vision wire format
        are validated on the way in.
    row_tolerance : float, default=30.0
        Vertical distance in pixels below which two words are ordered by
        center-x instead of center-y during the initial sort.
    line_threshold : float, default=40.0
        Vertical distance in pixels from the running line mean below
        which a word joins the current line.
    on_lines : callable, optional
        Called once with a :class:`LineStats` after detection.

    Returns
    -------
    list of TextLine
        Lines ordered top-to-bottom, each with words ordered left-to-right.

    Raises
    ------
    MalformedAnnotationError
        If any input word is malformed (wrong vertex count, non-numeric or
        non-finite coordinates, missing text).

    Examples
    --------
    >>> lines = group_words_into_lines(words)
    >>> [line.text for line in lines]
    ['Dear diary,', 'today it rained']

    Notes
    -----
    - Clustering is approximate: the running mean depends on sweep order,
      so slanted rows or words right at ``line_threshold`` may split or
      merge differently for slightly different inputs.
    - Runs in O(n log n) for n words.
    """
    if not words:
        if on_lines is not None:
            on_lines(LineStats(0, 0, 0.0))
        return []

    placed = [_place(coerce_word(idx, w)) for idx, w in enumerate(words)]
    placed.sort(key=cmp_to_key(_reading_order(row_tolerance)))

    lines = [
        _make_line(row, line_index)
        for line_index, row in enumerate(_sweep_rows(placed, line_threshold))
    ]

    stats = LineStats(
        total_words=len(placed),
        detected_lines=len(lines),
        avg_words_per_line=len(placed) / len(lines),
    )
    logger.debug(
        "Line detection: %d words -> %d lines (%.1f words/line)",
        stats.total_words,
        stats.detected_lines,
        stats.avg_words_per_line,
    )
    if on_lines is not None:
        on_lines(stats)

    return lines


def group_lines_into_segments(
    lines: Sequence[TextLine],
    lines_per_segment: int = DEFAULT_LINES_PER_SEGMENT,
) -> List[LineSegment]:
    """
    Split lines into consecutive segments of at most ``lines_per_segment``.

    Parameters
    ----------
    lines : sequence of TextLine
        Lines in reading order.
    lines_per_segment : int, default=3
        Maximum number of lines per segment. Must be at least 1.

    Returns
    -------
    list of LineSegment
        Segments in order. The last one may be shorter; nothing is padded.

    Raises
    ------
    ValueError
        If ``lines_per_segment`` is less than 1.

    Examples
    --------
    >>> segments = group_lines_into_segments(lines_of_seven, 3)
    >>> [len(s.lines) for s in segments]
    [3, 3, 1]
    """
    if isinstance(lines_per_segment, bool) or not isinstance(
        lines_per_segment, (int, np.integer)
    ):
        raise TypeError(
            f"lines_per_segment must be an int, got {type(lines_per_segment)}"
        )
    if lines_per_segment < 1:
        raise ValueError(
            f"lines_per_segment must be >= 1, got {lines_per_segment}"
        )

    segments = []
    for start in range(0, len(lines), lines_per_segment):
        chunk = list(lines[start:start + lines_per_segment])
        segments.append(
            LineSegment(
                segment_index=len(segments),
                lines=chunk,
                text="\n".join(line.text for line in chunk),
                bounding_box=BoundingBox.envelope(
                    line.bounding_box for line in chunk
                ),
            )
        )
    return segments


def combine_segment_texts(
    segments: Sequence[LineSegment],
    edited_texts: Optional[Mapping[int, str]] = None,
) -> str:
    """
    Join segment texts back into one document, applying edits.

    Parameters
    ----------
    segments : sequence of LineSegment
        Segments in the order they were produced.
    edited_texts : mapping of int to str, optional
        Replacement text keyed by segment position. A key that is present
        always wins, even with an empty string; absent keys keep the
        segment's original text.

    Returns
    -------
    str
        Chosen texts joined with ``"\\n"``.

    Notes
    -----
    Edits are matched by position, not content: reordering ``segments``
    after collecting edits applies them to the wrong segments.
    """
    edited_texts = edited_texts or {}
    return "\n".join(
        edited_texts[idx] if idx in edited_texts else segment.text
        for idx, segment in enumerate(segments)
    )
