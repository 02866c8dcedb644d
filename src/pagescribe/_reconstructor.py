import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .config import ReconstructionConfig
from .data import BoundingBox, LineSegment, TextLine, WordAnnotation
from .data.vision import extract_words
from .utils import (
    LineStats,
    box_iou,
    combine_segment_texts,
    group_lines_into_segments,
    group_words_into_lines,
)

logger = logging.getLogger(__name__)

WordsOrResponse = Union[Sequence[Union[WordAnnotation, Mapping[str, Any]]], Mapping[str, Any]]


class LineReconstructor:
    """
    High-level entry point turning OCR word annotations into editable text.

    Combines line grouping, segmentation and recombination with a shared
    configuration: words → lines → segments → (edits) → page text.

    Attributes
    ----------
    config : ReconstructionConfig
        Thresholds used for every call.
    on_lines : callable or None
        Observability hook receiving a :class:`LineStats` per detection.

    Examples
    --------
    >>> from pagescribe import LineReconstructor
    >>> reconstructor = LineReconstructor()
    >>> result = reconstructor.predict(vision_response)
    >>> for segment in result["segments"]:
    ...     print(segment.segment_index, segment.text)
    >>> text = reconstructor.combine(result["segments"], {1: "corrected text"})

    Custom thresholds for a high-resolution scan:

    >>> from pagescribe import ReconstructionConfig
    >>> config = ReconstructionConfig(row_tolerance=60, line_threshold=80)
    >>> reconstructor = LineReconstructor(config=config)
    """

    def __init__(
        self,
        config: Optional[ReconstructionConfig] = None,
        on_lines: Optional[Callable[[LineStats], None]] = None,
    ):
        self.config = config if config is not None else ReconstructionConfig()
        self.on_lines = on_lines

    def group_lines(
        self, words: Sequence[Union[WordAnnotation, Mapping[str, Any]]]
    ) -> List[TextLine]:
        """
        Group words into reading-order lines using the configured thresholds.

        Parameters
        ----------
        words : sequence of WordAnnotation or dict
            Word annotations in any order.

        Returns
        -------
        list of TextLine
            Lines top-to-bottom, words left-to-right.
        """
        return group_words_into_lines(
            words,
            row_tolerance=self.config.row_tolerance,
            line_threshold=self.config.line_threshold,
            on_lines=self.on_lines,
        )

    def segment(self, lines: Sequence[TextLine]) -> List[LineSegment]:
        """
        Split lines into segments of ``config.lines_per_segment`` lines.

        Parameters
        ----------
        lines : sequence of TextLine
            Lines in reading order.

        Returns
        -------
        list of LineSegment
            Contiguous segments; the last one may be shorter.
        """
        return group_lines_into_segments(lines, self.config.lines_per_segment)

    def combine(
        self,
        segments: Sequence[LineSegment],
        edited_texts: Optional[Mapping[int, str]] = None,
    ) -> str:
        """
        Page text from segments, with corrected texts swapped in.

        Parameters
        ----------
        segments : sequence of LineSegment
            Segments as returned by :meth:`segment` or :meth:`predict`.
        edited_texts : mapping of int to str, optional
            Replacement text keyed by segment position.

        Returns
        -------
        str
            Segment texts joined with newlines.
        """
        return combine_segment_texts(segments, edited_texts)

    def predict(self, source: WordsOrResponse, profile: bool = False) -> Dict[str, Any]:
        """
        Run line grouping and segmentation on one page.

        Parameters
        ----------
        source : sequence of WordAnnotation/dict, or dict
            Word annotations, or a raw text-detection response: anything
            accepted by :func:`pagescribe.data.extract_words`. A leading
            page-level entry in a list is skipped.
        profile : bool, optional
            If True, logs timing for each stage at INFO level.

        Returns
        -------
        dict
            - ``"lines"``: list of TextLine
            - ``"segments"``: list of LineSegment
            - ``"text"``: unedited page text (lines joined by newlines)
        """
        t0 = time.time()
        words = extract_words(source)
        if profile:
            logger.info("Parse: %.3fs", time.time() - t0)

        t1 = time.time()
        lines = self.group_lines(words)
        if profile:
            logger.info("Line grouping: %.3fs", time.time() - t1)

        t1 = time.time()
        segments = self.segment(lines)
        if profile:
            logger.info("Segmentation: %.3fs", time.time() - t1)
            logger.info("Total: %.3fs", time.time() - t0)

        return {
            "lines": lines,
            "segments": segments,
            "text": self.get_text(lines),
        }

    def get_text(self, items: Sequence[Union[TextLine, LineSegment]]) -> str:
        """
        Plain text of lines or segments, one per row, newline separated.

        Examples
        --------
        >>> reconstructor.get_text(result["lines"]) == reconstructor.get_text(result["segments"])
        True
        """
        return "\n".join(item.text for item in items)

    def segment_at(
        self, segments: Sequence[LineSegment], point: Tuple[float, float]
    ) -> Optional[LineSegment]:
        """
        Segment whose bounding box contains an image-space point.

        When boxes overlap the first matching segment in reading order wins.
        Returns None if no segment contains the point.
        """
        x, y = point
        for segment in segments:
            if segment.bounding_box.contains(x, y):
                return segment
        return None

    def segment_for_region(
        self,
        segments: Sequence[LineSegment],
        region: Union[BoundingBox, Tuple[float, float, float, float]],
    ) -> Optional[LineSegment]:
        """
        Segment that overlaps an image region the most (by IoU).

        Returns None if no segment overlaps the region.
        """
        if isinstance(region, BoundingBox):
            region = region.to_tuple()
        best, best_iou = None, 0.0
        for segment in segments:
            iou = box_iou(segment.bounding_box.to_tuple(), region)
            if iou > best_iou:
                best, best_iou = segment, iou
        return best
