import logging
import math
from collections import Counter

import numpy as np
import pytest

from pagescribe.data import BoundingBox, MalformedAnnotationError
from pagescribe.utils import (
    LineStats,
    combine_segment_texts,
    group_lines_into_segments,
    group_words_into_lines,
)


def _texts(lines):
    return [[w.text for w in line.words] for line in lines]


# --- group_words_into_lines: scenarios ---


def test_close_words_share_a_line(word_factory):
    """ΔY=10 is below the line threshold: one line, ordered by x"""
    words = [word_factory("world", 200, 110), word_factory("hello", 50, 100)]

    lines = group_words_into_lines(words)

    assert len(lines) == 1
    assert lines[0].text == "hello world"
    assert lines[0].line_index == 0


def test_distant_words_split_lines(word_factory):
    """ΔY=100 is above the line threshold: two lines"""
    words = [word_factory("second", 50, 200), word_factory("first", 50, 100)]

    lines = group_words_into_lines(words)

    assert [line.text for line in lines] == ["first", "second"]
    assert [line.line_index for line in lines] == [0, 1]


def test_empty_input():
    assert group_words_into_lines([]) == []


def test_single_word(word_factory):
    lines = group_words_into_lines([word_factory("alone", 10, 10)])
    assert len(lines) == 1
    assert lines[0].text == "alone"
    assert len(lines[0].words) == 1


def test_identical_y_gives_one_line(word_factory):
    words = [word_factory(str(i), 500 - 50 * i, 300) for i in range(8)]
    lines = group_words_into_lines(words)
    assert len(lines) == 1
    assert lines[0].text == "7 6 5 4 3 2 1 0"


# --- group_words_into_lines: thresholds ---


def test_line_threshold_is_strict(word_factory):
    """Exactly 40px apart starts a new line"""
    words = [word_factory("a", 50, 100), word_factory("b", 50, 140)]
    assert len(group_words_into_lines(words)) == 2


def test_running_mean_not_first_word(word_factory):
    """Third word is 50px from the first but 30.5px from the line mean"""
    words = [
        word_factory("a", 10, 100),
        word_factory("b", 20, 139),
        word_factory("c", 30, 150),
    ]
    lines = group_words_into_lines(words)
    assert _texts(lines) == [["a", "b", "c"]]


def test_running_mean_not_last_word(word_factory):
    """Third word is 37px from the previous word but 54.5px from the line mean"""
    words = [
        word_factory("a", 10, 100),
        word_factory("b", 20, 135),
        word_factory("c", 30, 172),
    ]
    lines = group_words_into_lines(words)
    assert _texts(lines) == [["a", "b"], ["c"]]


def test_custom_line_threshold(word_factory):
    words = [word_factory("a", 50, 100), word_factory("b", 90, 150)]
    assert len(group_words_into_lines(words)) == 2
    assert len(group_words_into_lines(words, line_threshold=60)) == 1


def test_row_tolerance_orders_near_rows_by_x(word_factory):
    """Words less than row_tolerance apart vertically are swept left to right"""
    words = [
        word_factory("right", 400, 100),
        word_factory("left", 50, 125),
        word_factory("next", 50, 200),
    ]
    lines = group_words_into_lines(words)
    assert _texts(lines) == [["left", "right"], ["next"]]


def test_vertex_order_does_not_matter(word_factory):
    words = [
        word_factory("b", 200, 100, rotate_vertices=1),
        word_factory("a", 50, 100, rotate_vertices=3),
    ]
    assert group_words_into_lines(words)[0].text == "a b"


def test_line_bounding_box(word_factory):
    words = [
        word_factory("a", 50, 100, width=40, height=20),
        word_factory("b", 150, 110, width=60, height=30),
    ]
    (line,) = group_words_into_lines(words)
    assert line.bounding_box == BoundingBox(min_x=30, max_x=180, min_y=90, max_y=125)


# --- group_words_into_lines: input handling ---


def test_accepts_wire_format_dicts(raw_word_factory):
    words = [raw_word_factory("b", 150, 100), raw_word_factory("a", 50, 100)]
    assert group_words_into_lines(words)[0].text == "a b"


def test_malformed_word_fails_fast(raw_word_factory):
    words = [raw_word_factory("ok", 50, 100), raw_word_factory("bad", 150, 100)]
    words[1]["boundingPoly"]["vertices"] = words[1]["boundingPoly"]["vertices"][:3]

    with pytest.raises(MalformedAnnotationError) as exc_info:
        group_words_into_lines(words)

    assert exc_info.value.index == 1
    assert "bad" in str(exc_info.value)


def test_non_finite_coordinate_fails_fast(raw_word_factory):
    words = [raw_word_factory("nan", 50, 100)]
    words[0]["boundingPoly"]["vertices"][0]["y"] = math.nan
    with pytest.raises(MalformedAnnotationError):
        group_words_into_lines(words)


def test_on_lines_hook(word_factory):
    calls = []
    words = [
        word_factory("a", 50, 100),
        word_factory("b", 120, 100),
        word_factory("c", 190, 100),
        word_factory("d", 50, 200),
    ]

    group_words_into_lines(words, on_lines=calls.append)

    assert calls == [LineStats(total_words=4, detected_lines=2, avg_words_per_line=2.0)]


def test_on_lines_hook_empty():
    calls = []
    group_words_into_lines([], on_lines=calls.append)
    assert calls == [LineStats(0, 0, 0.0)]


def test_debug_log(word_factory, caplog):
    with caplog.at_level(logging.DEBUG, logger="pagescribe.utils.sorting"):
        group_words_into_lines([word_factory("a", 50, 100), word_factory("b", 50, 200)])
    assert "2 words -> 2 lines" in caplog.text


# --- group_words_into_lines: properties on synthetic pages ---


@pytest.mark.parametrize("seed", range(10))
def test_grouping_properties(page_factory, seed):
    rng = np.random.default_rng(seed)
    words, rows = page_factory(rng, n_lines=int(rng.integers(1, 13)))

    lines = group_words_into_lines(words)

    # expected reading order
    assert _texts(lines) == rows

    # partition: every input word exactly once
    grouped = [w for line in lines for w in line.words]
    assert Counter(w.text for w in grouped) == Counter(w.text for w in words)
    assert len(grouped) == len(words)

    # lines top to bottom
    mean_y = [sum(w.center_y for w in line.words) / len(line.words) for line in lines]
    assert mean_y == sorted(mean_y)

    # words left to right
    for line in lines:
        xs = [w.center_x for w in line.words]
        assert xs == sorted(xs)

    assert [line.line_index for line in lines] == list(range(len(lines)))


def test_grouping_is_deterministic(page_factory, rng):
    words, _ = page_factory(rng, n_lines=9)
    assert group_words_into_lines(words) == group_words_into_lines(words)


def test_grouping_ignores_input_order(page_factory, rng):
    words, _ = page_factory(rng, n_lines=6)
    assert group_words_into_lines(words) == group_words_into_lines(list(reversed(words)))


# --- group_lines_into_segments ---


def _lines(word_factory, n):
    words = [word_factory(f"line{i}", 50, 100 + 100 * i) for i in range(n)]
    return group_words_into_lines(words)


def test_seven_lines_in_threes(word_factory):
    lines = _lines(word_factory, 7)

    segments = group_lines_into_segments(lines, 3)

    assert [len(s.lines) for s in segments] == [3, 3, 1]
    assert [s.segment_index for s in segments] == [0, 1, 2]
    assert segments[0].text == "line0\nline1\nline2"
    assert segments[2].text == "line6"


def test_default_is_three_lines(word_factory):
    segments = group_lines_into_segments(_lines(word_factory, 6))
    assert [len(s.lines) for s in segments] == [3, 3]


def test_segments_of_empty_lines():
    assert group_lines_into_segments([], 3) == []


@pytest.mark.parametrize("lines_per_segment", [1, 2, 3, 4, 5, 11, 50])
def test_segments_flatten_to_lines(word_factory, lines_per_segment):
    lines = _lines(word_factory, 11)

    segments = group_lines_into_segments(lines, lines_per_segment)

    assert [line for s in segments for line in s.lines] == lines
    assert all(len(s.lines) <= lines_per_segment for s in segments)
    assert len(segments) == math.ceil(11 / lines_per_segment)


def test_segment_bounding_box(word_factory):
    words = [
        word_factory("a", 50, 100, width=40, height=20),
        word_factory("b", 300, 200, width=100, height=40),
    ]
    (segment,) = group_lines_into_segments(group_words_into_lines(words), 3)
    assert segment.bounding_box == BoundingBox(min_x=30, max_x=350, min_y=90, max_y=220)


@pytest.mark.parametrize("bad", [0, -1, -3])
def test_non_positive_lines_per_segment(word_factory, bad):
    with pytest.raises(ValueError, match="lines_per_segment"):
        group_lines_into_segments(_lines(word_factory, 3), bad)


def test_non_integer_lines_per_segment(word_factory):
    with pytest.raises(TypeError):
        group_lines_into_segments(_lines(word_factory, 3), 2.5)


# --- combine_segment_texts ---


def test_combine_without_edits_is_page_text(word_factory):
    lines = _lines(word_factory, 7)
    segments = group_lines_into_segments(lines, 3)

    combined = combine_segment_texts(segments, {})

    assert combined == "\n".join(s.text for s in segments)
    assert combined == "\n".join(line.text for line in lines)
    assert combine_segment_texts(segments) == combined


def test_combine_applies_edit(word_factory):
    words = [
        word_factory("first", 50, 100),
        word_factory("original", 50, 200),
        word_factory("text", 150, 200),
        word_factory("third", 50, 300),
    ]
    segments = group_lines_into_segments(group_words_into_lines(words), 1)
    assert segments[1].text == "original text"

    combined = combine_segment_texts(segments, {1: "corrected text"})

    assert combined == "first\ncorrected text\nthird"


def test_combine_keeps_empty_edit(word_factory):
    segments = group_lines_into_segments(_lines(word_factory, 3), 1)
    assert combine_segment_texts(segments, {0: ""}) == "\nline1\nline2"


def test_combine_ignores_unknown_indices(word_factory):
    segments = group_lines_into_segments(_lines(word_factory, 2), 1)
    assert combine_segment_texts(segments, {5: "ghost"}) == "line0\nline1"


def test_combine_multiline_edit(word_factory):
    segments = group_lines_into_segments(_lines(word_factory, 4), 2)
    combined = combine_segment_texts(segments, {0: "fixed a\nfixed b"})
    assert combined == "fixed a\nfixed b\nline2\nline3"


def test_combine_empty():
    assert combine_segment_texts([], {}) == ""
