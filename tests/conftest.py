"""Pytest configuration and fixtures."""

import numpy as np
import pytest

from pagescribe.data import WordAnnotation


def make_word(text, cx, cy, width=40.0, height=20.0, rotate_vertices=0):
    """Word centred at (cx, cy). ``rotate_vertices`` shifts the vertex order."""
    hw, hh = width / 2, height / 2
    vertices = [
        {"x": cx - hw, "y": cy - hh},
        {"x": cx + hw, "y": cy - hh},
        {"x": cx + hw, "y": cy + hh},
        {"x": cx - hw, "y": cy + hh},
    ]
    k = rotate_vertices % 4
    vertices = vertices[k:] + vertices[:k]
    return WordAnnotation(text=text, bounding_poly={"vertices": vertices})


def make_raw_word(text, cx, cy, width=40.0, height=20.0):
    """Same as make_word but in the vision wire format."""
    return make_word(text, cx, cy, width, height).model_dump(by_alias=True)


@pytest.fixture
def word_factory():
    return make_word


@pytest.fixture
def raw_word_factory():
    return make_raw_word


def build_page(rng, n_lines, max_words=8, line_spacing=80.0, y_jitter=10.0):
    """
    Synthetic page: well separated rows with small vertical jitter.

    Returns (shuffled words, expected rows of word texts in reading order).
    """
    rows = []
    words = []
    for line_no in range(n_lines):
        n_words = int(rng.integers(1, max_words + 1))
        row = []
        for i in range(n_words):
            text = f"w{line_no}_{i}"
            cx = 50.0 + 60.0 * i + float(rng.uniform(-5, 5))
            cy = 100.0 + line_spacing * line_no + float(rng.uniform(-y_jitter, y_jitter))
            words.append(make_word(text, cx, cy))
            row.append(text)
        rows.append(row)
    order = rng.permutation(len(words))
    return [words[i] for i in order], rows


@pytest.fixture
def page_factory():
    return build_page


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def vision_response():
    """Text-detection response for two short handwritten lines."""
    words = [
        make_raw_word("Dear", 60, 100),
        make_raw_word("diary,", 120, 104),
        make_raw_word("today", 50, 180),
        make_raw_word("it", 110, 176),
        make_raw_word("rained", 170, 183),
    ]
    full = {
        "locale": "en",
        "description": "Dear diary,\ntoday it rained\n",
        "boundingPoly": {
            "vertices": [{"x": 30, "y": 90}, {"x": 190, "y": 90}, {"x": 190, "y": 193}, {"x": 30, "y": 193}]
        },
    }
    return {"responses": [{"textAnnotations": [full] + words}]}


@pytest.fixture
def single_line_annotations():
    """Bare textAnnotations list for a one-line page with no detected locale."""
    words = [make_raw_word("Hello", 60, 100), make_raw_word("world", 130, 102)]
    full = {
        "description": "Hello world",
        "boundingPoly": {
            "vertices": [{"x": 40, "y": 90}, {"x": 150, "y": 90}, {"x": 150, "y": 112}, {"x": 40, "y": 112}]
        },
    }
    return [full] + words
