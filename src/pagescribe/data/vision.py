import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from .structures import BoundingBox, MalformedAnnotationError, WordAnnotation

logger = logging.getLogger(__name__)


class VisionResponseError(RuntimeError):
    """The vision service reported an error instead of annotations."""


def _text_annotations(response: Union[Dict[str, Any], Sequence[Any]]) -> List[Any]:
    # Bare list: either textAnnotations (full text first) or stored words.
    if isinstance(response, (list, tuple)):
        return list(response)

    if not isinstance(response, dict):
        raise TypeError(
            f"Unsupported vision response type: {type(response)}. "
            f"Expected dict or list"
        )

    if "responses" in response:
        responses = response["responses"] or []
        if not responses:
            return []
        response = responses[0]

    error = response.get("error")
    if error:
        raise VisionResponseError(
            f"Vision service error {error.get('code', '?')}: "
            f"{error.get('message', 'unknown error')}"
        )

    return list(response.get("textAnnotations") or [])


def coerce_word(index: int, raw: Any) -> WordAnnotation:
    """
    Turn one raw entry into a WordAnnotation, failing fast on bad input.

    Raises
    ------
    MalformedAnnotationError
        If the entry is missing fields, has a vertex count other than 4,
        or carries non-numeric / non-finite coordinates.
    """
    if isinstance(raw, WordAnnotation):
        return raw
    try:
        return WordAnnotation.model_validate(raw)
    except ValidationError as e:
        raise MalformedAnnotationError(
            index, raw, f"{e.error_count()} validation error(s)"
        ) from e


def parse_vision_response(
    response: Union[Dict[str, Any], Sequence[Any]],
) -> List[WordAnnotation]:
    """
    Extract word annotations from a text-detection response.

    Parameters
    ----------
    response : dict or list
        One of:
        - full ``images:annotate`` body (``{"responses": [...]}``)
        - a single response entry (``{"textAnnotations": [...]}``)
        - the bare ``textAnnotations`` list

    Returns
    -------
    list of WordAnnotation
        Word-level annotations. The first ``textAnnotations`` entry holds
        the whole page text and is skipped.

    Raises
    ------
    VisionResponseError
        If the response carries an ``error`` object.
    MalformedAnnotationError
        If any word entry is malformed.

    Examples
    --------
    >>> body = {"responses": [{"textAnnotations": [full, word1, word2]}]}
    >>> words = parse_vision_response(body)
    >>> len(words)
    2
    """
    annotations = _text_annotations(response)
    if not annotations:
        return []

    words = [
        coerce_word(idx, raw)
        for idx, raw in enumerate(annotations[1:], start=1)
    ]
    logger.debug("Parsed %d word annotations", len(words))
    return words


def full_text(response: Union[Dict[str, Any], Sequence[Any]]) -> str:
    """Whole-page text from the first annotation, or ``""`` if none."""
    annotations = _text_annotations(response)
    if not annotations:
        return ""
    first = annotations[0]
    if isinstance(first, WordAnnotation):
        return first.text.strip()
    return (first.get("description") or "").strip()


def extract_words(
    source: Union[Mapping[str, Any], Sequence[Any]],
) -> List[WordAnnotation]:
    """
    Word annotations from a response or from an already extracted list.

    Parameters
    ----------
    source : dict or list
        Anything accepted by :func:`parse_vision_response`, or a plain list
        of word annotations (dicts or WordAnnotation instances) with no
        page-level entry, as stored alongside a page after OCR.

    Returns
    -------
    list of WordAnnotation
        Word-level annotations only. A leading page-level entry is
        detected with :func:`has_page_entry` and skipped.

    Raises
    ------
    VisionResponseError
        If the response carries an ``error`` object.
    MalformedAnnotationError
        If any word entry is malformed.
    """
    if isinstance(source, (list, tuple)) and not has_page_entry(source):
        return [coerce_word(idx, raw) for idx, raw in enumerate(source)]
    return parse_vision_response(source)


def load_word_annotations(path: Union[str, Path]) -> List[WordAnnotation]:
    """
    Read word annotations from a JSON file.

    Accepts every shape understood by :func:`extract_words`.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    MalformedAnnotationError
        If any word entry is malformed.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return extract_words(data)


def _entry_text(entry: Any) -> str:
    if isinstance(entry, WordAnnotation):
        return entry.text
    if isinstance(entry, Mapping):
        return entry.get("description") or entry.get("text") or ""
    return ""


def _entry_box(entry: Any) -> Optional[BoundingBox]:
    if isinstance(entry, WordAnnotation):
        return entry.bounding_poly.bounding_box
    try:
        return WordAnnotation.model_validate(entry).bounding_poly.bounding_box
    except ValidationError:
        return None


def _covers(outer: BoundingBox, inner: BoundingBox) -> bool:
    return (
        outer.min_x <= inner.min_x
        and outer.min_y <= inner.min_y
        and outer.max_x >= inner.max_x
        and outer.max_y >= inner.max_y
    )


def has_page_entry(entries: Sequence[Any]) -> bool:
    """
    True if the first entry looks like the page-level annotation.

    The page-level entry is recognised by any of:
    - a ``locale`` key (present when the service detected a language)
    - a multi-line description containing the next word's description
    - a polygon covering every other entry's polygon and a description
      containing every other entry's description (single-line pages)

    A list with fewer than two entries never has a page-level entry.
    """
    if not entries:
        return False
    first = entries[0]
    if isinstance(first, Mapping) and "locale" in first:
        return True
    if len(entries) < 2:
        return False

    first_text = _entry_text(first)
    if "\n" in first_text and _entry_text(entries[1]) in first_text:
        return True

    first_box = _entry_box(first)
    if first_box is None:
        return False
    for entry in entries[1:]:
        box = _entry_box(entry)
        if box is None or not _covers(first_box, box):
            return False
        if _entry_text(entry) not in first_text:
            return False
    return True
