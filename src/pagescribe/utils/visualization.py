from typing import Optional, Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image, ImageDraw

from ..data import BoundingBox, LineSegment
from .io import ImageLike, read_image

_GOLDEN_RATIO = 0.618033988749895


def _palette_color(idx: int, offset: float = 0.0, saturation: int = 220) -> Tuple[int, int, int]:
    """Distinct RGB colour for the idx-th item, spread with the golden ratio."""
    hue = ((idx * _GOLDEN_RATIO) + offset) % 1.0
    hsv = np.uint8([[[int(hue * 179), saturation, 255]]])  # OpenCV hue is 0-179
    rgb = cv2.cvtColor(hsv, cv2.COLOR_HSV2RGB)[0][0]
    return tuple(map(int, rgb))


def crop_region(
    image: ImageLike,
    box: Union[BoundingBox, Tuple[float, float, float, float]],
    padding: int = 0,
) -> np.ndarray:
    """
    Cut out the part of a page photo covered by a line or segment.

    Parameters
    ----------
    image : str, Path, bytes, np.ndarray, or PIL.Image
        Page photo the annotations were computed on.
    box : BoundingBox or tuple
        Region as a BoundingBox or ``(x_min, y_min, x_max, y_max)``.
    padding : int, default=0
        Extra pixels kept on every side. The result is clamped to the image.

    Returns
    -------
    np.ndarray
        RGB crop. Empty (size 0) if the region lies outside the image.

    Examples
    --------
    >>> crop = crop_region("page.jpg", segments[0].bounding_box, padding=20)
    """
    if padding < 0:
        raise ValueError(f"padding must be >= 0, got {padding}")

    img = read_image(image)
    if isinstance(box, BoundingBox):
        box = box.to_tuple()
    x_min, y_min, x_max, y_max = box

    h, w = img.shape[:2]
    x1 = min(w, max(0, int(np.floor(x_min)) - padding))
    y1 = min(h, max(0, int(np.floor(y_min)) - padding))
    x2 = max(x1, min(w, int(np.ceil(x_max)) + padding))
    y2 = max(y1, min(h, int(np.ceil(y_max)) + padding))

    return img[y1:y2, x1:x2].copy()


def visualize_segments(
    image: ImageLike,
    segments: Sequence[LineSegment],
    thickness: int = 2,
    fill_alpha: float = 0.15,
    show_index: bool = True,
    number_bg: Tuple[int, int, int] = (255, 255, 255),
    number_color: Tuple[int, int, int] = (0, 0, 0),
    max_size: Optional[int] = 4096,
) -> Image.Image:
    """
    Draw lines and segments over the page photo.

    Every line box gets its own colour; every segment is shown as a
    semi-transparent filled envelope, optionally labelled with its index.

    Parameters
    ----------
    image : str, Path, bytes, np.ndarray, or PIL.Image
        Page photo the annotations were computed on.
    segments : sequence of LineSegment
        Segments to draw.
    thickness : int, default=2
        Outline thickness for line boxes.
    fill_alpha : float, default=0.15
        Opacity of the segment fill (0 disables it).
    show_index : bool, default=True
        If True, label each segment with its ``segment_index``.
    number_bg, number_color : tuple of int
        Label background and text colours.
    max_size : int or None, default=4096
        Longer side of the output is scaled down to this. None keeps the
        original size.

    Returns
    -------
    PIL.Image.Image
        Annotated RGB image.
    """
    img = read_image(image).copy()

    scale = 1.0
    if max_size is not None:
        h, w = img.shape[:2]
        if max(h, w) > max_size:
            scale = max_size / max(h, w)
            img = cv2.resize(
                img, (int(w * scale), int(h * scale)), interpolation=cv2.INTER_AREA
            )

    def scaled(box: BoundingBox) -> Tuple[int, int, int, int]:
        return tuple(int(round(v * scale)) for v in box.to_tuple())

    overlay = img
    if fill_alpha > 0:
        for segment in segments:
            x1, y1, x2, y2 = scaled(segment.bounding_box)
            filled = overlay.copy()
            cv2.rectangle(
                filled, (x1, y1), (x2, y2),
                _palette_color(segment.segment_index, offset=0.5, saturation=200), -1,
            )
            overlay = cv2.addWeighted(overlay, 1 - fill_alpha, filled, fill_alpha, 0)

    for segment in segments:
        for line in segment.lines:
            x1, y1, x2, y2 = scaled(line.bounding_box)
            cv2.rectangle(
                overlay, (x1, y1), (x2, y2),
                _palette_color(line.line_index), thickness,
            )

    out = Image.fromarray(overlay)

    if show_index and segments:
        draw = ImageDraw.Draw(out)
        for segment in segments:
            x1, y1, _, _ = scaled(segment.bounding_box)
            draw.rectangle([x1, y1, x1 + 24, y1 + 20], fill=number_bg)
            draw.text((x1 + 6, y1 + 4), str(segment.segment_index), fill=number_color)

    return out
