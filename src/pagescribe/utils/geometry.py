"""Geometric utilities for pagescribe."""

from typing import Sequence, Tuple, Union

import numpy as np

PointsLike = Union[np.ndarray, Sequence[Tuple[float, float]]]


def polygon_center(points: PointsLike) -> Tuple[float, float]:
    """
    Arithmetic mean of polygon vertices.

    Parameters
    ----------
    points : np.ndarray or sequence of (x, y)
        Polygon vertices, shape (N, 2).

    Returns
    -------
    tuple of float
        ``(center_x, center_y)``.

    Examples
    --------
    >>> polygon_center([(0, 0), (10, 0), (10, 4), (0, 4)])
    (5.0, 2.0)
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if pts.shape[0] == 0:
        raise ValueError("Cannot compute the center of an empty polygon")
    cx, cy = pts.mean(axis=0)
    return float(cx), float(cy)


def polygon_envelope(points: PointsLike) -> Tuple[float, float, float, float]:
    """
    Axis-aligned envelope of one or more polygons.

    Parameters
    ----------
    points : np.ndarray or sequence of (x, y)
        Any number of vertices, shape (N, 2). Vertices of several polygons
        may be stacked together.

    Returns
    -------
    tuple of float
        ``(x_min, y_min, x_max, y_max)``.

    Examples
    --------
    >>> polygon_envelope([(3, 1), (9, 2), (8, 7), (2, 6)])
    (2.0, 1.0, 9.0, 7.0)
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if pts.shape[0] == 0:
        raise ValueError("Cannot compute the envelope of zero points")
    x_min, y_min = pts.min(axis=0)
    x_max, y_max = pts.max(axis=0)
    return float(x_min), float(y_min), float(x_max), float(y_max)


def box_iou(
    box1: Union[Tuple[float, float, float, float], np.ndarray],
    box2: Union[Tuple[float, float, float, float], np.ndarray]
) -> float:
    """
    Calculate Intersection over Union (IoU) for two axis-aligned bounding boxes.

    Parameters
    ----------
    box1 : tuple or np.ndarray
        First box as (x_min, y_min, x_max, y_max).
    box2 : tuple or np.ndarray
        Second box as (x_min, y_min, x_max, y_max).

    Returns
    -------
    float
        IoU value in range [0, 1]. Returns 0 if boxes don't intersect.

    Examples
    --------
    >>> box1 = (0, 0, 100, 100)
    >>> box2 = (50, 50, 150, 150)
    >>> round(box_iou(box1, box2), 2)
    0.14
    """
    x1_min, y1_min, x1_max, y1_max = box1
    x2_min, y2_min, x2_max, y2_max = box2

    inter_x_min = max(x1_min, x2_min)
    inter_y_min = max(y1_min, y2_min)
    inter_x_max = min(x1_max, x2_max)
    inter_y_max = min(y1_max, y2_max)

    if inter_x_max <= inter_x_min or inter_y_max <= inter_y_min:
        return 0.0

    inter_area = (inter_x_max - inter_x_min) * (inter_y_max - inter_y_min)
    area1 = (x1_max - x1_min) * (y1_max - y1_min)
    area2 = (x2_max - x2_min) * (y2_max - y2_min)
    union_area = area1 + area2 - inter_area

    if union_area <= 0:
        return 0.0

    return float(inter_area / union_area)
