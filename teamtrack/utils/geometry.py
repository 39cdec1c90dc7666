"""
Geometry helpers for axis-aligned boxes.

Boxes are ``(x1, y1, x2, y2)`` integer tuples in pixel coordinates with the
right and bottom edges exclusive, so ``x2 - x1`` is the width. A point lies
inside a box when ``x1 <= x < x2`` and ``y1 <= y < y2``; the bottom-right
corner ``(x2, y2)`` of a box is therefore never inside the box itself.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ..data_structures import BoundingBox

Point2D = Tuple[float, float]


def box_width(box: BoundingBox) -> int:
    return box[2] - box[0]


def box_height(box: BoundingBox) -> int:
    return box[3] - box[1]


def box_area(box: BoundingBox) -> int:
    """
    Area of a box; zero for empty or inverted boxes.
    """
    return max(0, box_width(box)) * max(0, box_height(box))


def box_center(box: BoundingBox) -> Point2D:
    x1, y1, x2, y2 = box
    return ((x1 + x2) / 2.0, (y1 + y2) / 2.0)


def contains_point(box: BoundingBox, point: Tuple[int, int]) -> bool:
    x1, y1, x2, y2 = box
    px, py = point
    return x1 <= px < x2 and y1 <= py < y2


def intersection_area(box_a: BoundingBox, box_b: BoundingBox) -> int:
    """
    Area of the overlap between two boxes (0 when they only touch).
    """
    ax1, ay1, ax2, ay2 = box_a
    bx1, by1, bx2, by2 = box_b
    inter = (max(ax1, bx1), max(ay1, by1), min(ax2, bx2), min(ay2, by2))
    if inter[2] <= inter[0] or inter[3] <= inter[1]:
        return 0
    return box_area(inter)


def union_box(box_a: BoundingBox, box_b: BoundingBox) -> BoundingBox:
    """
    Smallest box covering both inputs.
    """
    return (
        min(box_a[0], box_b[0]),
        min(box_a[1], box_b[1]),
        max(box_a[2], box_b[2]),
        max(box_a[3], box_b[3]),
    )


def clip_box(box: BoundingBox, width: int, height: int) -> BoundingBox:
    """
    Clip a box to a ``width`` x ``height`` image.

    The result may be empty (``box_area == 0``) when the box lies outside.
    """
    x1, y1, x2, y2 = box
    x1, y1 = max(0, x1), max(0, y1)
    x2, y2 = min(width, x2), min(height, y2)
    return (x1, y1, max(x1, x2), max(y1, y2))


def euclidean_distance(a: Point2D, b: Point2D) -> float:
    """
    Compute Euclidean distance between two 2D points.
    """
    ax, ay = a
    bx, by = b
    return float(np.hypot(ax - bx, ay - by))


def center_distance(box_a: BoundingBox, box_b: BoundingBox) -> float:
    return euclidean_distance(box_center(box_a), box_center(box_b))
