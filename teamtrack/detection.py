"""
Player box extraction from a candidate-player mask.

Connected regions of the mask are turned into bounding boxes, filtered by
plausible player size and shape, and then fused: a player is often split
into several blobs (shirt and shorts, arms), so overlapping or touching
fragments are merged agglomeratively into one box.

The main entrypoint is :func:`extract_boxes`; :func:`detect_players` chains
segmentation and extraction for a single frame.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

import cv2
import numpy as np

from .config import BoxFilterConfig
from .data_structures import BoundingBox, Frame, Mask
from .segmentation import FrameSegmenter
from .utils.geometry import contains_point, intersection_area, union_box


def is_player_shaped(box: BoundingBox, cfg: BoxFilterConfig) -> bool:
    """
    Size and aspect-ratio test for a single candidate box.

    Players are upright, so a box must be at least ``min_aspect_ratio`` times
    taller than wide; wide, flat blobs are usually shadows.
    """
    width = box[2] - box[0]
    height = box[3] - box[1]
    if width < cfg.min_width or width > cfg.max_width:
        return False
    if height < cfg.min_height or height > cfg.max_height:
        return False
    return height >= width * cfg.min_aspect_ratio


def filter_contours(contours: Sequence[np.ndarray], cfg: BoxFilterConfig) -> List[BoundingBox]:
    """
    Turn contours into boxes, dropping small and implausibly shaped ones.
    """
    boxes: List[BoundingBox] = []
    for contour in contours:
        if cv2.contourArea(contour) < cfg.min_contour_area:
            continue
        x, y, w, h = cv2.boundingRect(contour)
        box: BoundingBox = (int(x), int(y), int(x + w), int(y + h))
        if is_player_shaped(box, cfg):
            boxes.append(box)
    return boxes


def boxes_touch(box_a: BoundingBox, box_b: BoundingBox) -> bool:
    """
    True when two boxes overlap or a corner of one lies inside the other.
    """
    if intersection_area(box_a, box_b) > 0:
        return True
    return (
        contains_point(box_a, (box_b[0], box_b[1]))
        or contains_point(box_a, (box_b[2], box_b[3]))
        or contains_point(box_b, (box_a[0], box_a[1]))
        or contains_point(box_b, (box_a[2], box_a[3]))
    )


def _merge_pass(boxes: Sequence[BoundingBox]) -> List[BoundingBox]:
    merged: List[BoundingBox] = []
    consumed = [False] * len(boxes)
    for i, seed in enumerate(boxes):
        if consumed[i]:
            continue
        current = seed
        changed = True
        while changed:
            changed = False
            for j, other in enumerate(boxes):
                if i == j or consumed[j]:
                    continue
                if boxes_touch(current, other):
                    current = union_box(current, other)
                    consumed[j] = True
                    changed = True
        consumed[i] = True
        merged.append(current)
    return merged


def merge_boxes(boxes: Sequence[BoundingBox]) -> List[BoundingBox]:
    """
    Agglomeratively merge touching boxes until none touch.

    Each pass grows every unconsumed seed by absorbing any box it touches,
    repeating until the seed stops growing. A seed that grew late can end up
    touching an earlier output, so passes are repeated until one makes no
    merge. Running this on its own output returns the same boxes.
    """
    current = list(boxes)
    while True:
        merged = _merge_pass(current)
        if len(merged) == len(current):
            return merged
        current = merged


def remove_nested_boxes(boxes: Sequence[BoundingBox]) -> List[BoundingBox]:
    """
    Drop boxes whose top-left and bottom-right corners both lie inside another box.
    """
    kept: List[BoundingBox] = []
    for i, box in enumerate(boxes):
        nested = any(
            i != j
            and contains_point(other, (box[0], box[1]))
            and contains_point(other, (box[2], box[3]))
            for j, other in enumerate(boxes)
        )
        if not nested:
            kept.append(box)
    return kept


def extract_boxes(mask: Mask, cfg: Optional[BoxFilterConfig] = None) -> List[BoundingBox]:
    """
    Extract a disjoint, non-nested set of player boxes from a binary mask.

    Args:
        mask: uint8 mask, non-zero pixels are candidate player pixels.
        cfg: Size / shape bounds; defaults to :class:`BoxFilterConfig`.

    Returns:
        List of (x1, y1, x2, y2) boxes; empty for an empty mask.
    """
    cfg = cfg or BoxFilterConfig()
    if mask is None or not mask.any():
        return []
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    return remove_nested_boxes(merge_boxes(filter_contours(contours, cfg)))


def detect_players(
    segmenter: FrameSegmenter,
    frame: Frame,
    background_model: Any,
    cfg: Optional[BoxFilterConfig] = None,
) -> List[BoundingBox]:
    """
    High-level helper: segment a frame and extract its player boxes.
    """
    mask = segmenter.segment(frame, background_model)
    return extract_boxes(mask, cfg)
