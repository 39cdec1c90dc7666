"""
Jersey colour descriptors for team clustering.

Each player box is described by one Lab colour: the per-channel median of the
jersey pixels. Lab is perceptually uniform, so Euclidean distances between
descriptors track perceived colour differences; the median keeps the value
stable under partial occlusion and stray field or skin pixels.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import cv2
import numpy as np

from .config import FeatureConfig, SegmentationConfig
from .data_structures import BoundingBox, ColorFeature, Frame, Mask
from .utils.geometry import box_area, clip_box


def zero_feature() -> ColorFeature:
    return np.zeros(3, dtype=np.float32)


def jersey_region(crop: Frame, fraction: float) -> Frame:
    """
    Upper ``fraction`` of a crop (at least one row).
    """
    rows = int(crop.shape[0] * fraction)
    if rows < 1:
        rows = crop.shape[0]
    return crop[:rows]


def exclusion_mask(region_bgr: Frame, seg_cfg: SegmentationConfig) -> Mask:
    """
    Field-green and shadow pixels of a region, using the segmentation thresholds.
    """
    hsv = cv2.cvtColor(region_bgr, cv2.COLOR_BGR2HSV)
    green = cv2.inRange(
        hsv, np.array(seg_cfg.green_lower, np.uint8), np.array(seg_cfg.green_upper, np.uint8)
    )
    shadow = cv2.inRange(
        hsv, np.array(seg_cfg.shadow_lower, np.uint8), np.array(seg_cfg.shadow_upper, np.uint8)
    )
    return cv2.bitwise_or(green, shadow)


def median_lab(region_bgr: Frame, exclude: Mask) -> ColorFeature:
    """
    Per-channel median Lab colour of the non-excluded pixels.

    The upper median is used (element ``n // 2`` of the sorted channel) so the
    result is always an observed channel value. Returns the zero vector when
    every pixel is excluded.
    """
    lab = cv2.cvtColor(region_bgr, cv2.COLOR_BGR2Lab).reshape(-1, 3).astype(np.float32)
    kept = lab[exclude.reshape(-1) == 0]
    if kept.shape[0] == 0:
        return zero_feature()
    ordered = np.sort(kept, axis=0)
    return ordered[kept.shape[0] // 2].astype(np.float32)


def extract_jersey_feature(
    frame: Frame,
    box: BoundingBox,
    cfg: Optional[FeatureConfig] = None,
    seg_cfg: Optional[SegmentationConfig] = None,
) -> ColorFeature:
    """
    Compute the Lab jersey descriptor of one player box.

    Args:
        frame: BGR uint8 frame.
        box: Player box; clipped to the frame first.
        cfg: Crop size and jersey fraction.
        seg_cfg: Colour thresholds shared with segmentation.

    Returns:
        float32 array of shape (3,); zeros for an empty box or a fully
        excluded jersey region.
    """
    cfg = cfg or FeatureConfig()
    seg_cfg = seg_cfg or SegmentationConfig()

    height, width = frame.shape[:2]
    x1, y1, x2, y2 = clip_box(box, width, height)
    if box_area((x1, y1, x2, y2)) <= 0:
        return zero_feature()

    crop = cv2.resize(frame[y1:y2, x1:x2], cfg.canonical_size)
    region = jersey_region(crop, cfg.jersey_fraction)
    return median_lab(region, exclusion_mask(region, seg_cfg))


def extract_features(
    frame: Frame,
    boxes: Sequence[BoundingBox],
    cfg: Optional[FeatureConfig] = None,
    seg_cfg: Optional[SegmentationConfig] = None,
) -> np.ndarray:
    """
    Stack the descriptors of all boxes into an (N, 3) float32 matrix.
    """
    feats: List[ColorFeature] = [extract_jersey_feature(frame, b, cfg, seg_cfg) for b in boxes]
    if not feats:
        return np.empty((0, 3), dtype=np.float32)
    return np.stack(feats).astype(np.float32)
