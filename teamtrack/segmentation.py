"""
Frame segmentation: raw frame -> binary mask of candidate player pixels.

Three cues are combined:
- motion, from an adaptive MOG2 background model owned by the caller,
- the playing field, found by HSV thresholding of the green band,
- "player colours", i.e. pixels inside the field that are neither green,
  near-black nor shadow.

The background model learns slowly, so a player standing still for a long
time gradually fades into the background and out of the mask.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

import cv2
import numpy as np

from .config import SegmentationConfig
from .data_structures import Frame, Mask
from .logger import get_logger

logger = get_logger("segmentation")


def create_background_model(cfg: Optional[SegmentationConfig] = None) -> Any:
    """
    Factory for the MOG2 background subtractor used as motion cue.
    """
    cfg = cfg or SegmentationConfig()
    return cv2.createBackgroundSubtractorMOG2(
        history=cfg.bg_history,
        varThreshold=cfg.bg_var_threshold,
        detectShadows=cfg.bg_detect_shadows,
    )


def _in_range(hsv: Frame, lower: tuple, upper: tuple) -> Mask:
    return cv2.inRange(hsv, np.array(lower, dtype=np.uint8), np.array(upper, dtype=np.uint8))


@dataclass
class FrameSegmenter:
    """
    Builds the candidate player mask for one frame at a time.

    The segmenter itself is stateless across frames apart from the two debug
    masks of the last call; the background model is passed in by the caller.

    Attributes:
        config: Colour thresholds and kernel sizes.
        last_field_mask: Field mask of the last processed frame.
        last_player_mask: Player-colour mask of the last processed frame.
    """

    config: SegmentationConfig = field(default_factory=SegmentationConfig)
    last_field_mask: Optional[Mask] = field(default=None, init=False)
    last_player_mask: Optional[Mask] = field(default=None, init=False)

    def __post_init__(self) -> None:
        cfg = self.config
        self._field_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, cfg.field_kernel_size)
        d = cfg.player_dilation_radius
        self._player_kernel = cv2.getStructuringElement(
            cv2.MORPH_RECT, (2 * d + 1, 2 * d + 1), (d, d)
        )
        self._open_kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, cfg.open_kernel_size)
        self._close_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, cfg.close_kernel_size)

    def field_mask(self, hsv: Frame) -> Mask:
        """
        Segment the playing field from an HSV frame.

        The green mask is dilated once and eroded several times to drop thin
        green structures, then only contours above ``field_min_area`` are kept
        (filled).
        """
        cfg = self.config
        green = _in_range(hsv, cfg.green_lower, cfg.green_upper)
        cleaned = cv2.dilate(green, self._field_kernel)
        cleaned = cv2.erode(cleaned, self._field_kernel, iterations=cfg.field_erode_iterations)

        contours, _ = cv2.findContours(cleaned, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        regions: List[np.ndarray] = [c for c in contours if cv2.contourArea(c) > cfg.field_min_area]
        if regions and cfg.field_largest_only:
            regions = [max(regions, key=cv2.contourArea)]
        if regions and cfg.field_convex_hull:
            regions = [cv2.convexHull(c) for c in regions]

        out = np.zeros(green.shape, dtype=np.uint8)
        if regions:
            cv2.drawContours(out, regions, -1, 255, thickness=cv2.FILLED)
        return out

    def player_color_mask(self, field_region_bgr: Frame) -> Mask:
        """
        Mask of pixels whose colour could belong to a player.

        Green, near-black and shadow pixels are excluded; the inverse is
        dilated to merge fragments of one player.
        """
        cfg = self.config
        hsv = cv2.cvtColor(field_region_bgr, cv2.COLOR_BGR2HSV)
        exclude = cv2.bitwise_or(
            _in_range(hsv, cfg.green_lower, cfg.green_upper),
            _in_range(hsv, cfg.black_lower, cfg.black_upper),
        )
        exclude = cv2.bitwise_or(exclude, _in_range(hsv, cfg.shadow_lower, cfg.shadow_upper))
        return cv2.dilate(cv2.bitwise_not(exclude), self._player_kernel)

    def segment(self, frame: Frame, background_model: Any) -> Mask:
        """
        Produce the binary candidate-player mask for ``frame``.

        Args:
            frame: BGR uint8 image.
            background_model: OpenCV background subtractor; updated in place.

        Returns:
            uint8 mask with values 0/255. All zeros when no field is visible.
        """
        motion = background_model.apply(frame, learningRate=self.config.bg_learning_rate)
        hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)

        field_mask = self.field_mask(hsv)
        self.last_field_mask = field_mask
        if not field_mask.any():
            logger.debug("No field region found; frame yields an empty mask.")
            self.last_player_mask = np.zeros_like(field_mask)
            return np.zeros_like(field_mask)

        field_region = cv2.bitwise_and(frame, frame, mask=field_mask)
        player_mask = self.player_color_mask(field_region)
        self.last_player_mask = player_mask

        # MOG2 marks shadows with 127 when shadow detection is on; count only sure foreground.
        _, motion = cv2.threshold(motion, 200, 255, cv2.THRESH_BINARY)
        combined = cv2.bitwise_and(motion, player_mask)
        combined = cv2.bitwise_and(combined, field_mask)

        combined = cv2.morphologyEx(combined, cv2.MORPH_OPEN, self._open_kernel)
        combined = cv2.morphologyEx(combined, cv2.MORPH_CLOSE, self._close_kernel)
        return combined
