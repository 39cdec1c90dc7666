"""
Spatial density of classified players over a whole video.

Every classified box adds a filled circle in its team colour at the box
center to a floating-point accumulator the size of the frame. At the end the
accumulator is blurred, normalized to [0, 255] and blended with the first
frame of the video.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import cv2
import numpy as np

from .config import HeatmapConfig
from .data_structures import BoundingBox, Frame, TeamID
from .visualization import team_color

HeatmapArray = np.ndarray[Any, np.dtype[np.uint8]]


@dataclass
class HeatmapAccumulator:
    """
    Accumulates team-coloured markers frame by frame.

    Attributes:
        config: Marker radius, blur and overlay settings.
    """

    config: HeatmapConfig = field(default_factory=HeatmapConfig)
    _accum: Optional[np.ndarray] = field(default=None, init=False)
    _first_frame: Optional[Frame] = field(default=None, init=False)

    @property
    def is_empty(self) -> bool:
        return self._accum is None

    def update(self, frame: Frame, classified: Iterable[Tuple[BoundingBox, TeamID]]) -> None:
        """
        Add one marker per classified box. The first call fixes the canvas size.
        """
        if self._accum is None:
            self._accum = np.zeros(frame.shape[:2] + (3,), dtype=np.float32)
            self._first_frame = frame.copy()

        for (x1, y1, x2, y2), team in classified:
            layer = np.zeros_like(self._accum)
            center = ((x1 + x2) // 2, (y1 + y2) // 2)
            cv2.circle(layer, center, self.config.marker_radius, team_color(team), -1, cv2.LINE_AA)
            self._accum += layer

    def render(self) -> Tuple[HeatmapArray, HeatmapArray]:
        """
        Build the heatmap and its overlay on the first frame.

        Raises:
            ValueError: If no frame was accumulated yet.
        """
        if self._accum is None or self._first_frame is None:
            raise ValueError("Heatmap is empty; call update() at least once.")

        blurred = cv2.GaussianBlur(self._accum, (0, 0), self.config.blur_sigma)
        normalized = cv2.normalize(blurred, None, 0, 255, cv2.NORM_MINMAX)
        heatmap_img = np.rint(normalized).astype(np.uint8)
        alpha = self.config.overlay_alpha
        overlay = cv2.addWeighted(self._first_frame, alpha, heatmap_img, 1.0 - alpha, 0)
        return heatmap_img, overlay

    def save(self, heatmap_path: Path, overlay_path: Path) -> bool:
        """
        Write both images; returns False when nothing was accumulated.
        """
        if self.is_empty:
            return False
        heatmap_img, overlay = self.render()
        save_heatmap(heatmap_path, heatmap_img)
        save_heatmap(overlay_path, overlay)
        return True


def save_heatmap(path: Path, heatmap_img: HeatmapArray) -> None:
    """
    Save a heatmap image to disk.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    cv2.imwrite(str(path), heatmap_img)
