"""
Pytest configuration and fixtures for teamtrack tests.
"""

from typing import List, Tuple

import numpy as np
import pytest

from teamtrack.config import Config

FIELD_BGR = (0, 128, 0)
RED_BGR = (0, 0, 200)
BLUE_BGR = (200, 0, 0)


class AlwaysForeground:
    """Background model stand-in that flags every pixel as moving."""

    def __init__(self):
        self.calls = 0

    def apply(self, frame, learningRate=None):
        self.calls += 1
        return np.full(frame.shape[:2], 255, dtype=np.uint8)


def make_field_frame(
    players: List[Tuple[Tuple[int, int, int, int], Tuple[int, int, int]]] = (),
    size: Tuple[int, int] = (320, 240),
) -> np.ndarray:
    """Green field frame with solid-colour player rectangles (x1, y1, x2, y2)."""
    width, height = size
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :] = FIELD_BGR
    for (x1, y1, x2, y2), color in players:
        frame[y1:y2, x1:x2] = color
    return frame


def lab_of(bgr: Tuple[int, int, int]) -> np.ndarray:
    """OpenCV 8-bit Lab value of a single BGR colour."""
    import cv2

    pixel = np.array([[bgr]], dtype=np.uint8)
    return cv2.cvtColor(pixel, cv2.COLOR_BGR2Lab).reshape(3).astype(np.float32)


@pytest.fixture
def config():
    """Default configuration with a fixed clustering seed."""
    cfg = Config()
    cfg.clustering.seed = 1234
    return cfg


@pytest.fixture
def foreground_model():
    return AlwaysForeground()


@pytest.fixture
def two_team_frame():
    """Frame with one red and one blue player well inside the field."""
    return make_field_frame(
        [
            ((60, 80, 80, 130), RED_BGR),
            ((220, 80, 240, 130), BLUE_BGR),
        ]
    )
