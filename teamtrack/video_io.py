"""
Thin OpenCV wrapper for reading match videos and writing annotated ones.

Only the essentials are exposed (fps, resolution, frame count) plus an
iterator over frames, so the rest of the codebase stays free of capture
handling. Use ``stride`` to subsample frames and ``max_frames`` to stop early.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Generator, Optional, Tuple

import cv2

from .data_structures import Frame


@dataclass
class VideoReader:
    """
    Read video frames with optional subsampling.

    Attributes:
        path: Path to the input video.
        stride: Keep every N-th frame (1 = keep all).
        max_frames: Read only the first N frames of the video, counted before
            ``stride`` is applied (None = read to the end).
    """

    path: Path
    stride: int = 1
    max_frames: Optional[int] = None

    def __post_init__(self) -> None:
        if self.stride < 1:
            raise ValueError("stride must be >= 1")
        self._cap = cv2.VideoCapture(str(self.path))
        if not self._cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {self.path}")

    @property
    def fps(self) -> float:
        """
        Frames per second reported by the container (defaults to 25 if missing).
        """
        return float(self._cap.get(cv2.CAP_PROP_FPS) or 25.0)

    @property
    def frame_count(self) -> int:
        return int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)

    @property
    def width(self) -> int:
        return int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)

    @property
    def height(self) -> int:
        return int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)

    def __iter__(self) -> Generator[Tuple[int, Frame], None, None]:
        """
        Iterate over frames as (frame_index, frame).
        """
        idx = 0
        while self.max_frames is None or idx < self.max_frames:
            ret, frame = self._cap.read()
            if not ret:
                break
            if idx % self.stride == 0:
                yield idx, frame
            idx += 1

    def release(self) -> None:
        self._cap.release()

    def __enter__(self) -> "VideoReader":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.release()


@dataclass
class VideoWriter:
    """
    OpenCV video writer for annotated outputs.

    Attributes:
        path: Output video file.
        fps: Target frames per second.
        frame_size: (width, height) in pixels.
        codec: FourCC codec string, e.g. "mp4v".
    """

    path: Path
    fps: float
    frame_size: Tuple[int, int]
    codec: str = "mp4v"

    def __post_init__(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fourcc = cv2.VideoWriter_fourcc(*self.codec)
        self._writer = cv2.VideoWriter(str(self.path), fourcc, self.fps, self.frame_size)
        if not self._writer.isOpened():
            raise OSError(f"Could not open video writer: {self.path}")

    def write(self, frame: Frame) -> None:
        self._writer.write(frame)

    def release(self) -> None:
        self._writer.release()
