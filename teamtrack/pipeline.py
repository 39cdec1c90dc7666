"""
Per-frame pipeline: frame -> mask -> boxes -> features -> teams -> tracks.

All state that must persist between frames (background model, team anchors,
track table, id counter) lives in a :class:`StreamState` owned by the caller.
One pipeline instance can serve several independent streams as long as each
stream passes its own state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import numpy as np

from .config import Config
from .data_structures import BoundingBox, ClusteringResult, Frame, Mask, StreamState, TeamID, TrackedPlayer
from .detection import extract_boxes
from .features import extract_features
from .logger import get_logger
from .segmentation import FrameSegmenter, create_background_model
from .team_classifier import TeamClusterer, confidence_ratios
from .tracking import IdentityTracker

logger = get_logger("pipeline")

ClassificationResult = List[Tuple[BoundingBox, TeamID]]


@dataclass
class FrameResult:
    """
    Everything computed for one frame.

    Attributes:
        mask: Candidate player mask.
        boxes: Extracted player boxes.
        features: (N, 3) jersey descriptors, one per box.
        clustering: Clustering output, None when fewer than two boxes.
        players: Final classified and tracked players (empty without clustering).
    """

    mask: Mask
    boxes: List[BoundingBox]
    features: np.ndarray
    clustering: Optional[ClusteringResult]
    players: List[TrackedPlayer] = field(default_factory=list)  # type: ignore[misc]

    @property
    def classified(self) -> ClassificationResult:
        return [p.as_pair() for p in self.players]


def _check_frame(frame: Any) -> None:
    if not isinstance(frame, np.ndarray) or frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError("frame must be an HxWx3 BGR image.")
    if frame.dtype != np.uint8:
        raise ValueError(f"frame must be uint8, got {frame.dtype}.")


@dataclass
class PlayerPipeline:
    """
    Wires the five stages together for one frame at a time.

    Attributes:
        config: Full run configuration; only the stage sections are used here.
    """

    config: Config = field(default_factory=Config)

    def __post_init__(self) -> None:
        cfg = self.config
        self.segmenter = FrameSegmenter(cfg.segmentation)
        self.clusterer = TeamClusterer(cfg.clustering)
        self.tracker = IdentityTracker(cfg.tracking)

    def new_state(self) -> StreamState:
        """
        Fresh context for a new stream, with its own background model.
        """
        return StreamState(background_model=create_background_model(self.config.segmentation))

    def classify_boxes(self, frame: Frame, boxes: List[BoundingBox], state: StreamState) -> FrameResult:
        """
        Run feature extraction, clustering and tracking on given boxes.

        Useful when boxes come from elsewhere than the built-in segmentation.
        """
        cfg = self.config
        features = extract_features(frame, boxes, cfg.features, cfg.segmentation)
        empty_mask = np.zeros(frame.shape[:2], dtype=np.uint8)
        clustering = self.clusterer.classify(features, state)
        if clustering is None:
            return FrameResult(mask=empty_mask, boxes=boxes, features=features, clustering=None)

        ratios = confidence_ratios(features, clustering)
        players = self.tracker.update(boxes, clustering.teams, ratios, state)
        return FrameResult(
            mask=empty_mask,
            boxes=boxes,
            features=features,
            clustering=clustering,
            players=players,
        )

    def process_detailed(self, frame: Frame, state: StreamState) -> FrameResult:
        """
        Run the full pipeline on one frame and return all intermediate results.

        Raises:
            ValueError: If ``frame`` is not an HxWx3 uint8 image.
        """
        _check_frame(frame)
        if state.background_model is None:
            state.background_model = create_background_model(self.config.segmentation)

        mask = self.segmenter.segment(frame, state.background_model)
        boxes = extract_boxes(mask, self.config.boxes)
        result = self.classify_boxes(frame, boxes, state)
        result.mask = mask

        logger.debug(
            "frame %d: %d box(es), %d classified, %d track(s)",
            state.frame_index,
            len(boxes),
            len(result.players),
            len(state.tracks),
        )
        state.frame_index += 1
        return result

    def process(self, frame: Frame, state: StreamState) -> ClassificationResult:
        """
        Classify the players of one frame.

        Returns:
            Ordered list of (box, team) pairs, team in {0, 1}; empty when fewer
            than two players were detected.
        """
        return self.process_detailed(frame, state).classified
