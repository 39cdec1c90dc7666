"""
Core data structures shared by the pipeline stages.

Per-frame values (boxes, colour features, cluster centers) are recomputed on
every frame and carry no identity. Everything that must survive from one frame
to the next lives in :class:`StreamState`, which the caller owns and passes
into every pipeline call; one state per video stream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

# Pixel box (x1, y1, x2, y2), right/bottom edges exclusive.
BoundingBox = Tuple[int, int, int, int]
Frame = np.ndarray[Any, np.dtype[np.uint8]]
Mask = np.ndarray[Any, np.dtype[np.uint8]]
# 3-vector in OpenCV 8-bit Lab space (L, a, b), float32.
ColorFeature = np.ndarray[Any, np.dtype[np.float32]]
TrackID = int
TeamID = int

NUM_TEAMS = 2
TEAM_NAMES = ("Team A", "Team B")


def team_name(team: int) -> str:
    """
    Display name for a team id; anything outside {0, 1} is "Unknown".
    """
    if 0 <= team < len(TEAM_NAMES):
        return TEAM_NAMES[team]
    return "Unknown"


@dataclass
class Track:
    """
    Last known state of a tracked player.

    Attributes:
        track_id: Stable identifier, unique within one stream.
        box: Box the track was last matched to.
        team: Team label recorded for that box (after smoothing).
    """

    track_id: TrackID
    box: BoundingBox
    team: TeamID


@dataclass
class TrackedPlayer:
    """
    One classified detection of the current frame.

    Attributes:
        box: Detection box.
        team: Final team label (0 or 1).
        track_id: Track the detection was assigned to.
        confidence_ratio: Distance to own cluster / distance to other cluster.
        is_new_track: True when no previous track was close enough.
    """

    box: BoundingBox
    team: TeamID
    track_id: TrackID
    confidence_ratio: float
    is_new_track: bool = False

    def as_pair(self) -> Tuple[BoundingBox, TeamID]:
        return (self.box, self.team)


@dataclass
class ClusteringResult:
    """
    Output of one frame of team clustering.

    Attributes:
        labels: Raw cluster index (0/1) per feature; meaningless across frames.
        centers: (2, 3) cluster centers of this frame.
        cluster_to_team: ``cluster_to_team[c]`` is the stable team id of cluster ``c``.
    """

    labels: np.ndarray[Any, np.dtype[np.int32]]
    centers: np.ndarray[Any, np.dtype[np.float32]]
    cluster_to_team: List[TeamID]

    @property
    def teams(self) -> List[TeamID]:
        """
        Stable team id per feature.
        """
        return [self.cluster_to_team[int(c)] for c in self.labels]


@dataclass
class StreamState:
    """
    Mutable per-stream context threaded through every pipeline call.

    Attributes:
        background_model: OpenCV background subtractor, updated in place.
        team_anchors: (2, 3) persistent reference colours, None until the
            first frame that could be clustered.
        anchor_frames: Number of frames the anchors have been updated on.
        tracks: Tracks matched or created on the previous frame.
        next_track_id: Next unused track id.
        frame_index: Number of frames processed so far.
    """

    background_model: Optional[Any] = None
    team_anchors: Optional[np.ndarray[Any, np.dtype[np.float32]]] = None
    anchor_frames: int = 0
    tracks: Dict[TrackID, Track] = field(default_factory=dict)  # type: ignore[misc]
    next_track_id: TrackID = 0
    frame_index: int = 0

    @property
    def anchors_initialized(self) -> bool:
        return self.team_anchors is not None

    def allocate_track_id(self) -> TrackID:
        track_id = self.next_track_id
        self.next_track_id += 1
        return track_id
