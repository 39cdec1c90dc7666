"""
Frame-to-frame identity tracking and team label smoothing.

Boxes are associated with the tracks of the previous frame by nearest box
center. A match only lends its label when the current colour evidence is weak:
if the confidence ratio of a detection is above the override threshold and
its fresh label disagrees with the tracked one, the tracked label is kept.

The track table is rebuilt from scratch every frame. A track that is not
matched in a frame is gone; if the player shows up again it gets a new id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .config import TrackingConfig
from .data_structures import BoundingBox, TeamID, Track, TrackedPlayer, TrackID, StreamState
from .utils.geometry import center_distance


def find_closest_track(
    box: BoundingBox,
    tracks: Mapping[TrackID, Track],
    max_distance: float,
) -> Optional[TrackID]:
    """
    Track whose last box center is nearest to ``box``'s center.

    Only distances strictly below ``max_distance`` count. Ties go to the
    lowest track id.
    """
    best_id: Optional[TrackID] = None
    best_dist = max_distance
    for track_id in sorted(tracks):
        dist = center_distance(box, tracks[track_id].box)
        if dist < best_dist:
            best_dist = dist
            best_id = track_id
    return best_id


@dataclass
class IdentityTracker:
    """
    Greedy nearest-center tracker with confidence-gated label inertia.

    Attributes:
        config: Match distance and override threshold.
    """

    config: TrackingConfig = field(default_factory=TrackingConfig)

    def smooth_label(self, fresh_team: TeamID, previous_team: TeamID, ratio: float) -> TeamID:
        """
        Keep the previous label only when the fresh one is uncertain and differs.
        """
        if ratio > self.config.confidence_override_ratio and previous_team != fresh_team:
            return previous_team
        return fresh_team

    def update(
        self,
        boxes: Sequence[BoundingBox],
        teams: Sequence[TeamID],
        ratios: Sequence[float],
        state: StreamState,
    ) -> List[TrackedPlayer]:
        """
        Associate this frame's boxes with the previous tracks.

        Boxes are processed in detection order. Two boxes may match the same
        previous track; the later one then owns the track in the new table.

        Args:
            boxes: Detection boxes of the current frame.
            teams: Fresh team label per box.
            ratios: Confidence ratio per box.
            state: Stream context; ``tracks`` is replaced and ``next_track_id``
                advanced in place.

        Returns:
            One :class:`TrackedPlayer` per box, in input order.
        """
        previous = state.tracks
        current: Dict[TrackID, Track] = {}
        players: List[TrackedPlayer] = []

        for box, team, ratio in zip(boxes, teams, ratios):
            matched = find_closest_track(box, previous, self.config.match_distance_px)
            if matched is not None:
                team = self.smooth_label(team, previous[matched].team, ratio)
                track_id = matched
            else:
                track_id = state.allocate_track_id()
            current[track_id] = Track(track_id=track_id, box=box, team=team)
            players.append(
                TrackedPlayer(
                    box=box,
                    team=team,
                    track_id=track_id,
                    confidence_ratio=ratio,
                    is_new_track=matched is None,
                )
            )

        state.tracks = current
        return players
