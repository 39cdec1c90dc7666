"""
Visualization helpers for drawing classified players and debug masks.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

import cv2

from .data_structures import BoundingBox, Frame, Mask, TeamID, team_name

# BGR: Team A red, Team B blue, unknown green.
TEAM_COLORS = ((0, 0, 255), (255, 0, 0))
UNKNOWN_COLOR = (0, 255, 0)


def team_color(team: TeamID) -> Tuple[int, int, int]:
    if 0 <= team < len(TEAM_COLORS):
        return TEAM_COLORS[team]
    return UNKNOWN_COLOR


def draw_classified_players(
    frame: Frame,
    classified: Iterable[Tuple[BoundingBox, TeamID]],
    track_ids: Optional[Iterable[int]] = None,
) -> Frame:
    """
    Draw each box in its team colour with the team name above it.

    Args:
        frame: BGR frame; not modified.
        classified: (box, team) pairs.
        track_ids: Optional track id per pair, appended to the label.
    """
    vis = frame.copy()
    ids = list(track_ids) if track_ids is not None else None
    for i, ((x1, y1, x2, y2), team) in enumerate(classified):
        color = team_color(team)
        cv2.rectangle(vis, (x1, y1), (x2, y2), color, 2)
        text = team_name(team)
        if ids is not None:
            text += f" #{ids[i]}"
        cv2.putText(
            vis,
            text,
            (x1, max(0, y1 - 5)),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.5,
            color,
            1,
            cv2.LINE_AA,
        )
    return vis


def masked_view(frame: Frame, mask: Optional[Mask]) -> Frame:
    """
    Frame pixels where ``mask`` is set, black elsewhere (debug view).
    """
    if mask is None:
        return frame.copy()
    return cv2.bitwise_and(frame, frame, mask=mask)
