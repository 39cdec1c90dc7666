"""
Team classification from jersey colour descriptors.

Every frame is clustered on its own into two groups with k-means. Cluster
indices are arbitrary from one frame to the next, so they are mapped to stable
team ids through two persistent anchors, one reference colour per team:

- the first clustered frame seeds the anchors with its centers,
- the following warm-up frames pull each anchor slowly (EMA) toward the
  center it is matched to,
- after ``max_anchor_frames`` frames the anchors are frozen.

The cluster -> team mapping is greedy (team 0 picks its nearest center, team 1
takes the nearest remaining one). With two teams this is the optimal
assignment; for more teams it is not, and a minimum-cost assignment (e.g.
Hungarian) would be needed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

import cv2
import numpy as np

from .config import ClusteringConfig
from .data_structures import NUM_TEAMS, ClusteringResult, ColorFeature, StreamState, TeamID
from .logger import get_logger

logger = get_logger("team_classifier")

Centers = np.ndarray[Any, np.dtype[np.float32]]


def map_clusters_to_teams(anchors: Centers, centers: Centers) -> List[TeamID]:
    """
    Greedy nearest-anchor assignment of cluster centers to team ids.

    Teams are visited in order 0, 1, ...; each binds the closest center not
    yet taken (Euclidean distance in feature space).

    Args:
        anchors: (k, d) team anchors.
        centers: (k, d) cluster centers of the current frame.

    Returns:
        ``cluster_to_team`` list of length k, a permutation of ``range(k)``.
    """
    k = len(centers)
    cluster_to_team: List[TeamID] = [-1] * k
    taken = [False] * k
    for team in range(len(anchors)):
        best_cluster = -1
        best_dist = float("inf")
        for cluster in range(k):
            if taken[cluster]:
                continue
            dist = float(np.linalg.norm(anchors[team] - centers[cluster]))
            if dist < best_dist:
                best_dist = dist
                best_cluster = cluster
        if best_cluster != -1:
            cluster_to_team[best_cluster] = team
            taken[best_cluster] = True
    return cluster_to_team


def confidence_ratio(feature: ColorFeature, own_center: np.ndarray, other_center: np.ndarray) -> float:
    """
    Distance to the own cluster center divided by distance to the other one.

    Near 0 the sample sits deep inside its cluster; near or above 1 it is on
    the boundary between the teams. Defined as 0 when the other distance is 0.
    """
    d_own = float(np.linalg.norm(feature - own_center))
    d_other = float(np.linalg.norm(feature - other_center))
    if d_other <= 0.0:
        return 0.0
    return d_own / d_other


def confidence_ratios(features: np.ndarray, result: ClusteringResult) -> List[float]:
    """
    Confidence ratio of every feature against its own and the other center.
    """
    ratios: List[float] = []
    for feature, cluster in zip(features, result.labels):
        own = int(cluster)
        ratios.append(confidence_ratio(feature, result.centers[own], result.centers[1 - own]))
    return ratios


@dataclass
class TeamClusterer:
    """
    Per-frame 2-means clustering with anchor-based label stabilization.

    Attributes:
        config: k-means and anchor settings.
    """

    config: ClusteringConfig = field(default_factory=ClusteringConfig)

    def __post_init__(self) -> None:
        if self.config.seed is not None:
            cv2.setRNGSeed(int(self.config.seed))

    def _kmeans(self, features: np.ndarray) -> tuple:
        cfg = self.config
        criteria = (
            cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER,
            cfg.max_iterations,
            cfg.epsilon,
        )
        _, labels, centers = cv2.kmeans(
            features.astype(np.float32),
            NUM_TEAMS,
            None,
            criteria,
            cfg.attempts,
            cv2.KMEANS_PP_CENTERS,
        )
        return labels.ravel().astype(np.int32), centers.astype(np.float32)

    def update_anchors(self, centers: Centers, state: StreamState) -> None:
        """
        Seed or blend the team anchors while the warm-up window is open.

        Each anchor is blended with the center the greedy mapping binds to it,
        never with the center of the same raw index.
        """
        cfg = self.config
        if state.anchor_frames >= cfg.max_anchor_frames:
            return
        if not state.anchors_initialized:
            state.team_anchors = centers.copy()
        else:
            cluster_to_team = map_clusters_to_teams(state.team_anchors, centers)
            blended = state.team_anchors.copy()
            for cluster, team in enumerate(cluster_to_team):
                blended[team] = (
                    cfg.anchor_momentum * state.team_anchors[team]
                    + (1.0 - cfg.anchor_momentum) * centers[cluster]
                )
            state.team_anchors = blended.astype(np.float32)
        state.anchor_frames += 1
        if state.anchor_frames == cfg.max_anchor_frames:
            logger.info("Team anchors frozen after %d frames.", state.anchor_frames)

    def classify(self, features: np.ndarray, state: StreamState) -> Optional[ClusteringResult]:
        """
        Cluster this frame's features and map the clusters to stable teams.

        Args:
            features: (N, 3) jersey descriptors of the current frame.
            state: Stream context holding the anchors; updated in place.

        Returns:
            A :class:`ClusteringResult`, or None when fewer than two features
            are available (the state is then left untouched).
        """
        if features.shape[0] < NUM_TEAMS:
            logger.debug("Only %d detection(s); skipping team clustering.", features.shape[0])
            return None

        labels, centers = self._kmeans(features)
        self.update_anchors(centers, state)
        anchors = state.team_anchors if state.team_anchors is not None else centers
        cluster_to_team = map_clusters_to_teams(anchors, centers)
        return ClusteringResult(labels=labels, centers=centers, cluster_to_team=cluster_to_team)
