"""
Top-level package for the teamtrack project.

This package provides a modular per-frame pipeline for:
- Segmenting candidate player pixels with motion and colour cues.
- Extracting player bounding boxes from the resulting mask.
- Describing each player by the median Lab colour of the jersey.
- Clustering the players of a frame into two teams with stable team ids.
- Tracking player identities across consecutive frames.

The outer modules handle CSV export, heatmaps, drawing and video I/O.
See individual submodules for more detailed documentation.
"""

from .config import DEFAULT_CONFIG, Config, load_config
from .data_structures import NUM_TEAMS, StreamState
from .pipeline import FrameResult, PlayerPipeline

__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "FrameResult",
    "NUM_TEAMS",
    "PlayerPipeline",
    "StreamState",
    "load_config",
]
