"""
Configuration for the player detection / team classification pipeline.

This module centralizes configurable parameters such as:
- Colour thresholds and kernel sizes used by frame segmentation.
- Plausible player silhouette bounds for box filtering.
- Jersey feature extraction, clustering and tracking constants.
- Paths for CSV / heatmap outputs and run options.

Defaults reproduce the tuned threshold set the pipeline was developed with.
They can be overridden from a YAML file (see ``config.yaml`` in the project
root) and then from the command line.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, cast

import yaml

HSVTriple = Tuple[int, int, int]
KernelSize = Tuple[int, int]


@dataclass
class SegmentationConfig:
    """
    Thresholds for turning a frame into a candidate player-pixel mask.

    Attributes:
        bg_history: Number of frames the MOG2 background model remembers.
        bg_var_threshold: MOG2 variance threshold.
        bg_detect_shadows: Let MOG2 mark shadows (kept off, shadows are
            handled by colour thresholds instead).
        bg_learning_rate: Learning rate passed to ``apply`` on every frame.
        green_lower: Lower HSV bound of the field-green band.
        green_upper: Upper HSV bound of the field-green band.
        black_lower: Lower HSV bound of near-black pixels.
        black_upper: Upper HSV bound of near-black pixels.
        shadow_lower: Lower HSV bound of shadow pixels.
        shadow_upper: Upper HSV bound of shadow pixels (low value).
        field_kernel_size: Rectangular kernel used to clean the field mask.
        field_erode_iterations: Number of erosions after the single dilation.
        field_min_area: Minimum contour area for a field region.
        field_largest_only: Keep only the largest field region.
        field_convex_hull: Replace the kept field region(s) by their convex hull.
        player_dilation_radius: Radius of the square kernel that bridges gaps
            between player-coloured fragments.
        open_kernel_size: Elliptical opening kernel (removes thin blobs).
        close_kernel_size: Rectangular closing kernel (width, height); taller
            than wide so it bridges vertical gaps on one player.
    """

    bg_history: int = 500
    bg_var_threshold: float = 16.0
    bg_detect_shadows: bool = False
    bg_learning_rate: float = 0.01

    green_lower: HSVTriple = (40, 40, 40)
    green_upper: HSVTriple = (90, 255, 255)
    black_lower: HSVTriple = (0, 0, 0)
    black_upper: HSVTriple = (10, 10, 10)
    shadow_lower: HSVTriple = (0, 0, 0)
    shadow_upper: HSVTriple = (180, 255, 50)

    field_kernel_size: KernelSize = (5, 5)
    field_erode_iterations: int = 4
    field_min_area: float = 1000.0
    field_largest_only: bool = False
    field_convex_hull: bool = False

    player_dilation_radius: int = 5
    open_kernel_size: KernelSize = (5, 5)
    close_kernel_size: KernelSize = (3, 11)


@dataclass
class BoxFilterConfig:
    """
    Plausible player silhouette bounds, in pixels.

    Attributes:
        min_contour_area: Contours below this area are ignored.
        min_width: Minimum bounding box width.
        max_width: Maximum bounding box width.
        min_height: Minimum bounding box height.
        max_height: Maximum bounding box height.
        min_aspect_ratio: A box is kept only if ``height >= width * ratio``.
    """

    min_contour_area: float = 30.0
    min_width: int = 10
    max_width: int = 100
    min_height: int = 20
    max_height: int = 200
    min_aspect_ratio: float = 1.0


@dataclass
class FeatureConfig:
    """
    Jersey colour descriptor settings.

    Attributes:
        canonical_size: (width, height) every player crop is resized to.
        jersey_fraction: Upper fraction of the crop treated as jersey.
    """

    canonical_size: KernelSize = (32, 64)
    jersey_fraction: float = 0.6


@dataclass
class ClusteringConfig:
    """
    Per-frame 2-means clustering and team anchor settings.

    Attributes:
        attempts: Number of k-means restarts.
        max_iterations: Iteration cap of a single k-means run.
        epsilon: Center movement below which k-means stops.
        anchor_momentum: Weight of the old anchor in the warm-up EMA.
        max_anchor_frames: Number of frames anchors are updated before freezing.
        seed: Optional OpenCV RNG seed for reproducible clustering.
    """

    attempts: int = 5
    max_iterations: int = 10
    epsilon: float = 1.0
    anchor_momentum: float = 0.9
    max_anchor_frames: int = 10
    seed: Optional[int] = None


@dataclass
class TrackingConfig:
    """
    Attributes:
        match_distance_px: Center distance below which a box continues a track.
        confidence_override_ratio: Ratio above which the tracked label is
            preferred over a disagreeing fresh label.
    """

    match_distance_px: float = 50.0
    confidence_override_ratio: float = 0.7


@dataclass
class HeatmapConfig:
    """
    Attributes:
        marker_radius: Radius of the circle drawn per classified box.
        blur_sigma: Gaussian sigma applied before normalization.
        overlay_alpha: Weight of the first frame in the overlay image.
    """

    marker_radius: int = 20
    blur_sigma: float = 15.0
    overlay_alpha: float = 0.5


@dataclass
class Config:
    """
    High-level configuration for a single run.

    Attributes:
        input_video: Path to the input video.
        output_dir: Directory where the CSV and heatmap images are written.
        csv_name: File name of the per-frame detection CSV.
        heatmap_name: File name of the blurred heatmap image.
        overlay_name: File name of the heatmap blended onto the first frame.
        annotated_name: File name of the annotated output video.
        write_annotated_video: Save frames with drawn boxes to ``annotated_name``.
        display: Show OpenCV windows while processing.
        frame_stride: Process every N-th frame.
        max_frames: Read only the first N frames of the video, counted before
            ``frame_stride`` is applied (None = whole video).
        log_level: Logging level name.
        log_file: Optional log file; console only when None.
    """

    input_video: Optional[Path] = None
    output_dir: Path = Path("outputs")
    csv_name: str = "ours.csv"
    heatmap_name: str = "combined_heatmap.png"
    overlay_name: str = "heatmap_overlay.png"
    annotated_name: str = "annotated.mp4"
    write_annotated_video: bool = False
    display: bool = False
    frame_stride: int = 1
    max_frames: Optional[int] = None
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    boxes: BoxFilterConfig = field(default_factory=BoxFilterConfig)
    features: FeatureConfig = field(default_factory=FeatureConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    heatmap: HeatmapConfig = field(default_factory=HeatmapConfig)

    def __post_init__(self) -> None:
        if self.frame_stride < 1:
            raise ValueError("frame_stride must be >= 1")

    def ensure_output_dirs(self) -> None:
        """
        Create the output directory if it does not exist.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @property
    def csv_path(self) -> Path:
        return self.output_dir / self.csv_name

    @property
    def heatmap_path(self) -> Path:
        return self.output_dir / self.heatmap_name

    @property
    def overlay_path(self) -> Path:
        return self.output_dir / self.overlay_name

    @property
    def annotated_path(self) -> Path:
        return self.output_dir / self.annotated_name


_PATH_FIELDS = {"input_video", "output_dir", "log_file"}


def _coerce(current: Any, value: Any) -> Any:
    # YAML has no tuples; keep the declared shape of threshold triples/kernels.
    if isinstance(current, tuple) and isinstance(value, list):
        return tuple(value)
    return value


def _apply_section(target: Any, values: Dict[str, Any], section: str) -> None:
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        if key not in known:
            raise ValueError(f"Unknown key '{key}' in config section '{section}'.")
        current = getattr(target, key)
        if is_dataclass(current):
            if not isinstance(value, dict):
                raise ValueError(f"Config section '{key}' must be a mapping.")
            _apply_section(current, cast(Dict[str, Any], value), key)
            continue
        if key in _PATH_FIELDS and value is not None:
            value = Path(value)
        setattr(target, key, _coerce(current, value))


def config_from_dict(data: Dict[str, Any]) -> Config:
    """
    Build a :class:`Config` from a nested mapping (e.g. parsed YAML).

    Top-level keys map to :class:`Config` attributes; the stage sections
    (``segmentation``, ``boxes``, ``features``, ``clustering``, ``tracking``,
    ``heatmap``) are nested mappings.
    """
    config = Config()
    _apply_section(config, data, "root")
    if config.frame_stride < 1:
        raise ValueError("frame_stride must be >= 1")
    return config


def load_config(config_path: Path) -> Config:
    """
    Load a YAML configuration file.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValueError: If the file is not a mapping or contains unknown keys.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a top-level mapping.")
    return config_from_dict(cast(Dict[str, Any], data))


DEFAULT_CONFIG = Config()
