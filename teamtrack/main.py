"""
Entry point for the player detection and team classification pipeline.

This script wires together:
- Video reading
- Per-frame segmentation, box extraction, team clustering and tracking
- CSV export of every classified box
- Heatmap accumulation and export
- Optional on-screen display and annotated video

It can be run from the command line, for example:

    python -m teamtrack.main data/match.mp4 \\
        --output_dir outputs/ \\
        --display

Thresholds can also be configured via ``config.yaml``; see the example in the
project root.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import cv2

from .config import Config, load_config
from .heatmap import HeatmapAccumulator
from .logger import setup_logger
from .pipeline import PlayerPipeline
from .tracking_data import DetectionStore
from .video_io import VideoReader, VideoWriter
from .visualization import draw_classified_players, masked_view

MAIN_WINDOW = "Football Player Detection"
FIELD_WINDOW = "Green Field Mask"
PLAYERS_WINDOW = "Players"


def build_config_from_args(args: argparse.Namespace) -> Config:
    """
    Construct a :class:`Config` from CLI arguments and an optional YAML file.

    CLI flags override YAML values, which override code defaults.
    """
    if args.config is not None:
        config = load_config(Path(args.config))
    else:
        default_config_path = Path.cwd() / "config.yaml"
        config = load_config(default_config_path) if default_config_path.exists() else Config()

    config.input_video = Path(args.video_path)
    if args.output_dir is not None:
        config.output_dir = Path(args.output_dir)
    if args.display:
        config.display = True
    if args.annotated_video:
        config.write_annotated_video = True
    if args.frame_stride is not None:
        if args.frame_stride < 1:
            raise ValueError("frame_stride must be >= 1")
        config.frame_stride = args.frame_stride
    if args.max_frames is not None:
        config.max_frames = args.max_frames
    if args.seed is not None:
        config.clustering.seed = args.seed
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_file is not None:
        config.log_file = Path(args.log_file)
    return config


def _setup_windows() -> None:
    for name in (MAIN_WINDOW, FIELD_WINDOW, PLAYERS_WINDOW):
        cv2.namedWindow(name, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(name, 1280, 720)


def run_pipeline(config: Config) -> DetectionStore:
    """
    Process a whole video and write the CSV and heatmap outputs.

    Returns:
        The store holding every classified box, already written to disk.

    Raises:
        ValueError: If no input video is configured.
        FileNotFoundError: If the video cannot be opened.
        OSError: If the annotated video writer cannot be opened.
    """
    logger = setup_logger(level=config.log_level, log_file=config.log_file)
    if config.input_video is None:
        raise ValueError("No input video configured.")
    config.ensure_output_dirs()

    pipeline = PlayerPipeline(config)
    state = pipeline.new_state()
    store = DetectionStore()
    heatmap = HeatmapAccumulator(config.heatmap)
    writer: Optional[VideoWriter] = None

    if config.display:
        _setup_windows()

    processed = 0
    with VideoReader(config.input_video, stride=config.frame_stride, max_frames=config.max_frames) as video:
        fps = video.fps
        frame_delay = int(1000.0 / fps) if fps > 0 else 30
        logger.info(
            "Processing %s (%dx%d, %.1f fps, %d frames)",
            config.input_video,
            video.width,
            video.height,
            fps,
            video.frame_count,
        )
        try:
            for frame_idx, frame in video:
                result = pipeline.process_detailed(frame, state)
                classified = result.classified
                store.add_frame(frame_idx, classified)
                heatmap.update(frame, classified)
                processed += 1

                if not (config.display or config.write_annotated_video):
                    continue
                vis = draw_classified_players(frame, classified)
                if config.write_annotated_video:
                    if writer is None:
                        h, w = vis.shape[:2]
                        writer = VideoWriter(config.annotated_path, fps=fps, frame_size=(w, h))
                    writer.write(vis)
                if config.display:
                    cv2.imshow(MAIN_WINDOW, vis)
                    cv2.imshow(FIELD_WINDOW, masked_view(frame, pipeline.segmenter.last_field_mask))
                    cv2.imshow(PLAYERS_WINDOW, masked_view(frame, pipeline.segmenter.last_player_mask))
                    key = cv2.waitKey(frame_delay) & 0xFF
                    if key in (27, ord("q")):
                        logger.info("Stopped by user at frame %d.", frame_idx)
                        break
        finally:
            if writer is not None:
                writer.release()
            if config.display:
                cv2.destroyAllWindows()

    store.to_csv(config.csv_path)
    if heatmap.save(config.heatmap_path, config.overlay_path):
        logger.info("Heatmaps written to %s and %s", config.heatmap_path, config.overlay_path)
    else:
        logger.warning("No frames processed; heatmap not written.")
    logger.info(
        "Processed %d frame(s), %d classified box(es), %d track id(s) issued. CSV: %s",
        processed,
        len(store.rows),
        state.next_track_id,
        config.csv_path,
    )
    return store


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entrypoint. Use ``python -m teamtrack.main --help`` for options.
    """
    parser = argparse.ArgumentParser(
        description="Football player detection, team classification and tracking.",
    )
    parser.add_argument("video_path", type=str, help="Path to input video file.")
    parser.add_argument(
        "--config",
        type=str,
        help="Optional path to a YAML config file (defaults to ./config.yaml if present).",
    )
    parser.add_argument("--output_dir", type=str, help="Directory for the CSV and heatmaps.")
    parser.add_argument("--display", action="store_true", help="Show OpenCV windows while processing.")
    parser.add_argument(
        "--annotated_video",
        action="store_true",
        help="Write an annotated video next to the other outputs.",
    )
    parser.add_argument("--frame_stride", type=int, help="Process every N-th frame.")
    parser.add_argument(
        "--max_frames",
        type=int,
        help="Read only the first N frames of the video (counted before --frame_stride).",
    )
    parser.add_argument("--seed", type=int, help="Seed for reproducible clustering.")
    parser.add_argument(
        "--log_level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default from config).",
    )
    parser.add_argument("--log_file", type=str, help="Also write logs to this file.")

    args = parser.parse_args(argv)
    try:
        config = build_config_from_args(args)
        run_pipeline(config)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
