"""
Tests for the command-line entry point and video IO.
"""

import argparse
import csv
from pathlib import Path

import cv2
import pytest

from teamtrack import video_io
from teamtrack.main import build_config_from_args, main, run_pipeline
from teamtrack.video_io import VideoReader, VideoWriter

from conftest import BLUE_BGR, RED_BGR, make_field_frame


class ClosedWriter:
    """cv2.VideoWriter stand-in that never opens."""

    def __init__(self, *args, **kwargs):
        pass

    def isOpened(self):
        return False


def make_args(**overrides):
    values = dict(
        video_path="match.mp4",
        config=None,
        output_dir=None,
        display=False,
        annotated_video=False,
        frame_stride=None,
        max_frames=None,
        seed=None,
        log_level=None,
        log_file=None,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture
def synthetic_video(tmp_path):
    """Short MJPG video of two players walking across the field."""
    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (320, 240))
    if not writer.isOpened():
        pytest.skip("MJPG video writer not available")
    for i in range(12):
        writer.write(
            make_field_frame(
                [
                    ((40 + 3 * i, 80, 60 + 3 * i, 130), RED_BGR),
                    ((240 - 3 * i, 80, 260 - 3 * i, 130), BLUE_BGR),
                ]
            )
        )
    writer.release()
    return path


class TestBuildConfig:
    def test_cli_overrides(self, tmp_path):
        cfg = build_config_from_args(
            make_args(output_dir=str(tmp_path), frame_stride=2, max_frames=5, seed=3, log_level="DEBUG")
        )
        assert cfg.input_video == Path("match.mp4")
        assert cfg.output_dir == tmp_path
        assert cfg.frame_stride == 2
        assert cfg.max_frames == 5
        assert cfg.clustering.seed == 3
        assert cfg.log_level == "DEBUG"

    def test_yaml_then_cli(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("frame_stride: 4\ntracking:\n  match_distance_px: 20\n", encoding="utf-8")
        cfg = build_config_from_args(make_args(config=str(path), frame_stride=3))
        assert cfg.frame_stride == 3
        assert cfg.tracking.match_distance_px == 20

    def test_invalid_stride(self):
        with pytest.raises(ValueError):
            build_config_from_args(make_args(frame_stride=0))


class TestRun:
    def test_missing_video_exits_with_error(self, tmp_path, capsys):
        code = main([str(tmp_path / "missing.mp4"), "--output_dir", str(tmp_path)])
        assert code == 1
        assert "Could not open video" in capsys.readouterr().err

    def test_run_writes_outputs(self, tmp_path, synthetic_video):
        cfg = build_config_from_args(
            make_args(video_path=str(synthetic_video), output_dir=str(tmp_path / "out"), seed=1)
        )
        store = run_pipeline(cfg)

        with cfg.csv_path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == len(store.rows)
        assert all(row["team"] in {"0", "1"} for row in rows)
        assert cfg.heatmap_path.exists()
        assert cfg.overlay_path.exists()

    def test_max_frames_limits_processing(self, tmp_path, synthetic_video):
        cfg = build_config_from_args(
            make_args(video_path=str(synthetic_video), output_dir=str(tmp_path), max_frames=3)
        )
        store = run_pipeline(cfg)
        assert all(row.frame < 3 for row in store.rows)

    def test_unopenable_writer_exits_with_error(self, tmp_path, synthetic_video, monkeypatch, capsys):
        monkeypatch.setattr(video_io.cv2, "VideoWriter", ClosedWriter)
        code = main([str(synthetic_video), "--output_dir", str(tmp_path), "--annotated_video"])
        assert code == 1
        assert "Could not open video writer" in capsys.readouterr().err


class TestVideoIO:
    def test_reader_properties(self, synthetic_video):
        with VideoReader(synthetic_video) as video:
            assert (video.width, video.height) == (320, 240)
            assert len(list(video)) == 12

    def test_max_frames_counts_raw_frames_before_stride(self, synthetic_video):
        with VideoReader(synthetic_video, stride=2, max_frames=5) as video:
            assert [idx for idx, _ in video] == [0, 2, 4]

    def test_writer_raises_oserror_when_not_opened(self, tmp_path, monkeypatch):
        monkeypatch.setattr(video_io.cv2, "VideoWriter", ClosedWriter)
        with pytest.raises(OSError):
            VideoWriter(tmp_path / "out.mp4", fps=10.0, frame_size=(320, 240))
