"""
Tests for CSV export, heatmap accumulation and drawing.
"""

import cv2
import numpy as np
import pytest

from teamtrack.config import HeatmapConfig
from teamtrack.data_structures import team_name
from teamtrack.heatmap import HeatmapAccumulator
from teamtrack.tracking_data import CSV_FIELDS, DetectionStore
from teamtrack.visualization import TEAM_COLORS, UNKNOWN_COLOR, draw_classified_players, masked_view, team_color


class TestDetectionStore:
    """Test per-frame CSV rows."""

    def test_csv_layout(self, tmp_path):
        store = DetectionStore()
        store.add_frame(0, [((10, 20, 30, 70), 0), ((100, 20, 120, 70), 1)])
        store.add_frame(1, [])
        store.add_frame(2, [((12, 20, 32, 70), 0)])

        path = tmp_path / "out" / "ours.csv"
        store.to_csv(path)

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == ",".join(CSV_FIELDS) == "frame,x1,y1,x2,y2,team"
        assert lines[1] == "0,10,20,30,70,0"
        assert len(lines) == 4

        loaded = DetectionStore.from_csv(path)
        assert loaded.rows == store.rows
        assert loaded.frames() == [0, 2]
        assert loaded.rows[2].box == (12, 20, 32, 70)


class TestHeatmap:
    def test_empty_heatmap(self, tmp_path):
        heatmap = HeatmapAccumulator()
        assert heatmap.is_empty
        with pytest.raises(ValueError):
            heatmap.render()
        assert heatmap.save(tmp_path / "h.png", tmp_path / "o.png") is False

    def test_markers_accumulate_in_team_colour(self, tmp_path):
        frame = np.zeros((120, 160, 3), dtype=np.uint8)
        heatmap = HeatmapAccumulator(HeatmapConfig(marker_radius=10, blur_sigma=3))
        heatmap.update(frame, [((20, 20, 40, 60), 0)])
        heatmap.update(frame, [((20, 20, 40, 60), 0), ((120, 60, 140, 100), 1)])

        heatmap_img, overlay = heatmap.render()

        assert heatmap_img.shape == frame.shape
        assert heatmap_img.dtype == np.uint8
        # Team A marker is red (BGR channel 2), Team B blue (channel 0).
        assert heatmap_img[40, 30, 2] >= 250
        assert heatmap_img[40, 30, 0] == 0
        assert heatmap_img[80, 130, 0] > 0
        assert overlay.shape == frame.shape

        assert heatmap.save(tmp_path / "h.png", tmp_path / "o.png") is True
        assert (tmp_path / "h.png").exists()
        assert (tmp_path / "o.png").exists()

    def test_heatmap_values_are_rounded(self):
        """Normalized intensities round to the nearest integer rather than truncating."""
        frame = np.zeros((120, 160, 3), dtype=np.uint8)
        heatmap = HeatmapAccumulator(HeatmapConfig(marker_radius=5, blur_sigma=3))
        heatmap.update(frame, [((20, 20, 40, 60), 0), ((120, 60, 140, 100), 1)])

        heatmap_img, _ = heatmap.render()

        blurred = cv2.GaussianBlur(heatmap._accum, (0, 0), 3).astype(np.float64)
        scaled = (blurred - blurred.min()) / (blurred.max() - blurred.min()) * 255.0
        rounded = np.rint(scaled).astype(np.uint8)
        truncated = scaled.astype(np.uint8)

        assert np.count_nonzero(rounded != truncated) > 100
        # Allow a handful of float32 ties at .5.
        assert np.count_nonzero(heatmap_img != rounded) < 20


class TestVisualization:
    def test_team_names_and_colours(self):
        assert team_name(0) == "Team A"
        assert team_name(1) == "Team B"
        assert team_name(-1) == "Unknown"
        assert team_color(0) == TEAM_COLORS[0]
        assert team_color(5) == UNKNOWN_COLOR

    def test_draw_does_not_modify_input(self):
        frame = np.zeros((100, 100, 3), dtype=np.uint8)
        vis = draw_classified_players(frame, [((20, 30, 40, 80), 1)], track_ids=[4])
        assert not frame.any()
        assert tuple(vis[50, 20]) == TEAM_COLORS[1]

    def test_masked_view(self):
        frame = np.full((10, 10, 3), 200, dtype=np.uint8)
        mask = np.zeros((10, 10), dtype=np.uint8)
        mask[:5] = 255
        view = masked_view(frame, mask)
        assert view[0, 0, 0] == 200
        assert view[9, 9, 0] == 0
        assert np.array_equal(masked_view(frame, None), frame)
