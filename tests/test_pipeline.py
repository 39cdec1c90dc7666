"""
End-to-end tests of the per-frame pipeline on synthetic frames.
"""

import numpy as np
import pytest

from teamtrack.pipeline import PlayerPipeline

from conftest import AlwaysForeground, BLUE_BGR, RED_BGR, make_field_frame


@pytest.fixture
def pipeline(config):
    return PlayerPipeline(config)


@pytest.fixture
def state(pipeline):
    state = pipeline.new_state()
    state.background_model = AlwaysForeground()
    return state


class TestPlayerPipeline:
    """Test the frame -> (box, team) flow."""

    def test_two_jerseys_two_teams(self, pipeline, state, two_team_frame):
        result = pipeline.process_detailed(two_team_frame, state)

        assert len(result.boxes) == 2
        assert sorted(team for _, team in result.classified) == [0, 1]
        assert all(p.confidence_ratio < 0.1 for p in result.players)
        assert state.frame_index == 1

    def test_single_detection_gives_empty_result(self, pipeline, state):
        frame = make_field_frame([((60, 80, 80, 130), RED_BGR)])
        assert pipeline.process(frame, state) == []
        assert state.tracks == {}
        assert not state.anchors_initialized

    def test_no_field_gives_empty_result(self, pipeline, state):
        frame = np.full((240, 320, 3), 128, dtype=np.uint8)
        result = pipeline.process_detailed(frame, state)
        assert result.boxes == []
        assert result.classified == []

    def test_consecutive_frames_keep_ids_and_teams(self, pipeline, state, two_team_frame):
        first = pipeline.process_detailed(two_team_frame, state)
        second = pipeline.process_detailed(two_team_frame, state)

        assert [p.track_id for p in second.players] == [p.track_id for p in first.players]
        assert second.classified == first.classified
        assert state.next_track_id == 2

    def test_swapped_jerseys_follow_colour(self, pipeline, state, two_team_frame):
        first = dict((box[0] // 100, team) for box, team in pipeline.process(two_team_frame, state))
        swapped = make_field_frame(
            [
                ((60, 80, 80, 130), BLUE_BGR),
                ((220, 80, 240, 130), RED_BGR),
            ]
        )
        # Moved far enough that no track carries its label over.
        swapped = np.roll(swapped, 60, axis=0)
        second = dict((box[0] // 100, team) for box, team in pipeline.process(swapped, state))

        assert second[0] == first[2]
        assert second[2] == first[0]

    def test_streams_are_independent(self, pipeline, two_team_frame):
        a = pipeline.new_state()
        b = pipeline.new_state()
        a.background_model = AlwaysForeground()
        b.background_model = AlwaysForeground()

        pipeline.process(two_team_frame, a)
        pipeline.process(two_team_frame, a)
        pipeline.process(two_team_frame, b)

        assert a.anchor_frames == 2
        assert b.anchor_frames == 1
        assert a.background_model is not b.background_model

    def test_zero_area_box_still_classifies(self, pipeline, state, two_team_frame):
        boxes = [(60, 80, 80, 130), (220, 80, 240, 130), (400, 400, 420, 450)]
        result = pipeline.classify_boxes(two_team_frame, boxes, state)

        assert result.clustering is not None
        assert not result.features[2].any()
        assert len(result.classified) == 3

    def test_rejects_non_colour_frames(self, pipeline, state):
        with pytest.raises(ValueError):
            pipeline.process(np.zeros((10, 10), dtype=np.uint8), state)
        with pytest.raises(ValueError):
            pipeline.process(np.zeros((10, 10, 3), dtype=np.float32), state)

    def test_missing_background_model_is_created(self, pipeline, two_team_frame):
        from teamtrack.data_structures import StreamState

        state = StreamState()
        pipeline.process(two_team_frame, state)
        assert state.background_model is not None
