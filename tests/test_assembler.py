"""Tests for the per-frame composition assembler.

WHY: The assembler is where segment fades, caption sweeps, story
highlighting and phrase display meet. These tests walk the fixture
compositions through representative frames at 30 fps.

RULES:
- Frame numbers are chosen on exact second boundaries where possible
- Floating-point comparisons use pytest.approx
"""

import pytest

from reel_composer.core.assembler import (
    assemble_frame,
    iter_frames,
    total_frames,
)
from reel_composer.core.highlight import WordState
from reel_composer.core.ir import (
    Caption,
    CaptionStyle,
    Composition,
    CompositionError,
    MediaKind,
    Segment,
)
from reel_composer.core.loader import load_composition


class TestTotalFrames:
    def test_story_length(self, story):
        assert total_frames(story, 30) == 180

    def test_default_composition(self):
        assert total_frames(load_composition(None), 30) == 90

    def test_overflowing_end_is_rejected(self):
        composition = Composition(
            id="huge", segments=(Segment(id="s", start_s=0.0, end_s=1e308),)
        )
        with pytest.raises(CompositionError):
            total_frames(composition, 30)

    def test_overflowing_fps_is_rejected(self, story):
        with pytest.raises(CompositionError):
            total_frames(story, 10 ** 400)

    def test_frame_limit(self, story, monkeypatch):
        monkeypatch.setattr("reel_composer.core.assembler.MAX_FRAMES", 100)
        with pytest.raises(CompositionError, match="100 frames"):
            total_frames(story, 30)
        with pytest.raises(CompositionError):
            list(iter_frames(story, 30))

    def test_at_least_one_frame(self):
        composition = load_composition({"id": "x", "segments": [{"start": 0, "end": 0}]})
        assert total_frames(composition, 30) == 1

    def test_iter_frames_covers_every_frame(self, story):
        frames = [view.frame for view in iter_frames(story, 30)]
        assert frames == list(range(180))


class TestPlaceholder:
    def test_default_composition_renders_placeholder(self):
        view = assemble_frame(load_composition(None), 0, 30)
        assert view.placeholder is True
        assert view.segments == ()
        assert view.captions == ()
        assert view.phrase is None

    def test_captions_only_composition_is_rendered(self):
        composition = Composition(
            id="story",
            script="hello world",
            captions=(
                Caption(text="hello", start_s=0.0, end_s=1.0),
                Caption(text="world", start_s=1.0, end_s=2.0),
            ),
        )
        view = assemble_frame(composition, 15, 30)
        assert view.placeholder is False
        assert view.segments == ()
        assert view.state.current_words == frozenset({"hello"})
        assert [(w.text, w.state) for w in view.story] == [
            ("hello", WordState.CURRENT),
            ("world", WordState.UPCOMING),
        ]
        assert view.phrase.text == "hello world"
        assert view.phrase.active_token == 0
        assert total_frames(composition, 30) == 60


class TestSegments:
    def test_first_segment_mid_way(self, story):
        view = assemble_frame(story, 45, 30)
        (segment,) = view.segments
        assert segment.id == "intro"
        assert segment.progress == pytest.approx(0.5)
        assert segment.opacity == 1.0
        assert segment.media_kind is MediaKind.IMAGE

    def test_segment_fades_in(self, story):
        first = assemble_frame(story, 0, 30).segments[0]
        fifth = assemble_frame(story, 5, 30).segments[0]
        assert first.opacity == 0.0
        assert 0.0 < fifth.opacity < 1.0

    def test_boundary_frame_shows_both_segments_transparent(self, story):
        view = assemble_frame(story, 90, 30)
        assert [s.id for s in view.segments] == ["intro", "cat"]
        assert all(s.opacity == 0.0 for s in view.segments)

    def test_second_segment(self, story):
        (segment,) = assemble_frame(story, 120, 30).segments
        assert segment.id == "cat"
        assert segment.media_kind is MediaKind.VIDEO
        assert segment.progress == pytest.approx(1 / 3)


class TestCaptions:
    def test_hello_world_at_frame_45(self, story):
        view = assemble_frame(story, 45, 30)
        (caption,) = view.captions
        assert caption.id == "c1"
        assert caption.progress == pytest.approx(0.5)
        assert caption.current_word_index == 1
        assert [w.is_active for w in caption.words] == [True, True]
        assert view.state.current_words == {"hello", "world"}

    def test_millisecond_caption_sweep(self, story):
        view = assemble_frame(story, 120, 30)
        (caption,) = view.captions
        assert caption.id == "c2"
        assert caption.current_word_index == 2
        assert view.state.spoken_words == {"hello", "world"}
        assert view.state.current_words == {"the", "cat", "sat"}

    def test_no_caption_between_captions(self, story):
        view = assemble_frame(story, 75, 30)
        assert view.captions == ()
        assert view.phrase is None
        assert view.state.spoken_words == {"hello", "world"}


class TestStory:
    def test_story_states(self, story):
        view = assemble_frame(story, 120, 30)
        assert [w.state for w in view.story] == [
            WordState.SPOKEN,    # Hello
            WordState.SPOKEN,    # world.
            WordState.CURRENT,   # The
            WordState.CURRENT,   # cat
            WordState.CURRENT,   # sat
            WordState.UPCOMING,  # on
            WordState.CURRENT,   # the
            WordState.UPCOMING,  # mat.
        ]

    def test_no_script_means_no_story(self, word_story):
        assert assemble_frame(word_story, 10, 30).story == ()


class TestPhrases:
    def test_sentence_caption_is_paginated(self, story):
        view = assemble_frame(story, 45, 30)
        assert view.phrase.text == "Hello world."
        assert view.phrase.tokens == ("Hello ", "world.")
        assert view.phrase.active_token == 1
        assert view.phrase.scale == pytest.approx(1.0)

    def test_phrase_pops_in(self, story):
        view = assemble_frame(story, 31, 30)
        assert view.phrase.scale == pytest.approx(0.825)

    def test_word_captions_are_grouped(self, word_story):
        view = assemble_frame(word_story, 15, 30)
        assert view.phrase.text == "Make every second"
        assert view.phrase.active_token == 1
        assert view.state.current_words == {"make", "every"}
        assert view.state.spoken_words == frozenset()

    def test_words_per_batch_from_style(self, word_story):
        view = assemble_frame(word_story, 15, 30, CaptionStyle(words_per_batch=2))
        assert view.phrase.text == "Make every"

    def test_phrase_scale_starts_small(self, word_story):
        assert assemble_frame(word_story, 0, 30).phrase.scale == pytest.approx(0.8)


class TestFrameView:
    def test_invalid_fps(self, story):
        with pytest.raises(ValueError):
            assemble_frame(story, 0, 0)

    def test_to_dict(self, story):
        data = assemble_frame(story, 45, 30).to_dict()
        assert data["frame"] == 45
        assert data["time_s"] == pytest.approx(1.5)
        assert data["segments"][0]["media_kind"] == "image"
        assert data["captions"][0]["current_word_index"] == 1
        assert data["current_words"] == ["hello", "world"]
        assert data["story"][0] == {"text": "Hello", "state": "current"}
        assert data["phrase"]["tokens"] == ["Hello ", "world."]

    def test_same_input_same_output(self, story):
        assert assemble_frame(story, 77, 30) == assemble_frame(story, 77, 30)
