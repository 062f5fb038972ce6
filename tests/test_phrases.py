"""Tests for phrase grouping, pagination and half-open lookup."""

import pytest

from reel_composer.core.ir import Caption
from reel_composer.core.phrases import (
    active_token_index,
    find_active_phrase,
    group_word_captions,
    paginate_caption,
)


@pytest.fixture
def word_captions():
    return [
        Caption(text="Make", start_s=0.0, end_s=0.5),
        Caption(text="every", start_s=0.5, end_s=1.0),
        Caption(text="second", start_s=1.0, end_s=1.5),
        Caption(text="count", start_s=1.5, end_s=2.0),
    ]


class TestGroupWordCaptions:
    def test_groups_of_three_with_remainder(self, word_captions):
        phrases = group_word_captions(word_captions, 3)
        assert [p.text for p in phrases] == ["Make every second", "count"]
        assert phrases[0].start_s == 0.0
        assert phrases[0].end_s == 1.5
        assert phrases[1].start_s == 1.5

    def test_trailing_space_on_all_but_last_token(self, word_captions):
        phrase = group_word_captions(word_captions, 3)[0]
        assert [t.text for t in phrase.tokens] == ["Make ", "every ", "second"]

    def test_tokens_keep_word_timing(self, word_captions):
        phrase = group_word_captions(word_captions, 3)[0]
        assert phrase.tokens[1].start_s == 0.5
        assert phrase.tokens[1].end_s == 1.0

    def test_rejects_non_positive_size(self, word_captions):
        with pytest.raises(ValueError):
            group_word_captions(word_captions, 0)

    def test_empty_input(self):
        assert group_word_captions([], 3) == []


class TestPaginateCaption:
    def test_even_pages(self):
        caption = Caption(text="one two three four five", start_s=0.0, end_s=2.0)
        pages = paginate_caption(caption, 3)
        assert [p.text for p in pages] == ["one two three", "four five"]
        assert pages[0].end_s == pytest.approx(1.0)
        assert pages[1].start_s == pytest.approx(1.0)
        assert pages[1].end_s == pytest.approx(2.0)

    def test_even_words_within_page(self):
        caption = Caption(text="one two three four five", start_s=0.0, end_s=2.0)
        second = paginate_caption(caption, 3)[1]
        assert second.tokens[0].start_s == pytest.approx(1.0)
        assert second.tokens[0].end_s == pytest.approx(1.5)
        assert second.tokens[1].end_s == pytest.approx(2.0)

    def test_word_end_never_passes_caption_end(self):
        caption = Caption(text="a b c d e f g", start_s=0.0, end_s=1.0)
        for page in paginate_caption(caption, 3):
            assert page.end_s <= 1.0
            assert all(token.end_s <= page.end_s for token in page.tokens)

    def test_empty_caption(self):
        assert paginate_caption(Caption(text="  ", start_s=0.0, end_s=1.0)) == []

    def test_rejects_non_positive_batch(self):
        with pytest.raises(ValueError):
            paginate_caption(Caption(text="x", start_s=0.0, end_s=1.0), 0)


class TestLookup:
    def test_half_open_phrase_lookup(self, word_captions):
        phrases = group_word_captions(word_captions, 3)
        assert find_active_phrase(phrases, 1.49).text == "Make every second"
        assert find_active_phrase(phrases, 1.5).text == "count"
        assert find_active_phrase(phrases, 2.0) is None

    def test_active_token(self, word_captions):
        phrase = group_word_captions(word_captions, 3)[0]
        assert active_token_index(phrase, 0.0) == 0
        assert active_token_index(phrase, 0.75) == 1
        assert active_token_index(phrase, 1.5) is None
