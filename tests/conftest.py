"""Shared test fixtures for the reel_composer test suite.

WHY: Several test modules need the same small compositions: a two-segment
story with sentence captions, and a word-level caption track. Keeping
them here means every module exercises the same timings.

HOW: Plain dicts in the camelCase props shape the loader accepts, plus
fixtures returning both the raw dicts and the loaded Composition.

RULES:
- Times are chosen so frame boundaries at 30 fps are exact
- The story script repeats "the" to exercise current-wins-over-spoken
"""

from typing import Any, Dict

import pytest

from reel_composer.core.loader import load_composition


STORY_PROPS: Dict[str, Any] = {
    "id": "story-1",
    "script": "Hello world. The cat sat on the mat.",
    "aspect": "9:16",
    "musicUrl": "https://cdn.example.com/music/calm.mp3",
    "segments": [
        {
            "id": "intro",
            "start": 0,
            "end": 3,
            "text": "Hello world.",
            "mediaUrl": "https://cdn.example.com/img/intro.png?v=2",
            "animation": "fade",
            "order": 0,
        },
        {
            "id": "cat",
            "start": 3,
            "end": 6,
            "text": "The cat sat on the mat.",
            "mediaUrl": "https://cdn.example.com/clips/cat.mp4",
            "order": 1,
        },
    ],
    "captions": [
        {"id": "c1", "text": "Hello world.", "start": 1.0, "end": 2.0},
        {"id": "c2", "text": "The cat sat", "startMs": 3000, "endMs": 4500},
        {"id": "c3", "text": "on the mat.", "startMs": 4500, "endMs": 6000},
    ],
}


WORD_PROPS: Dict[str, Any] = {
    "id": "words-1",
    "segments": [{"id": "only", "start": 0, "end": 3}],
    "captions": [
        {"text": "Make", "start": 0.0, "end": 0.5},
        {"text": "every", "start": 0.5, "end": 1.0},
        {"text": "second", "start": 1.0, "end": 1.5},
        {"text": "count", "start": 1.5, "end": 2.0},
    ],
}


@pytest.fixture
def story_props():
    """Raw props of the two-segment story composition."""
    return dict(STORY_PROPS)


@pytest.fixture
def story(story_props):
    """The story composition loaded into the IR."""
    return load_composition(story_props)


@pytest.fixture
def word_props():
    """Raw props of a composition with one caption per word."""
    return dict(WORD_PROPS)


@pytest.fixture
def word_story(word_props):
    return load_composition(word_props)


LIBRARY_SEED: Dict[str, Any] = {
    "users": [
        {"id": "u1", "email": "ana@example.com", "apiKey": "key-ana"},
        {"id": "u2", "email": "bo@example.com", "apiKey": "key-bo"},
    ],
    "voices": [
        {"id": "v1", "name": "Narrator", "voiceUrl": "https://cdn/v1.mp3",
         "isSystem": True, "createdAt": "2025-01-01T00:00:00Z"},
        {"id": "v2", "name": "Retired", "voiceUrl": "https://cdn/v2.mp3",
         "isSystem": True, "isDeleted": True, "createdAt": "2025-01-02T00:00:00Z"},
        {"id": "v3", "name": "Ana clone", "voiceUrl": "https://cdn/v3.mp3",
         "isSystem": False, "createdBy": "u1", "createdAt": "2025-02-01T00:00:00Z"},
        {"id": "v4", "name": "Bo clone", "voiceUrl": "https://cdn/v4.mp3",
         "isSystem": False, "createdBy": "u2", "createdAt": "2025-02-02T00:00:00Z"},
    ],
    "userAudios": [
        {"id": "a1", "userId": "u1", "voiceId": "v1", "prompt": "first",
         "audioUrl": "https://cdn/a1.mp3", "createdAt": "2025-03-01T10:00:00Z"},
        {"id": "a2", "userId": "u1", "voiceId": "v3", "prompt": "second",
         "audioUrl": "https://cdn/a2.mp3", "createdAt": "2025-03-02T10:00:00Z"},
        {"id": "a3", "userId": "u1", "prompt": "third",
         "audioUrl": "https://cdn/a3.mp3", "createdAt": "2025-03-03T10:00:00Z"},
        {"id": "a4", "userId": "u1", "prompt": "deleted", "isDeleted": True,
         "audioUrl": "https://cdn/a4.mp3", "createdAt": "2025-03-04T10:00:00Z"},
        {"id": "a5", "userId": "u2", "prompt": "not mine",
         "audioUrl": "https://cdn/a5.mp3", "createdAt": "2025-03-05T10:00:00Z"},
    ],
}


@pytest.fixture
def library_seed():
    """Media library seed: two users, one deleted voice, one deleted audio."""
    return LIBRARY_SEED
