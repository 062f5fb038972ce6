"""In-memory media library: users, voices and generated audios.

WHY: The HTTP API lists the narration voices a user may pick and the
audio clips they generated before. Both lists are per user and must not
leak to anonymous callers. The library is small and read-mostly, so an
in-memory store seeded from a JSON file is sufficient.

HOW: Three dataclasses (User, Voice, AudioGeneration) and a MediaLibrary
holding them in dicts. Every access acquires a threading.Lock.
fetch_voices() and fetch_user_audios() are the two query operations;
both require an authenticated User and raise AuthenticationError
otherwise.

RULES:
- Query operations raise AuthenticationError("User not authenticated")
  when user is None
- Deleted voices and audios are never returned
- systemVoices: every system voice; userVoices: voices the user created
- User audios are ordered newest first, paginated by limit/offset
- limit must be positive and offset non-negative
- Seed file keys are camelCase, matching the HTTP responses
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_LIMIT = 10


class AuthenticationError(PermissionError):
    """Raised when a per-user query is made without an authenticated user."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.now(timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_time(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class User:
    id: str
    email: str = ""
    name: Optional[str] = None
    api_key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> User:
        return cls(
            id=str(data["id"]),
            email=data.get("email") or "",
            name=data.get("name"),
            api_key=data.get("apiKey"),
        )


@dataclass
class Voice:
    """A narration voice; system voices are shared by every user."""

    id: str
    name: str
    voice_url: str
    is_system: bool = True
    created_by: Optional[str] = None
    is_deleted: bool = False
    created_at: datetime = datetime.min.replace(tzinfo=timezone.utc)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Voice:
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            name=data["name"],
            voice_url=data["voiceUrl"],
            is_system=bool(data.get("isSystem", True)),
            created_by=data.get("createdBy"),
            is_deleted=bool(data.get("isDeleted", False)),
            created_at=_parse_time(data.get("createdAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "voiceUrl": self.voice_url,
            "isSystem": self.is_system,
            "createdBy": self.created_by,
            "isDeleted": self.is_deleted,
            "createdAt": _format_time(self.created_at),
        }


@dataclass
class AudioGeneration:
    """One narration clip a user generated."""

    id: str
    user_id: str
    audio_url: str
    voice_id: Optional[str] = None
    prompt: Optional[str] = None
    is_deleted: bool = False
    created_at: datetime = datetime.min.replace(tzinfo=timezone.utc)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AudioGeneration:
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            user_id=str(data["userId"]),
            audio_url=data["audioUrl"],
            voice_id=data.get("voiceId"),
            prompt=data.get("prompt"),
            is_deleted=bool(data.get("isDeleted", False)),
            created_at=_parse_time(data.get("createdAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "voiceId": self.voice_id,
            "prompt": self.prompt,
            "audioUrl": self.audio_url,
            "isDeleted": self.is_deleted,
            "createdAt": _format_time(self.created_at),
        }


class MediaLibrary:
    """Thread-safe in-memory store of users, voices and audio generations.

    RULES:
    - All public methods acquire self._lock
    - Returned lists are new lists; records are the live instances
    - add_* methods replace an existing record with the same id
    """

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._voices: Dict[str, Voice] = {}
        self._audios: Dict[str, AudioGeneration] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MediaLibrary:
        library = cls()
        for item in data.get("users") or []:
            library.add_user(User.from_dict(item))
        for item in data.get("voices") or []:
            library.add_voice(Voice.from_dict(item))
        for item in data.get("userAudios") or []:
            library.add_audio(AudioGeneration.from_dict(item))
        return library

    @classmethod
    def from_file(cls, path: Path) -> MediaLibrary:
        """Load a library seed file.

        Raises:
            ValueError: If the file is not a JSON object.
        """
        path = Path(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("{} must contain a JSON object".format(path.name))
        library = cls.from_dict(data)
        logger.info(
            "Loaded media library from %s (%d users, %d voices, %d audios)",
            path, len(library._users), len(library._voices), len(library._audios),
        )
        return library

    def add_user(self, user: User) -> None:
        with self._lock:
            self._users[user.id] = user

    def add_voice(self, voice: Voice) -> None:
        with self._lock:
            self._voices[voice.id] = voice

    def add_audio(self, audio: AudioGeneration) -> None:
        with self._lock:
            self._audios[audio.id] = audio

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def authenticate(self, api_key: Optional[str]) -> Optional[User]:
        """Return the user owning ``api_key``, or None."""
        if not api_key:
            return None
        with self._lock:
            for user in self._users.values():
                if user.api_key and user.api_key == api_key:
                    return user
        return None

    def fetch_voices(self, user: Optional[User]) -> Dict[str, List[Voice]]:
        """List the voices available to a user.

        Returns:
            {"systemVoices": [...], "userVoices": [...]}, each sorted by
            creation time, oldest first.

        Raises:
            AuthenticationError: If user is None.
        """
        if user is None:
            raise AuthenticationError()
        with self._lock:
            live = sorted(
                (v for v in self._voices.values() if not v.is_deleted),
                key=lambda v: v.created_at,
            )
        return {
            "systemVoices": [v for v in live if v.is_system],
            "userVoices": [v for v in live if v.created_by == user.id],
        }

    def fetch_user_audios(
        self,
        user: Optional[User],
        limit: int = DEFAULT_AUDIO_LIMIT,
        offset: int = 0,
    ) -> List[AudioGeneration]:
        """List a user's generated audios, newest first.

        Raises:
            AuthenticationError: If user is None.
            ValueError: If limit < 1 or offset < 0.
        """
        if user is None:
            raise AuthenticationError()
        if limit < 1:
            raise ValueError("limit must be positive")
        if offset < 0:
            raise ValueError("offset must not be negative")
        with self._lock:
            owned = [
                a for a in self._audios.values()
                if a.user_id == user.id and not a.is_deleted
            ]
        owned.sort(key=lambda a: a.created_at, reverse=True)
        return owned[offset:offset + limit]

    def count_user_audios(self, user: Optional[User]) -> int:
        """Number of (non-deleted) audios a user generated."""
        if user is None:
            raise AuthenticationError()
        with self._lock:
            return sum(
                1 for a in self._audios.values()
                if a.user_id == user.id and not a.is_deleted
            )
