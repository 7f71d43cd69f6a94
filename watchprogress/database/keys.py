"""
Flat string keys for progress records.

Every record lives under one namespace:

    movie_{kind}_{id}_{normalized_title}
    episode_{kind}_{show_id}_s{season}_e{episode}
    episode_latest_watched_{show_id}

where ``kind`` is one of ``progress``, ``duration`` or ``watched``.
``encode_*`` and ``decode_key`` are inverses for every key this module produces.
"""
import re
from typing import Tuple

from .models import EpisodeId, LatestPointer, MovieId, RecordIdentity

PROGRESS = "progress"
DURATION = "duration"
WATCHED = "watched"
KINDS = (PROGRESS, DURATION, WATCHED)

LATEST = "latest_watched"

_MOVIE_RE = re.compile(r"^movie_(progress|duration|watched)_(-?\d+)_(.*)$", re.DOTALL)
_EPISODE_RE = re.compile(r"^episode_(progress|duration|watched)_(-?\d+)_s(-?\d+)_e(-?\d+)$")
_LATEST_RE = re.compile(r"^episode_latest_watched_(-?\d+)$")


class KeyDecodeError(ValueError):
    """Raised when a stored key does not follow any known layout."""


def normalize_title(title: str) -> str:
    # Distinct titles may normalize to the same key for one movie id.
    return title.replace(" ", "_").lower()


def _check_kind(kind: str):
    if kind not in KINDS:
        raise ValueError(f"Unknown record kind: {kind!r}")


def encode_movie(kind: str, movie: MovieId) -> str:
    _check_kind(kind)
    return f"movie_{kind}_{movie.movie_id}_{normalize_title(movie.title)}"


def encode_episode(kind: str, episode: EpisodeId) -> str:
    _check_kind(kind)
    return f"{episode_prefix(kind, episode.show_id)}s{episode.season_number}_e{episode.episode_number}"


def encode_latest(pointer: LatestPointer) -> str:
    return f"episode_{LATEST}_{pointer.show_id}"


def encode(kind: str, identity: RecordIdentity) -> str:
    if isinstance(identity, MovieId):
        return encode_movie(kind, identity)
    if isinstance(identity, EpisodeId):
        return encode_episode(kind, identity)
    if isinstance(identity, LatestPointer):
        return encode_latest(identity)
    raise TypeError(f"Unsupported identity: {identity!r}")


def episode_prefix(kind: str, show_id: int) -> str:
    """Prefix shared by every ``kind`` key of one show. The trailing underscore keeps show 1 apart from show 10."""
    _check_kind(kind)
    return f"episode_{kind}_{show_id}_"


def decode_key(key: str) -> Tuple[str, RecordIdentity]:
    """
    Parse a key back into ``(kind, identity)``.

    Movie identities come back with the normalized title, which encodes to the same key.
    The latest-watched pointer decodes with kind ``"latest_watched"``.
    """
    match = _EPISODE_RE.match(key)
    if match:
        kind, show_id, season, episode = match.groups()
        return kind, EpisodeId(int(show_id), int(season), int(episode))

    match = _LATEST_RE.match(key)
    if match:
        return LATEST, LatestPointer(int(match.group(1)))

    match = _MOVIE_RE.match(key)
    if match:
        kind, movie_id, title = match.groups()
        return kind, MovieId(int(movie_id), title)

    raise KeyDecodeError(f"Unrecognized progress key: {key!r}")
