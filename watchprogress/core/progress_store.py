import math
from typing import Any, List, Optional

from ..config import WATCHED_THRESHOLD
from ..database import keys
from ..database.keys import DURATION, PROGRESS, WATCHED, KeyDecodeError
from ..database.models import (EpisodeId, EpisodeRef, LatestPointer, MediaIdentity,
                               ProgressSnapshot)
from ..database.storage import KeyValueStorage
from ..utils.format_utils import format_percent, format_time
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _as_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _as_ref(value: Any) -> Optional[EpisodeRef]:
    if not isinstance(value, dict):
        return None
    season, episode = value.get("season"), value.get("episode")
    if not isinstance(season, int) or not isinstance(episode, int):
        return None
    return EpisodeRef(season, episode)


class ProgressStore:
    """
    Playback progress for movies and episodes on top of a flat key-value storage.

    Only raw values are stored (current time, duration, watched flag, latest-watched
    pointer). Watched status is derived at read time from those signals.

    Every operation is a sequence of single-key reads and writes. Multi-key
    operations are not atomic as a group: a concurrent reader may see the current
    time written before the watched flag, or a show reset half done.
    """

    def __init__(self, storage: KeyValueStorage, threshold: float = WATCHED_THRESHOLD):
        self._storage = storage
        self.threshold = threshold

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    # Progress Tracking

    async def update_progress(self, identity: MediaIdentity, current_time: float, total_duration: float) -> bool:
        """
        Store a playback position. Invalid values are logged and ignored.
        Once the watched threshold is reached the watched flag stays set, even if a
        later update scrubs back below it.
        """
        if not self._is_valid(current_time, total_duration):
            logger.warning(
                f"Invalid progress values for {identity.label}: "
                f"currentTime={current_time}, totalDuration={total_duration}"
            )
            return False

        # Order matters: time, then duration, then the flag derived from both.
        await self._storage.set(keys.encode(PROGRESS, identity), float(current_time))
        await self._storage.set(keys.encode(DURATION, identity), float(total_duration))

        ratio = current_time / total_duration
        if ratio >= self.threshold:
            await self._storage.set(keys.encode(WATCHED, identity), True)

        logger.info(
            f"Updated progress: {identity.label} - {format_percent(ratio)} "
            f"({format_time(current_time)}/{format_time(total_duration)})"
        )
        return True

    @staticmethod
    def _is_valid(current_time: float, total_duration: float) -> bool:
        try:
            if not (math.isfinite(current_time) and math.isfinite(total_duration)):
                return False
        except TypeError:
            return False
        return current_time >= 0 and total_duration > 0 and current_time <= total_duration

    # Progress Retrieval

    async def get_progress(self, identity: MediaIdentity) -> float:
        current_time = _as_float(await self._storage.get(keys.encode(PROGRESS, identity)))
        total_duration = _as_float(await self._storage.get(keys.encode(DURATION, identity)))
        if total_duration <= 0:
            return 0.0
        return min(current_time / total_duration, 1.0)

    async def get_current_time(self, identity: MediaIdentity) -> float:
        return _as_float(await self._storage.get(keys.encode(PROGRESS, identity)))

    async def get_duration(self, identity: MediaIdentity) -> float:
        return _as_float(await self._storage.get(keys.encode(DURATION, identity)))

    async def get_snapshot(self, identity: MediaIdentity) -> ProgressSnapshot:
        return ProgressSnapshot(
            current_time=await self.get_current_time(identity),
            total_duration=await self.get_duration(identity),
            progress=await self.get_progress(identity),
            watched=await self.is_watched(identity),
        )

    # Watched Status

    async def is_watched(self, identity: MediaIdentity) -> bool:
        if bool(await self._storage.get(keys.encode(WATCHED, identity))):
            return True
        if await self.get_progress(identity) >= self.threshold:
            return True
        if isinstance(identity, EpisodeId):
            return await self.is_before_latest_watched(identity)
        return False

    async def is_before_latest_watched(self, episode: EpisodeId) -> bool:
        """True when the episode sits at or before the show's latest-watched pointer."""
        pointer = await self.get_latest_pointer(episode.show_id)
        if pointer is None:
            return False
        return episode.ref <= pointer

    async def get_latest_pointer(self, show_id: int) -> Optional[EpisodeRef]:
        return _as_ref(await self._storage.get(keys.encode_latest(LatestPointer(show_id))))

    # Manual Actions

    async def mark_as_watched(self, identity: MediaIdentity):
        await self._storage.set(keys.encode(WATCHED, identity), True)

        total_duration = await self.get_duration(identity)
        if total_duration > 0:
            await self._storage.set(keys.encode(PROGRESS, identity), total_duration)

        logger.info(f"Manually marked as watched: {identity.label}")

    async def mark_all_before(self, show_id: int, season: int, episode: int):
        """
        Set the show's latest-watched pointer. This overwrites any previous value,
        including a later one: callers only move it forward.
        """
        await self._storage.set(
            keys.encode_latest(LatestPointer(show_id)),
            {"season": int(season), "episode": int(episode)}
        )
        logger.info(f"Marked all episodes up to S{season}E{episode} as watched for show {show_id}")

    async def reset_progress(self, identity: MediaIdentity):
        await self._storage.set(keys.encode(PROGRESS, identity), 0.0)
        await self._storage.set(keys.encode(WATCHED, identity), False)
        logger.info(f"Reset progress: {identity.label}")

    async def list_show_keys(self, show_id: int) -> List[str]:
        found = []
        for kind in keys.KINDS:
            found.extend(await self._storage.keys(keys.episode_prefix(kind, show_id)))
        return found

    async def reset_show(self, show_id: int) -> int:
        """Delete every episode record of a show plus its pointer. Returns the number of episode keys removed."""
        await self._storage.delete(keys.encode_latest(LatestPointer(show_id)))

        count = 0
        for key in await self.list_show_keys(show_id):
            if await self._storage.delete(key):
                count += 1

        logger.info(f"Reset entire progress for show ID {show_id} - cleared {count} keys")
        return count

    # Latest Watched

    async def get_latest_watched_episode(self, show_id: int) -> Optional[EpisodeRef]:
        """
        Highest (season, episode) with any watched signal: the stored pointer, an
        explicit watched flag, or progress at or past the threshold.

        Scans every stored key of the show on each call.
        """
        latest = await self.get_latest_pointer(show_id)

        for key in await self._storage.keys(keys.episode_prefix(WATCHED, show_id)):
            episode = self._decode_episode(key)
            if episode is None or not bool(await self._storage.get(key)):
                continue
            if latest is None or episode.ref > latest:
                latest = episode.ref

        for key in await self._storage.keys(keys.episode_prefix(PROGRESS, show_id)):
            episode = self._decode_episode(key)
            if episode is None:
                continue
            total_duration = _as_float(await self._storage.get(keys.encode(DURATION, episode)))
            if total_duration <= 0:
                continue
            current_time = _as_float(await self._storage.get(key))
            if current_time / total_duration >= self.threshold and (latest is None or episode.ref > latest):
                latest = episode.ref

        return latest

    @staticmethod
    def _decode_episode(key: str) -> Optional[EpisodeId]:
        try:
            _, identity = keys.decode_key(key)
        except KeyDecodeError:
            logger.debug(f"Skipping malformed key: {key}")
            return None
        return identity if isinstance(identity, EpisodeId) else None
