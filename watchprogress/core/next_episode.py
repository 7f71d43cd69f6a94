import asyncio
from typing import Callable, List, Optional, Protocol

from ..database.models import SeasonEpisode
from ..utils.logger import get_logger
from .progress_store import ProgressStore

logger = get_logger(__name__)


class MetadataProvider(Protocol):
    """Source of show structure, typically a remote metadata service."""

    async def get_season_numbers(self, show_id: int) -> List[int]:
        ...

    async def get_season_episodes(self, show_id: int, season_number: int) -> List[SeasonEpisode]:
        """Episodes of one season, in the order they should be watched."""
        ...


class NextEpisodePlanner:
    def __init__(self, store: ProgressStore, metadata: MetadataProvider):
        self._store = store
        self._metadata = metadata

    async def plan(self, show_id: int) -> Optional[SeasonEpisode]:
        """
        Work out what to watch next for a show, or None at the end of the series.
        Metadata failures are logged and treated as "no next episode".
        """
        try:
            return await self._plan(show_id)
        except Exception as e:
            logger.error(f"Failed to compute next episode for show {show_id}: {e}")
            return None

    async def _plan(self, show_id: int) -> Optional[SeasonEpisode]:
        latest = await self._store.get_latest_watched_episode(show_id)

        if latest is None:
            # Season 0 holds specials and is skipped by default
            seasons = await self._regular_seasons(show_id)
            if not seasons:
                return None
            return await self._first_episode(show_id, seasons[0])

        logger.debug(f"Latest watched episode for show {show_id}: {latest}")
        episodes = await self._metadata.get_season_episodes(show_id, latest.season)

        # Episode 0 or below means "start of season"
        if latest.episode <= 0:
            return episodes[0] if episodes else None

        # List order is trusted over episode-number arithmetic
        idx = next((i for i, ep in enumerate(episodes) if ep.episode_number == latest.episode), None)
        if idx is not None and idx + 1 < len(episodes):
            return episodes[idx + 1]

        following = [n for n in await self._regular_seasons(show_id) if n > latest.season]
        if following:
            return await self._first_episode(show_id, following[0])
        return None

    async def _regular_seasons(self, show_id: int) -> List[int]:
        numbers = await self._metadata.get_season_numbers(show_id)
        return sorted({n for n in numbers if n > 0})

    async def _first_episode(self, show_id: int, season_number: int) -> Optional[SeasonEpisode]:
        episodes = await self._metadata.get_season_episodes(show_id, season_number)
        return episodes[0] if episodes else None


class NextEpisodeTracker:
    """
    Keeps the next-episode suggestion for the show currently on screen.

    Each refresh supersedes the previous one: the in-flight computation is
    cancelled, and a result that finishes after a newer request was made is dropped.
    """

    def __init__(self, planner: NextEpisodePlanner,
                 on_change: Optional[Callable[[Optional[SeasonEpisode]], None]] = None):
        self._planner = planner
        self._on_change = on_change
        self._task: Optional[asyncio.Task] = None
        self._request_id = 0
        self.show_id: Optional[int] = None
        self.current: Optional[SeasonEpisode] = None

    def refresh(self, show_id: int) -> asyncio.Task:
        if self._task and not self._task.done():
            self._task.cancel()

        self._request_id += 1
        if show_id != self.show_id:
            self.current = None
        self.show_id = show_id

        self._task = asyncio.ensure_future(self._run(self._request_id, show_id))
        return self._task

    async def _run(self, request_id: int, show_id: int):
        result = await self._planner.plan(show_id)
        if request_id != self._request_id:
            logger.debug(f"Dropping stale next-episode result for show {show_id}")
            return
        self.current = result
        if result:
            logger.info(f"Next episode for show {show_id}: {result.ref}")
        else:
            logger.info(f"No next episode for show {show_id}")
        if self._on_change:
            self._on_change(result)

    async def wait(self) -> Optional[SeasonEpisode]:
        """Wait for the latest refresh to settle and return the current suggestion."""
        if self._task:
            await asyncio.wait({self._task})
        return self.current

    async def close(self):
        if self._task and not self._task.done():
            self._task.cancel()
            await asyncio.wait({self._task})
        self._task = None
