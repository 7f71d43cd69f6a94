import math
from typing import Optional, Tuple

from ..config import AUTO_SAVE_INTERVAL
from ..database.models import MediaIdentity
from ..utils.logger import get_logger
from .progress_store import ProgressStore

logger = get_logger(__name__)


class PlaybackObserver:
    """
    Receives periodic position ticks from a player and persists them.

    Writes are throttled to one per ``interval`` seconds of playback position;
    ``flush`` writes the last valid tick unconditionally (pause, stop, close).
    """

    def __init__(self, store: ProgressStore, identity: MediaIdentity, interval: float = AUTO_SAVE_INTERVAL):
        self._store = store
        self.identity = identity
        self.interval = interval
        self._last_saved: Optional[float] = None
        self._pending: Optional[Tuple[float, float]] = None

    async def on_tick(self, current_time: float, duration: float) -> bool:
        # Players report NaN/inf durations while a stream is still loading
        if not math.isfinite(duration) or duration <= 0:
            return False
        if not math.isfinite(current_time) or current_time < 0 or current_time > duration:
            return False

        self._pending = (current_time, duration)
        if self._last_saved is not None and abs(current_time - self._last_saved) < self.interval:
            return False
        return await self._save()

    async def flush(self) -> bool:
        if self._pending is None:
            return False
        return await self._save()

    async def _save(self) -> bool:
        current_time, duration = self._pending
        self._pending = None
        saved = await self._store.update_progress(self.identity, current_time, duration)
        if saved:
            self._last_saved = current_time
        else:
            logger.debug(f"Progress tick for {self.identity.label} was not stored")
        return saved
