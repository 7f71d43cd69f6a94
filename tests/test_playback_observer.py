import pytest
from watchprogress.core.playback_observer import PlaybackObserver
from watchprogress.core.progress_store import ProgressStore
from watchprogress.database.storage import MemoryStorage
from watchprogress.database.models import EpisodeId

EPISODE = EpisodeId(10, 1, 1)

@pytest.mark.asyncio
async def test_ticks_are_throttled():
    store = ProgressStore(MemoryStorage())
    observer = PlaybackObserver(store, EPISODE, interval=5)

    assert await observer.on_tick(0.0, 100.0) is True
    assert await observer.on_tick(1.0, 100.0) is False
    assert await observer.on_tick(4.0, 100.0) is False
    assert await store.get_current_time(EPISODE) == 0.0

    assert await observer.on_tick(5.0, 100.0) is True
    assert await store.get_current_time(EPISODE) == 5.0

@pytest.mark.asyncio
async def test_seek_back_is_saved():
    store = ProgressStore(MemoryStorage())
    observer = PlaybackObserver(store, EPISODE, interval=5)
    await observer.on_tick(60.0, 100.0)
    assert await observer.on_tick(10.0, 100.0) is True
    assert await store.get_current_time(EPISODE) == 10.0

@pytest.mark.asyncio
async def test_flush_writes_last_tick():
    store = ProgressStore(MemoryStorage())
    observer = PlaybackObserver(store, EPISODE, interval=5)
    assert await observer.on_tick(93.0, 100.0) is True
    assert await observer.on_tick(95.0, 100.0) is False
    assert await observer.on_tick(97.0, 100.0) is False
    assert await store.is_watched(EPISODE) is False

    assert await observer.flush() is True
    assert await store.get_current_time(EPISODE) == 97.0
    assert await store.is_watched(EPISODE) is True

    # Nothing new to write
    assert await observer.flush() is False

@pytest.mark.asyncio
async def test_invalid_ticks_ignored():
    store = ProgressStore(MemoryStorage())
    observer = PlaybackObserver(store, EPISODE, interval=0)
    assert await observer.on_tick(1.0, float("nan")) is False
    assert await observer.on_tick(1.0, 0.0) is False
    assert await observer.on_tick(-1.0, 100.0) is False
    assert await observer.on_tick(101.0, 100.0) is False
    assert await observer.flush() is False
    assert await store.get_progress(EPISODE) == 0.0
