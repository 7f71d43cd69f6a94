import httpx
import pytest
from watchprogress.api.server import app, get_store, get_metadata_provider
from watchprogress.core.progress_store import ProgressStore
from watchprogress.database.storage import MemoryStorage
from watchprogress.database.models import SeasonEpisode

import pytest_asyncio

class StaticMetadata:
    async def get_season_numbers(self, show_id):
        return [1]

    async def get_season_episodes(self, show_id, season_number):
        return [SeasonEpisode(season_number=1, episode_number=n, id=n) for n in (1, 2)]

@pytest_asyncio.fixture
async def client():
    store = ProgressStore(MemoryStorage())
    app.dependency_overrides[get_store] = lambda: store
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()

@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}

@pytest.mark.asyncio
async def test_episode_flow(client):
    resp = await client.post("/api/shows/10/episodes/1/1/progress", json={"current_time": 95, "total_duration": 100})
    assert resp.json() == {"status": "success"}

    resp = await client.get("/api/shows/10/episodes/1/1/progress")
    assert resp.json() == {"current_time": 95.0, "total_duration": 100.0, "progress": 0.95, "watched": True}

    resp = await client.get("/api/shows/10/latest")
    assert resp.json() == {"season": 1, "episode": 1}

    resp = await client.delete("/api/shows/10")
    assert resp.json() == {"removed": 3}

    resp = await client.get("/api/shows/10/latest")
    assert resp.status_code == 404

@pytest.mark.asyncio
async def test_invalid_progress_is_ignored(client):
    resp = await client.post("/api/shows/10/episodes/1/1/progress", json={"current_time": 120, "total_duration": 100})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ignored"}

@pytest.mark.asyncio
async def test_movie_mark_and_reset(client):
    await client.post("/api/movies/7/progress", json={"title": "Spirited Away", "current_time": 30, "total_duration": 120})
    await client.post("/api/movies/7/watched", json={"title": "Spirited Away"})

    resp = await client.get("/api/movies/7/progress", params={"title": "Spirited Away"})
    assert resp.json()["watched"] is True
    assert resp.json()["progress"] == 1.0

    await client.post("/api/movies/7/reset", json={"title": "Spirited Away"})
    resp = await client.get("/api/movies/7/progress", params={"title": "Spirited Away"})
    assert resp.json() == {"current_time": 0.0, "total_duration": 120.0, "progress": 0.0, "watched": False}

@pytest.mark.asyncio
async def test_mark_before(client):
    await client.post("/api/shows/3/mark-before", json={"season": 2, "episode": 5})
    resp = await client.get("/api/shows/3/episodes/1/99/progress")
    assert resp.json()["watched"] is True
    resp = await client.get("/api/shows/3/episodes/2/6/progress")
    assert resp.json()["watched"] is False

@pytest.mark.asyncio
async def test_next_episode_requires_metadata(client):
    resp = await client.get("/api/shows/10/next")
    assert resp.status_code == 503

@pytest.mark.asyncio
async def test_next_episode(client):
    app.dependency_overrides[get_metadata_provider] = lambda: StaticMetadata()
    await client.post("/api/shows/10/episodes/1/1/watched")

    resp = await client.get("/api/shows/10/next")
    assert resp.json() == {"season_number": 1, "episode_number": 2, "id": 2, "name": None}

    await client.post("/api/shows/10/episodes/1/2/watched")
    resp = await client.get("/api/shows/10/next")
    assert resp.status_code == 404
