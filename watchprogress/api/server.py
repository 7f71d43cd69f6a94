from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..config import DB_PATH
from ..core.next_episode import MetadataProvider, NextEpisodePlanner
from ..core.progress_store import ProgressStore
from ..database.models import EpisodeId, MovieId
from ..database.storage import SqliteStorage
from ..utils.logger import get_logger

logger = get_logger("watchprogress.api")

storage = SqliteStorage(str(DB_PATH))
progress_store = ProgressStore(storage)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Progress API starting. Database: {DB_PATH}")
    await storage.initialize()
    yield
    logger.info("Progress API stopped")


app = FastAPI(title="Watch Progress API", lifespan=lifespan)

# Enable CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> ProgressStore:
    return progress_store


def get_metadata_provider() -> Optional[MetadataProvider]:
    # The hosting application installs a provider through app.dependency_overrides
    return None


class ProgressUpdate(BaseModel):
    current_time: float
    total_duration: float


class MovieProgressUpdate(ProgressUpdate):
    title: str


class MovieRef(BaseModel):
    title: str


class MarkBefore(BaseModel):
    season: int
    episode: int


@app.get("/health")
async def health():
    return {"status": "ok"}

# --- Movies ---

@app.post("/api/movies/{movie_id}/progress")
async def update_movie_progress(movie_id: int, body: MovieProgressUpdate, store: ProgressStore = Depends(get_store)):
    saved = await store.update_progress(MovieId(movie_id, body.title), body.current_time, body.total_duration)
    return {"status": "success" if saved else "ignored"}

@app.get("/api/movies/{movie_id}/progress")
async def get_movie_progress(movie_id: int, title: str, store: ProgressStore = Depends(get_store)):
    snapshot = await store.get_snapshot(MovieId(movie_id, title))
    return snapshot.__dict__

@app.post("/api/movies/{movie_id}/watched")
async def mark_movie_watched(movie_id: int, body: MovieRef, store: ProgressStore = Depends(get_store)):
    await store.mark_as_watched(MovieId(movie_id, body.title))
    return {"status": "success"}

@app.post("/api/movies/{movie_id}/reset")
async def reset_movie(movie_id: int, body: MovieRef, store: ProgressStore = Depends(get_store)):
    await store.reset_progress(MovieId(movie_id, body.title))
    return {"status": "success"}

# --- Episodes ---

@app.post("/api/shows/{show_id}/episodes/{season}/{episode}/progress")
async def update_episode_progress(show_id: int, season: int, episode: int, body: ProgressUpdate,
                                  store: ProgressStore = Depends(get_store)):
    saved = await store.update_progress(EpisodeId(show_id, season, episode), body.current_time, body.total_duration)
    return {"status": "success" if saved else "ignored"}

@app.get("/api/shows/{show_id}/episodes/{season}/{episode}/progress")
async def get_episode_progress(show_id: int, season: int, episode: int, store: ProgressStore = Depends(get_store)):
    snapshot = await store.get_snapshot(EpisodeId(show_id, season, episode))
    return snapshot.__dict__

@app.post("/api/shows/{show_id}/episodes/{season}/{episode}/watched")
async def mark_episode_watched(show_id: int, season: int, episode: int, store: ProgressStore = Depends(get_store)):
    await store.mark_as_watched(EpisodeId(show_id, season, episode))
    return {"status": "success"}

@app.post("/api/shows/{show_id}/episodes/{season}/{episode}/reset")
async def reset_episode(show_id: int, season: int, episode: int, store: ProgressStore = Depends(get_store)):
    await store.reset_progress(EpisodeId(show_id, season, episode))
    return {"status": "success"}

# --- Shows ---

@app.post("/api/shows/{show_id}/mark-before")
async def mark_all_before(show_id: int, body: MarkBefore, store: ProgressStore = Depends(get_store)):
    await store.mark_all_before(show_id, body.season, body.episode)
    return {"status": "success"}

@app.get("/api/shows/{show_id}/latest")
async def get_latest_watched(show_id: int, store: ProgressStore = Depends(get_store)):
    latest = await store.get_latest_watched_episode(show_id)
    if latest is None:
        raise HTTPException(status_code=404, detail="No watched episodes")
    return {"season": latest.season, "episode": latest.episode}

@app.get("/api/shows/{show_id}/next")
async def get_next_episode(show_id: int, store: ProgressStore = Depends(get_store),
                           metadata: Optional[MetadataProvider] = Depends(get_metadata_provider)):
    if metadata is None:
        raise HTTPException(status_code=503, detail="Metadata provider not configured")
    next_episode = await NextEpisodePlanner(store, metadata).plan(show_id)
    if next_episode is None:
        raise HTTPException(status_code=404, detail="No next episode")
    return next_episode.__dict__

@app.delete("/api/shows/{show_id}")
async def reset_show(show_id: int, store: ProgressStore = Depends(get_store)):
    removed = await store.reset_show(show_id)
    return {"removed": removed}
