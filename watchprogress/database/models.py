from dataclasses import dataclass
from typing import NamedTuple, Optional, Union


class EpisodeRef(NamedTuple):
    """(season, episode) pair; tuple ordering is season first, episode as tiebreak."""
    season: int
    episode: int

    def __str__(self):
        return f"S{self.season}E{self.episode}"


@dataclass(frozen=True)
class MovieId:
    movie_id: int
    title: str

    @property
    def label(self) -> str:
        return self.title


@dataclass(frozen=True)
class EpisodeId:
    show_id: int
    season_number: int
    episode_number: int

    @property
    def ref(self) -> EpisodeRef:
        return EpisodeRef(self.season_number, self.episode_number)

    @property
    def label(self) -> str:
        return f"S{self.season_number}E{self.episode_number}"


@dataclass(frozen=True)
class LatestPointer:
    show_id: int


MediaIdentity = Union[MovieId, EpisodeId]
RecordIdentity = Union[MovieId, EpisodeId, LatestPointer]


@dataclass
class ProgressSnapshot:
    current_time: float = 0.0
    total_duration: float = 0.0
    progress: float = 0.0
    watched: bool = False


@dataclass
class SeasonEpisode:
    season_number: int
    episode_number: int
    id: Optional[int] = None
    name: Optional[str] = None

    @property
    def ref(self) -> EpisodeRef:
        return EpisodeRef(self.season_number, self.episode_number)
