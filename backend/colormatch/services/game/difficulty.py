from dataclasses import dataclass, asdict
from typing import Dict


EASY = 'easy'
MEDIUM = 'medium'
HARD = 'hard'


@dataclass(frozen=True)
class DifficultyProfile:
    name: str
    distinct_color_count: int
    cell_count: int
    column_count: int
    round_duration_seconds: int
    # Hard grids draw every cell independently
    adjacency_aware: bool

    @property
    def row_count(self) -> int:
        return -(-self.cell_count // self.column_count)

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload['row_count'] = self.row_count
        return payload


PROFILES: Dict[str, DifficultyProfile] = {
    EASY: DifficultyProfile(EASY, 3, 9, 3, 60, True),
    MEDIUM: DifficultyProfile(MEDIUM, 5, 16, 4, 45, True),
    HARD: DifficultyProfile(HARD, 7, 25, 5, 30, False),
}


def get_profile(name: str) -> DifficultyProfile:
    """Return the profile for a tier name (case-insensitive)."""
    profile = PROFILES.get((name or '').lower())
    if profile is None:
        raise ValueError(f"unknown difficulty {name!r}")
    return profile
