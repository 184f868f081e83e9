from typing import List
from datetime import date as DateType
from pydantic import BaseModel, Field


class LeaderboardEntry(BaseModel):
    rank: int = Field(..., ge=1)
    member_id: int
    name: str = Field(..., description="Nombre abreviado por privacidad (ej: 'Ravi K.')")
    count: int = Field(..., ge=0, description="Check-ins en el mes")
    is_me: bool = False


class Leaderboard(BaseModel):
    gym_id: int
    month_start: DateType
    entries: List[LeaderboardEntry] = Field(default_factory=list)
