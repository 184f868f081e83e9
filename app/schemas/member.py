"""
Esquemas para badges y progreso del miembro (dashboard / perfil).
"""

from typing import List
from datetime import datetime
from datetime import date as DateType
from pydantic import BaseModel, ConfigDict, Field


class Badge(BaseModel):
    """Badge ganado por un miembro."""
    model_config = ConfigDict(from_attributes=True)

    badge_type: str
    earned_at: datetime


class AttendanceDay(BaseModel):
    """Celda del grid de asistencia."""
    date: DateType
    present: bool


class MemberProgress(BaseModel):
    """Racha, badges y asistencia reciente de un miembro."""
    member_id: int
    gym_id: int
    today: DateType = Field(..., description="Hoy en la zona horaria de check-in")
    current_streak: int = Field(..., ge=0, description="Racha actual de días consecutivos")
    longest_streak: int = Field(..., ge=0, description="Racha más larga registrada")
    total_checkins: int = Field(..., ge=0)
    checked_in_today: bool
    badges: List[Badge] = Field(default_factory=list)
    attendance_grid: List[AttendanceDay] = Field(default_factory=list)
