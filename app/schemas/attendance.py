"""
Esquemas Pydantic para check-in y registros de asistencia.
"""

from typing import Optional
from datetime import datetime
from datetime import date as DateType
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class CheckInStatus(str, Enum):
    """Estados terminales de un intento de check-in."""
    success = "success"
    already_checked_in = "already_checked_in"
    rejected = "rejected"
    failure = "failure"


class AttendanceRecord(BaseModel):
    """Registro de asistencia persistido."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    gym_id: int
    check_in_date: DateType = Field(..., description="Fecha civil del check-in (zona horaria fija)")
    checked_in_at: datetime = Field(..., description="Instante real del check-in")


class AttendanceWithMember(AttendanceRecord):
    """Registro de asistencia con datos básicos del miembro (vista del dueño)."""
    member_name: Optional[str] = None
    member_phone: Optional[str] = None


class CheckInRequest(BaseModel):
    """Check-in desde recepción: el dueño marca a un miembro."""
    member_id: int = Field(..., gt=0)


class SelfCheckInRequest(BaseModel):
    """Check-in del propio miembro escaneando el QR del gimnasio."""
    user_id: int = Field(..., gt=0)
    gym_id: int = Field(..., gt=0)


class CheckInResult(BaseModel):
    """Resultado de un intento de check-in."""
    status: CheckInStatus
    message: str
    check_in_date: Optional[DateType] = None
    attendance: Optional[AttendanceRecord] = None

    @property
    def success(self) -> bool:
        return self.status == CheckInStatus.success
