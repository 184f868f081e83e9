from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from typing import TYPE_CHECKING

from app.db.base_class import Base

# Imports condicionales para evitar referencias circulares
if TYPE_CHECKING:
    from app.models.member import Member
    from app.models.attendance import Attendance

class Gym(Base):
    """
    Modelo para representar un gimnasio (tenant) en el sistema.
    Cada gimnasio tiene sus propios miembros y registros de asistencia.
    """
    __tablename__ = "gyms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    city = Column(String(100), nullable=True)
    # Solo informativo: el "hoy" del check-in siempre usa CHECKIN_TIMEZONE
    timezone = Column(String(50), nullable=False, default='Asia/Kolkata')
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relaciones
    members = relationship("Member", back_populates="gym")
    attendance_records = relationship("Attendance", back_populates="gym")
