from sqlalchemy import Column, Integer, ForeignKey, DateTime, Date, Index
from sqlalchemy.orm import relationship
from sqlalchemy.schema import UniqueConstraint
from datetime import datetime, timezone

from app.db.base_class import Base


class Attendance(Base):
    """
    Registro de asistencia: una fila por (miembro, gimnasio, fecha de check-in).

    check_in_date es la fecha civil en la zona horaria fija del sistema;
    checked_in_at es el instante real del check-in (UTC).
    Los registros son append-only: nunca se actualizan ni se eliminan.
    """
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    gym_id = Column(Integer, ForeignKey("gyms.id"), nullable=False)
    check_in_date = Column(Date, nullable=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relaciones
    member = relationship("Member", back_populates="attendance_records")
    gym = relationship("Gym", back_populates="attendance_records")

    # Un solo check-in por miembro, gimnasio y día (lo garantiza la BD, no el llamador)
    __table_args__ = (
        UniqueConstraint('member_id', 'gym_id', 'check_in_date', name='uq_attendance_member_gym_date'),
        Index('ix_attendance_gym_date', 'gym_id', 'check_in_date'),
        Index('ix_attendance_member_checked_in_at', 'member_id', 'checked_in_at'),
    )
