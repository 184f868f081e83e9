from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.schema import UniqueConstraint
from datetime import datetime, date, timezone
import enum

from app.db.base_class import Base


class BadgeType(str, enum.Enum):
    """
    Tipos de badge que puede ganar un miembro.
    El valor es el identificador persistido y expuesto al frontend.
    """
    FIRST_WEEK = "first_week"                    # 7 check-ins en total
    STREAK_30 = "30_day_streak"                  # Racha actual >= 30 días
    CLUB_100 = "100_day_club"                    # Racha actual >= 100 días
    NEVER_MISSED_MONDAY = "never_missed_monday"  # Últimos 4 lunes con asistencia
    REFERRAL_1 = "referral_1"                    # 1 referido convertido
    REFERRAL_3 = "referral_3"                    # 3 referidos convertidos
    TOP_10 = "top_10"                            # Top 10 del leaderboard mensual


class Member(Base):
    """
    Miembro de un gimnasio.

    Un usuario puede ser miembro de varios gimnasios: cada gimnasio tiene su
    propio registro Member (user_id compartido).
    """
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=True, index=True)  # Identidad externa (auth)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    join_date = Column(Date, default=date.today, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relaciones
    gym = relationship("Gym", back_populates="members")
    attendance_records = relationship("Attendance", back_populates="member")
    badges = relationship(
        "MemberBadge",
        back_populates="member",
        order_by="MemberBadge.earned_at",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint('gym_id', 'phone', name='uq_member_gym_phone'),
        UniqueConstraint('gym_id', 'user_id', name='uq_member_gym_user'),
    )


class MemberBadge(Base):
    """
    Badge ganado por un miembro. Nunca se revoca ni se vuelve a otorgar:
    la unicidad (member_id, badge_type) la garantiza la base de datos.
    """
    __tablename__ = "member_badges"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    badge_type = Column(String(50), nullable=False)
    earned_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    member = relationship("Member", back_populates="badges")

    __table_args__ = (
        UniqueConstraint('member_id', 'badge_type', name='uq_member_badge_type'),
    )
